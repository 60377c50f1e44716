"""
Контекст рендеринга шаблона.

Пара (текущая модель, приемник вывода), создаваемая заново на каждый вызов
рендеринга. Модель временно подменяется только внутри цикла for
и восстанавливается после его завершения.
"""

from __future__ import annotations

from typing import Any, Protocol


class TextSink(Protocol):
    """Любой объект с методом write(str): io.StringIO, открытый файл, sys.stdout."""

    def write(self, text: str) -> Any: ...


class RenderContext:
    """
    Изменяемое состояние одного вызова рендеринга.

    Не разделяется между вызовами и потоками.
    """

    def __init__(self, model: Any, out: TextSink, line_terminator: str = "\n"):
        self.model = model
        self.out = out
        self.line_terminator = line_terminator

    def write(self, text: str) -> None:
        if text:
            self.out.write(text)

    def writeln(self, text: str = "") -> None:
        self.write(text)
        self.out.write(self.line_terminator)


__all__ = ["RenderContext", "TextSink"]
