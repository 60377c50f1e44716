"""
Исполнитель скомпилированных шаблонов.
"""

from __future__ import annotations

import io
import logging
from typing import Any

from .blocks import CompiledTemplate
from .context import RenderContext, TextSink

logger = logging.getLogger(__name__)


class TemplateExecutor:
    """
    Рендерит CompiledTemplate на модели данных.

    Состояние рендеринга (текущая модель, приемник вывода) создается
    заново на каждый вызов, поэтому исполнитель и шаблоны можно
    использовать параллельно.
    """

    def __init__(self, line_terminator: str = "\n"):
        self.line_terminator = line_terminator

    def write(self, compiled: CompiledTemplate, model: Any, out: TextSink) -> None:
        """
        Пишет результат в любой объект с методом write(str).

        Raises:
            TemplateRenderError: При ошибке во время рендеринга; уже записанный
                вывод не откатывается
        """
        logger.debug("Rendering template %s", compiled.uri or "<string>")
        ctx = RenderContext(model, out, self.line_terminator)
        for action in compiled.actions:
            action(ctx)
        logger.debug("Rendered template %s", compiled.uri or "<string>")

    def render(self, compiled: CompiledTemplate, model: Any) -> str:
        """Рендерит шаблон в строку."""
        buffer = io.StringIO()
        self.write(compiled, model, buffer)
        return buffer.getvalue()


__all__ = ["TemplateExecutor"]
