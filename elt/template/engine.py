"""
Фасад движка шаблонов: компиляция из текста, файлов и потоков,
рендеринг и вычисление отдельных выражений.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Iterable, Optional, TextIO, Union

from ..config import EngineConfig
from ..expr.evaluator import ExpressionEvaluator
from ..expr.parser import ExpressionParser
from ..resolver import DefaultPropertyResolver, PropertyResolver
from .blocks import CompiledTemplate
from .compiler import TemplateCompiler
from .context import TextSink
from .executor import TemplateExecutor

logger = logging.getLogger(__name__)


class TemplateEngine:
    """
    Связывает резолвер, компилятор и исполнитель с общей конфигурацией.

    Скомпилированные шаблоны не кэшируются.
    """

    def __init__(self, config: Optional[EngineConfig] = None, resolver: Optional[PropertyResolver] = None):
        self.config = config or EngineConfig()
        self.resolver = resolver or DefaultPropertyResolver()
        self.evaluator = ExpressionEvaluator(self.resolver)
        self.compiler = TemplateCompiler(
            resolver=self.resolver,
            evaluator=self.evaluator,
            accept_string_conditions=self.config.accept_if_strings,
        )
        self.executor = TemplateExecutor(line_terminator=self.config.line_terminator)

    # ---------- компиляция ----------

    def compile_lines(self, lines: Iterable[str], uri: Optional[str] = None) -> CompiledTemplate:
        return self.compiler.compile(lines, uri=uri)

    def compile_text(self, text: str, uri: Optional[str] = None) -> CompiledTemplate:
        """Текст делится на строки только по \\n, \\r\\n и \\r."""
        return self.compile_lines(io.StringIO(text, newline=""), uri=uri)

    def compile_stream(self, stream: TextIO, uri: Optional[str] = None) -> CompiledTemplate:
        if uri is None:
            uri = getattr(stream, "name", None)
        return self.compile_lines(stream, uri=uri)

    def compile_file(self, path: Union[str, Path]) -> CompiledTemplate:
        path = Path(path)
        logger.debug("Reading template %s (%s)", path, self.config.encoding)
        with path.open(encoding=self.config.encoding, newline="") as f:
            return self.compile_lines(f, uri=str(path))

    # ---------- рендеринг ----------

    def render(self, template: CompiledTemplate, model: Any) -> str:
        return self.executor.render(template, model)

    def render_to(self, template: CompiledTemplate, model: Any, out: TextSink) -> None:
        self.executor.write(template, model, out)

    # ---------- выражения ----------

    def evaluate(self, expression_text: str, model: Any, *params: Any) -> Any:
        """Разбирает и вычисляет одно выражение с позиционными параметрами ?0, ?1, ..."""
        expression = ExpressionParser().parse(expression_text)
        return self.evaluator.evaluate(expression, model, params)


__all__ = ["TemplateEngine"]
