"""
Построчный шаблонизатор.

Шаблон компилируется один раз в CompiledTemplate и затем рендерится
на любых моделях данных:

    <% if user.admin %>
    Hello, ${user.name}!
    <% /if %>
"""

from .blocks import CompiledTemplate
from .compiler import LoopScope, TemplateCompiler
from .context import RenderContext
from .engine import TemplateEngine
from .errors import TemplateCompileError, TemplateRenderError
from .executor import TemplateExecutor

__all__ = [
    "TemplateEngine",
    "TemplateCompiler",
    "TemplateExecutor",
    "CompiledTemplate",
    "RenderContext",
    "LoopScope",
    "TemplateCompileError",
    "TemplateRenderError",
]
