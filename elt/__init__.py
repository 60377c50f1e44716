"""
elt — язык выражений и построчный шаблонизатор.

    from elt import TemplateEngine

    engine = TemplateEngine()
    tpl = engine.compile_text("Hello, ${name}!")
    engine.render(tpl, {"name": "World"})   # 'Hello, World!\\n'
"""

from .errors import ELTUserError
from .expr import (
    EvaluationError,
    ExpressionEvaluator,
    ExpressionParser,
    ExpressionSyntaxError,
    evaluate_expression_string,
    parse_expression,
)
from .resolver import (
    AtomicPropertyResolver,
    DefaultPropertyResolver,
    MappingPropertyResolver,
    ObjectPropertyResolver,
    PropertyResolver,
    ResolutionError,
)
from .template import (
    CompiledTemplate,
    TemplateCompileError,
    TemplateCompiler,
    TemplateEngine,
    TemplateExecutor,
    TemplateRenderError,
)

__all__ = [
    "TemplateEngine",
    "TemplateCompiler",
    "TemplateExecutor",
    "CompiledTemplate",
    "ExpressionParser",
    "ExpressionEvaluator",
    "parse_expression",
    "evaluate_expression_string",
    "PropertyResolver",
    "MappingPropertyResolver",
    "ObjectPropertyResolver",
    "AtomicPropertyResolver",
    "DefaultPropertyResolver",
    "ELTUserError",
    "ExpressionSyntaxError",
    "EvaluationError",
    "ResolutionError",
    "TemplateCompileError",
    "TemplateRenderError",
]
