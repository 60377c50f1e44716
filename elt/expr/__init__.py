"""
Язык выражений: лексер, парсер, AST и вычислитель.

Выражения вида ``id != 'foo' || 4 > num.toInt`` разбираются один раз
в неизменяемое AST и затем вычисляются на любой модели данных.
"""

from .evaluator import (
    EvaluationError,
    ExpressionEvaluator,
    canonicalize,
    evaluate_expression_string,
    to_text,
)
from .lexer import ExpressionLexer, ExpressionSyntaxError, Token
from .model import Expression
from .parser import ExpressionParser, parse_expression

__all__ = [
    # Основные функции
    "parse_expression",
    "evaluate_expression_string",

    # Компоненты
    "ExpressionLexer",
    "ExpressionParser",
    "ExpressionEvaluator",
    "Expression",
    "Token",

    # Значения
    "canonicalize",
    "to_text",

    # Исключения
    "ExpressionSyntaxError",
    "EvaluationError",
]
