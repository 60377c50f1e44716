"""
Вычислитель выражений.

Проходит по AST сверху вниз (Or → Value) и вычисляет значение выражения
на модели данных и необязательных позиционных параметрах. Результат —
одно из: bool, int (64 бита), float, str или None.

Числовая семантика строгая: арифметика и сравнения требуют операндов
одного вида (оба целые или оба float), смешение видов — ошибка.
"""

from __future__ import annotations

import math
import numbers
import re
from typing import Any, Optional, Sequence

from ..errors import ELTUserError
from ..resolver import DefaultPropertyResolver, PropertyResolver
from .model import (
    AddExpression,
    AddOp,
    AndExpression,
    EqualityExpression,
    EqualityOp,
    Expression,
    MultiplyExpression,
    MultiplyOp,
    OrExpression,
    RelationalExpression,
    RelationalOp,
    UnaryExpression,
    UnaryOp,
    ValueExpression,
    ValueKind,
    VariableReference,
)

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_INTEGER_TEXT = re.compile(r"[+-]?\d+")


class EvaluationError(ELTUserError):
    """Ошибка при вычислении выражения (несовпадение типов, null-операнд и т.п.)."""
    pass


def kind_name(value: Any) -> str:
    """Имя вида значения для сообщений об ошибках."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "double"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


def canonicalize(value: Any) -> Any:
    """
    Приводит значение к одному из канонических видов.

    Целые любых типов (включая numpy) становятся int, вещественные — float;
    bool, str и None возвращаются как есть.

    Raises:
        EvaluationError: Для любых других типов
    """
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, numbers.Integral):
        result = int(value)
        if not INT64_MIN <= result <= INT64_MAX:
            raise EvaluationError(f"Integer value out of 64-bit range: {result}")
        return result
    if isinstance(value, float):
        return value
    if isinstance(value, numbers.Real) and not isinstance(value, numbers.Rational):
        return float(value)
    raise EvaluationError(f"Invalid value type: {type(value).__module__}.{type(value).__qualname__}")


def to_text(value: Any) -> str:
    """
    Естественное строковое представление значения.

    None → "null", bool → "true"/"false", остальное через str().
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _wrap64(value: int) -> int:
    return ((value - INT64_MIN) % (2 ** 64)) + INT64_MIN


def _is_int(value: Any) -> bool:
    return type(value) is int


def _is_float(value: Any) -> bool:
    return type(value) is float


class ExpressionEvaluator:
    """
    Вычислитель выражений.

    Хранит только резолвер свойств, поэтому один экземпляр можно использовать
    из любого числа потоков одновременно.
    """

    def __init__(self, resolver: Optional[PropertyResolver] = None):
        """
        Args:
            resolver: Резолвер свойств модели (по умолчанию DefaultPropertyResolver)
        """
        self.resolver = resolver or DefaultPropertyResolver()

    def evaluate(self, expression: Expression, model: Any, params: Optional[Sequence[Any]] = None) -> Any:
        """
        Вычисляет выражение.

        Args:
            expression: Разобранное выражение
            model: Модель данных для разрешения переменных
            params: Значения позиционных параметров ?0, ?1, ...

        Returns:
            bool, int, float, str или None

        Raises:
            EvaluationError: При ошибке типов
            ResolutionError: При ошибке разрешения свойства
        """
        run = _Evaluation(self.resolver, model, tuple(params) if params is not None else ())
        return run.evaluate(expression)


class _Evaluation:
    """Однократное вычисление с привязанными моделью и параметрами."""

    def __init__(self, resolver: PropertyResolver, model: Any, params: Sequence[Any]):
        self.resolver = resolver
        self.model = model
        self.params = params

    def evaluate(self, expression: Expression) -> Any:
        return self._evaluate_or(expression.root)

    def _evaluate_or(self, node: OrExpression) -> Any:
        left = self._evaluate_and(node.terms[0])
        for term in node.terms[1:]:
            # Правый операнд вычисляется до проверки левого
            right = self._evaluate_and(term)
            if left is None or right is None:
                raise EvaluationError("Unable to determine OR value on null values")
            if not (isinstance(left, bool) and isinstance(right, bool)):
                raise EvaluationError(
                    f"Unable to determine OR value for an instance of {kind_name(left)}, "
                    f"and an instance of {kind_name(right)}"
                )
            left = left or right
            if left:
                return True
        return left

    def _evaluate_and(self, node: AndExpression) -> Any:
        left = self._evaluate_equality(node.terms[0])
        for term in node.terms[1:]:
            right = self._evaluate_equality(term)
            if left is None or right is None:
                raise EvaluationError("Unable to determine AND value on null values")
            if not (isinstance(left, bool) and isinstance(right, bool)):
                raise EvaluationError(
                    f"Unable to determine AND value for an instance of {kind_name(left)}, "
                    f"and an instance of {kind_name(right)}"
                )
            left = left and right
            if not left:
                return False
        return left

    def _evaluate_equality(self, node: EqualityExpression) -> Any:
        left = self._evaluate_relational(node.left)
        if node.op is None:
            return left
        right = self._evaluate_relational(node.right)
        if left is None or right is None:
            equal = left is None and right is None
        else:
            equal = type(left) is type(right) and left == right
        return equal if node.op == EqualityOp.EQ else not equal

    def _evaluate_relational(self, node: RelationalExpression) -> Any:
        left = self._evaluate_add(node.left)
        if node.op is None:
            return left
        right = self._evaluate_add(node.right)
        if left is None or right is None:
            raise EvaluationError("Unable to compare null values")
        if not ((_is_int(left) and _is_int(right)) or (_is_float(left) and _is_float(right))):
            raise EvaluationError(
                f"Unable to compare an instance of {kind_name(left)}, and an instance of {kind_name(right)}"
            )
        if node.op == RelationalOp.GT:
            return left > right
        if node.op == RelationalOp.GE:
            return left >= right
        if node.op == RelationalOp.LT:
            return left < right
        return left <= right

    def _evaluate_add(self, node: AddExpression) -> Any:
        left = self._evaluate_multiply(node.first)
        for op, term in node.rest:
            right = self._evaluate_multiply(term)
            if left is None:
                raise EvaluationError("Unable to add, or subtract from a null value")
            if right is None:
                raise EvaluationError("Unable to add, or subtract a null value")
            if _is_int(left) and _is_int(right):
                left = _wrap64(left + right if op == AddOp.PLUS else left - right)
            elif _is_float(left) and _is_float(right):
                left = left + right if op == AddOp.PLUS else left - right
            elif op == AddOp.PLUS:
                raise EvaluationError(
                    f"Unable to add an instance of {kind_name(left)}, and an instance of {kind_name(right)}"
                )
            else:
                raise EvaluationError(
                    f"Unable to subtract an instance of {kind_name(right)} "
                    f"from an instance of {kind_name(left)}"
                )
        return left

    def _evaluate_multiply(self, node: MultiplyExpression) -> Any:
        left = self._evaluate_unary(node.left)
        if node.op is None:
            return left
        right = self._evaluate_unary(node.right)
        if left is None or right is None:
            raise EvaluationError("Unable to multiply, or divide a null value")

        if _is_int(left) and _is_int(right):
            return _integer_multiply(node.op, left, right)
        if _is_float(left) and _is_float(right):
            return _double_multiply(node.op, left, right)

        verb = {
            MultiplyOp.MUL: "multiply",
            MultiplyOp.DIV: "divide",
            MultiplyOp.MOD: "build modulus for",
        }[node.op]
        raise EvaluationError(
            f"Unable to {verb} an instance of {kind_name(left)} and an instance of {kind_name(right)}"
        )

    def _evaluate_unary(self, node: UnaryExpression) -> Any:
        value = self._evaluate_value(node.value)
        if node.op is None:
            return value
        if value is None:
            raise EvaluationError(f"Unable to evaluate {node.op.name} on a null value")

        if node.op == UnaryOp.NOT:
            if isinstance(value, bool):
                return not value
        elif node.op == UnaryOp.MINUS:
            if _is_int(value):
                return _wrap64(-value)
            if _is_float(value):
                return -value
        elif node.op == UnaryOp.EMPTY:
            if isinstance(value, str):
                return len(value) == 0
        raise EvaluationError(f"Unable to evaluate {node.op.name} on an instance of {kind_name(value)}")

    def _evaluate_value(self, node: ValueExpression) -> Any:
        kind = node.kind
        if kind in (ValueKind.BOOLEAN, ValueKind.DOUBLE, ValueKind.INTEGER, ValueKind.STRING):
            return node.literal
        if kind == ValueKind.PARAMETER:
            index = node.parameter_index
            if index >= len(self.params):
                raise EvaluationError(f"Expected at least {index + 1} parameters, got {len(self.params)}")
            return canonicalize(self.params[index])
        if kind == ValueKind.VARIABLE:
            return self._evaluate_variable(node.variable)
        if kind == ValueKind.NESTED:
            return self.evaluate(node.nested)
        return None

    def _evaluate_variable(self, ref: VariableReference) -> Any:
        conversion = ref.conversion
        if self.model is None:
            raise EvaluationError(f"No model available to resolve property {ref.path}")
        value = self.resolver.get_value(self.model, ref.base_path)

        if conversion is None:
            return canonicalize(value)
        if conversion == "toString":
            return to_text(value)
        if conversion == "toInt":
            return _to_int(ref.path, value)
        return _to_float(ref.path, value)


def _integer_multiply(op: MultiplyOp, left: int, right: int) -> int:
    if op == MultiplyOp.MUL:
        return _wrap64(left * right)
    if right == 0:
        raise EvaluationError("Integer division by zero")
    # Деление с усечением к нулю, остаток со знаком делимого
    quotient = abs(left) // abs(right)
    if (left < 0) != (right < 0):
        quotient = -quotient
    if op == MultiplyOp.DIV:
        return _wrap64(quotient)
    return left - right * quotient


def _double_multiply(op: MultiplyOp, left: float, right: float) -> float:
    if op == MultiplyOp.MUL:
        return left * right
    if op == MultiplyOp.DIV:
        if right == 0.0:
            if left == 0.0 or math.isnan(left):
                return math.nan
            return math.copysign(math.inf, left) * math.copysign(1.0, right)
        return left / right
    if right == 0.0 or math.isinf(left):
        return math.nan
    return math.fmod(left, right)


def _to_int(prop: str, value: Any) -> int:
    if value is None:
        raise EvaluationError(f"Unable to convert a null value to an integer (property {prop})")
    if isinstance(value, numbers.Integral) and not isinstance(value, bool):
        return canonicalize(value)
    if isinstance(value, str):
        if not _INTEGER_TEXT.fullmatch(value):
            raise EvaluationError(f"Invalid integer value for property {prop}: {value}")
        result = int(value)
        if not INT64_MIN <= result <= INT64_MAX:
            raise EvaluationError(f"Invalid integer value for property {prop}: {value}")
        return result
    raise EvaluationError(f"Unable to convert an instance of {kind_name(value)} to an integer (property {prop})")


def _to_float(prop: str, value: Any) -> float:
    if value is None:
        raise EvaluationError(f"Unable to convert a null value to a float (property {prop})")
    if isinstance(value, numbers.Integral) and not isinstance(value, bool):
        return float(canonicalize(value))
    if isinstance(value, numbers.Real) and not isinstance(value, numbers.Rational):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            raise EvaluationError(f"Invalid float value for property {prop}: {value}") from None
    raise EvaluationError(
        f"Unable to convert an instance of {kind_name(value)} to a floating point number (property {prop})"
    )


def evaluate_expression_string(
    text: str,
    model: Any,
    params: Optional[Sequence[Any]] = None,
    resolver: Optional[PropertyResolver] = None,
) -> Any:
    """
    Удобная функция для вычисления выражения из строки.

    Args:
        text: Строка выражения
        model: Модель данных
        params: Позиционные параметры
        resolver: Резолвер свойств (по умолчанию DefaultPropertyResolver)

    Returns:
        Результат вычисления

    Raises:
        ExpressionSyntaxError: При ошибке парсинга
        EvaluationError: При ошибке вычисления
    """
    from .parser import ExpressionParser

    expression = ExpressionParser().parse(text)
    return ExpressionEvaluator(resolver).evaluate(expression, model, params)


__all__ = [
    "ExpressionEvaluator",
    "EvaluationError",
    "canonicalize",
    "to_text",
    "kind_name",
    "evaluate_expression_string",
]
