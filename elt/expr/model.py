"""
Модели данных для выражений.

Неизменяемые узлы AST, по одному классу на уровень приоритета операторов:
Or → And → Equality → Relational → Add → Multiply → Unary → Value.

Бинарный узел с op = None является «проходным»: его значение — значение
левого операнда без изменений.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union


class EqualityOp(Enum):
    EQ = "=="
    NE = "!="


class RelationalOp(Enum):
    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="


class AddOp(Enum):
    PLUS = "+"
    MINUS = "-"


class MultiplyOp(Enum):
    MUL = "*"
    DIV = "/"
    MOD = "%"


class UnaryOp(Enum):
    NOT = "!"
    MINUS = "-"
    EMPTY = "empty"


class ValueKind(Enum):
    """Что именно хранит ValueExpression."""
    BOOLEAN = "boolean"
    DOUBLE = "double"
    INTEGER = "integer"
    STRING = "string"
    PARAMETER = "parameter"
    VARIABLE = "variable"
    NESTED = "nested"
    NULL = "null"


# Псевдо-свойства преобразования в конце пути переменной
TO_STRING_SUFFIX = ".toString"
TO_INT_SUFFIX = ".toInt"
TO_FLOAT_SUFFIX = ".toFloat"


@dataclass(frozen=True)
class VariableReference:
    """
    Ссылка на свойство модели: foo, foo.bar, foo.bar.toInt

    Путь может оканчиваться псевдо-свойством .toString, .toInt или .toFloat.
    """
    path: str

    @property
    def conversion(self) -> Optional[str]:
        """Суффикс преобразования без точки ('toString' и т.п.) или None."""
        for suffix in (TO_STRING_SUFFIX, TO_INT_SUFFIX, TO_FLOAT_SUFFIX):
            if self.path.endswith(suffix) and len(self.path) > len(suffix):
                return suffix[1:]
        return None

    @property
    def base_path(self) -> str:
        """Путь без суффикса преобразования."""
        conversion = self.conversion
        if conversion is None:
            return self.path
        return self.path[:-(len(conversion) + 1)]

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class ValueExpression:
    """
    Первичное значение: литерал, параметр ?N, переменная, выражение в скобках
    или null.

    Заполнено ровно одно поле, соответствующее kind.
    """
    kind: ValueKind
    literal: Union[bool, int, float, str, None] = None
    parameter_index: Optional[int] = None
    variable: Optional[VariableReference] = None
    nested: Optional[Expression] = None

    @classmethod
    def of_boolean(cls, value: bool) -> ValueExpression:
        return cls(kind=ValueKind.BOOLEAN, literal=value)

    @classmethod
    def of_integer(cls, value: int) -> ValueExpression:
        return cls(kind=ValueKind.INTEGER, literal=value)

    @classmethod
    def of_double(cls, value: float) -> ValueExpression:
        return cls(kind=ValueKind.DOUBLE, literal=value)

    @classmethod
    def of_string(cls, value: str) -> ValueExpression:
        return cls(kind=ValueKind.STRING, literal=value)

    @classmethod
    def of_parameter(cls, index: int) -> ValueExpression:
        return cls(kind=ValueKind.PARAMETER, parameter_index=index)

    @classmethod
    def of_variable(cls, path: str) -> ValueExpression:
        return cls(kind=ValueKind.VARIABLE, variable=VariableReference(path))

    @classmethod
    def of_nested(cls, expression: Expression) -> ValueExpression:
        return cls(kind=ValueKind.NESTED, nested=expression)

    @classmethod
    def null(cls) -> ValueExpression:
        return cls(kind=ValueKind.NULL)

    def __str__(self) -> str:
        if self.kind == ValueKind.BOOLEAN:
            return "true" if self.literal else "false"
        if self.kind == ValueKind.STRING:
            escaped = str(self.literal).replace("\\", "\\\\").replace("'", "\\'")
            return f"'{escaped}'"
        if self.kind in (ValueKind.INTEGER, ValueKind.DOUBLE):
            return repr(self.literal)
        if self.kind == ValueKind.PARAMETER:
            return f"?{self.parameter_index}"
        if self.kind == ValueKind.VARIABLE:
            return str(self.variable)
        if self.kind == ValueKind.NESTED:
            return f"({self.nested})"
        return "null"


@dataclass(frozen=True)
class UnaryExpression:
    value: ValueExpression
    op: Optional[UnaryOp] = None

    def __str__(self) -> str:
        if self.op is None:
            return str(self.value)
        if self.op == UnaryOp.EMPTY:
            return f"empty {self.value}"
        return f"{self.op.value}{self.value}"


@dataclass(frozen=True)
class MultiplyExpression:
    left: UnaryExpression
    op: Optional[MultiplyOp] = None
    right: Optional[UnaryExpression] = None

    def __str__(self) -> str:
        return _binary_str(self.left, self.op, self.right)


@dataclass(frozen=True)
class AddExpression:
    """
    Цепочка сложений/вычитаний: first (op term)*

    Вычисляется слева направо.
    """
    first: MultiplyExpression
    rest: Tuple[Tuple[AddOp, MultiplyExpression], ...] = ()

    def __str__(self) -> str:
        parts = [str(self.first)]
        for op, term in self.rest:
            parts.append(op.value)
            parts.append(str(term))
        return " ".join(parts)


@dataclass(frozen=True)
class RelationalExpression:
    left: AddExpression
    op: Optional[RelationalOp] = None
    right: Optional[AddExpression] = None

    def __str__(self) -> str:
        return _binary_str(self.left, self.op, self.right)


@dataclass(frozen=True)
class EqualityExpression:
    left: RelationalExpression
    op: Optional[EqualityOp] = None
    right: Optional[RelationalExpression] = None

    def __str__(self) -> str:
        return _binary_str(self.left, self.op, self.right)


@dataclass(frozen=True)
class AndExpression:
    terms: Tuple[EqualityExpression, ...]

    def __str__(self) -> str:
        return " && ".join(str(t) for t in self.terms)


@dataclass(frozen=True)
class OrExpression:
    terms: Tuple[AndExpression, ...]

    def __str__(self) -> str:
        return " || ".join(str(t) for t in self.terms)


@dataclass(frozen=True)
class Expression:
    """
    Корень разобранного выражения.

    Attributes:
        root: Выражение верхнего уровня
        num_parameters: Сколько позиционных параметров ожидает выражение
            (максимальный индекс ?N плюс один)
        source: Исходный текст выражения (для диагностики)
    """
    root: OrExpression
    num_parameters: int = 0
    source: str = field(default="", compare=False)

    def __str__(self) -> str:
        return str(self.root)


def _binary_str(left, op, right) -> str:
    if op is None:
        return str(left)
    return f"{left} {op.value} {right}"


# Объединенный тип для всех узлов выражения
AnyExpressionNode = Union[
    Expression,
    OrExpression,
    AndExpression,
    EqualityExpression,
    RelationalExpression,
    AddExpression,
    MultiplyExpression,
    UnaryExpression,
    ValueExpression,
]

__all__ = [
    "EqualityOp",
    "RelationalOp",
    "AddOp",
    "MultiplyOp",
    "UnaryOp",
    "ValueKind",
    "VariableReference",
    "ValueExpression",
    "UnaryExpression",
    "MultiplyExpression",
    "AddExpression",
    "RelationalExpression",
    "EqualityExpression",
    "AndExpression",
    "OrExpression",
    "Expression",
    "AnyExpressionNode",
    "TO_STRING_SUFFIX",
    "TO_INT_SUFFIX",
    "TO_FLOAT_SUFFIX",
]
