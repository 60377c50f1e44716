"""
Парсер выражений с рекурсивным спуском.

Строит абстрактное синтаксическое дерево (AST) из последовательности токенов.

Грамматика (от низшего приоритета к высшему):
or          → and ("||" and)*
and         → equality ("&&" equality)*
equality    → relational (("==" | "!=") relational)?
relational  → add ((">" | ">=" | "<" | "<=") add)?
add         → multiply (("+" | "-") multiply)*
multiply    → unary (("*" | "/" | "%") unary)?
unary       → ("!" | "-")? value | "empty" value
value       → BOOLEAN | NUMBER | STRING | "null" | "?" INDEX | PATH | "(" or ")"
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .lexer import ExpressionLexer, ExpressionSyntaxError, Token
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
)

logger = logging.getLogger(__name__)

_INT64_MAX = 2 ** 63 - 1

_EQUALITY_OPS = {op.value: op for op in EqualityOp}
_RELATIONAL_OPS = {op.value: op for op in RelationalOp}
_ADD_OPS = {op.value: op for op in AddOp}
_MULTIPLY_OPS = {op.value: op for op in MultiplyOp}


class ExpressionParser:
    """
    Парсер выражений с рекурсивным спуском.

    Экземпляр не потокобезопасен (хранит позицию в списке токенов);
    результат разбора неизменяем и может использоваться совместно.
    """

    def __init__(self):
        self.lexer = ExpressionLexer()
        self._tokens: List[Token] = []
        self._position = 0
        self._max_parameter = -1

    def parse(self, text: str) -> Expression:
        """
        Парсит строку выражения в AST.

        Args:
            text: Строка выражения

        Returns:
            Корневой узел AST

        Raises:
            ExpressionSyntaxError: При синтаксической ошибке
        """
        self._tokens = self.lexer.tokenize(text)
        self._position = 0
        self._max_parameter = -1

        if self._is_at_end():
            raise ExpressionSyntaxError("Empty expression", 0)

        root = self._parse_or()

        if not self._is_at_end():
            current = self._current_token()
            raise ExpressionSyntaxError(f"Unexpected token '{current.value}'", current.position)

        expression = Expression(root=root, num_parameters=self._max_parameter + 1, source=text)
        logger.debug("Parsed expression %r -> %s", text, expression)
        return expression

    def _parse_or(self) -> OrExpression:
        terms = [self._parse_and()]
        while self._match_operator("||"):
            terms.append(self._parse_and())
        return OrExpression(terms=tuple(terms))

    def _parse_and(self) -> AndExpression:
        terms = [self._parse_equality()]
        while self._match_operator("&&"):
            terms.append(self._parse_equality())
        return AndExpression(terms=tuple(terms))

    def _parse_equality(self) -> EqualityExpression:
        left = self._parse_relational()
        op = self._match_any(_EQUALITY_OPS)
        if op is None:
            return EqualityExpression(left=left)
        return EqualityExpression(left=left, op=op, right=self._parse_relational())

    def _parse_relational(self) -> RelationalExpression:
        left = self._parse_add()
        op = self._match_any(_RELATIONAL_OPS)
        if op is None:
            return RelationalExpression(left=left)
        return RelationalExpression(left=left, op=op, right=self._parse_add())

    def _parse_add(self) -> AddExpression:
        first = self._parse_multiply()
        rest = []
        while True:
            op = self._match_any(_ADD_OPS)
            if op is None:
                break
            rest.append((op, self._parse_multiply()))
        return AddExpression(first=first, rest=tuple(rest))

    def _parse_multiply(self) -> MultiplyExpression:
        left = self._parse_unary()
        op = self._match_any(_MULTIPLY_OPS)
        if op is None:
            return MultiplyExpression(left=left)
        return MultiplyExpression(left=left, op=op, right=self._parse_unary())

    def _parse_unary(self) -> UnaryExpression:
        if self._match_operator("!"):
            return UnaryExpression(value=self._parse_value(), op=UnaryOp.NOT)
        if self._match_operator("-"):
            current = self._current_token()
            if current.type == 'NUMBER' and current.value.isdigit() and int(current.value) == _INT64_MAX + 1:
                # -9223372036854775808 записывается только через унарный минус
                self._advance()
                return UnaryExpression(value=ValueExpression.of_integer(-(_INT64_MAX + 1)))
            return UnaryExpression(value=self._parse_value(), op=UnaryOp.MINUS)
        if self._match_keyword("empty"):
            return UnaryExpression(value=self._parse_value(), op=UnaryOp.EMPTY)
        return UnaryExpression(value=self._parse_value())

    def _parse_value(self) -> ValueExpression:
        """Парсит первичное значение (литералы, параметры, переменные, скобки)."""
        current = self._current_token()

        if self._match_symbol("("):
            inner = self._parse_or()
            if not self._match_symbol(")"):
                raise ExpressionSyntaxError("Expected ')' after grouped expression", self._current_position())
            return ValueExpression.of_nested(Expression(root=inner))

        if current.type == 'KEYWORD':
            if current.value in ("true", "false"):
                self._advance()
                return ValueExpression.of_boolean(current.value == "true")
            if current.value == "null":
                self._advance()
                return ValueExpression.null()

        if current.type == 'NUMBER':
            self._advance()
            return self._number_value(current)

        if current.type == 'STRING':
            self._advance()
            return ValueExpression.of_string(current.value)

        if current.type == 'PARAM':
            self._advance()
            index = int(current.value[1:])
            self._max_parameter = max(self._max_parameter, index)
            return ValueExpression.of_parameter(index)

        if current.type == 'IDENTIFIER':
            self._advance()
            return ValueExpression.of_variable(current.value)

        if current.type == 'EOF':
            raise ExpressionSyntaxError("Unexpected end of expression", current.position)
        raise ExpressionSyntaxError(f"Unexpected token '{current.value}'", current.position)

    @staticmethod
    def _number_value(token: Token) -> ValueExpression:
        text = token.value
        if any(ch in text for ch in ".eE"):
            return ValueExpression.of_double(float(text))
        value = int(text)
        if value > _INT64_MAX:
            raise ExpressionSyntaxError(f"Integer literal out of range: {text}", token.position)
        return ValueExpression.of_integer(value)

    # Вспомогательные методы для работы с токенами

    def _current_token(self) -> Token:
        if self._position >= len(self._tokens):
            return self._tokens[-1]
        return self._tokens[self._position]

    def _current_position(self) -> int:
        return self._current_token().position

    def _is_at_end(self) -> bool:
        return self._current_token().type == 'EOF'

    def _advance(self) -> Token:
        token = self._current_token()
        if not self._is_at_end():
            self._position += 1
        return token

    def _match_operator(self, operator: str) -> bool:
        current = self._current_token()
        if current.type == 'OPERATOR' and current.value == operator:
            self._advance()
            return True
        return False

    def _match_any(self, operators: dict) -> Optional[object]:
        """Потребляет один из операторов уровня и возвращает его enum-значение."""
        current = self._current_token()
        if current.type == 'OPERATOR' and current.value in operators:
            self._advance()
            return operators[current.value]
        return None

    def _match_keyword(self, keyword: str) -> bool:
        current = self._current_token()
        if current.type == 'KEYWORD' and current.value == keyword:
            self._advance()
            return True
        return False

    def _match_symbol(self, symbol: str) -> bool:
        current = self._current_token()
        if current.type == 'SYMBOL' and current.value == symbol:
            self._advance()
            return True
        return False


def parse_expression(text: str) -> Expression:
    """
    Удобная функция для разбора выражения.

    Args:
        text: Строка выражения

    Returns:
        Неизменяемое AST выражения
    """
    return ExpressionParser().parse(text)


__all__ = ["ExpressionParser", "ExpressionSyntaxError", "parse_expression"]
