"""
Лексер для разбора выражений.

Выполняет токенизацию строки выражения, разбивая её на значимые элементы:
- Числа (целые и с плавающей точкой)
- Строки в одинарных или двойных кавычках
- Позиционные параметры (?0, ?1, ...)
- Идентификаторы и составные пути (foo, foo.bar.toInt)
- Ключевые слова (true, false, null, empty)
- Операторы (||, &&, ==, !=, >=, <=, >, <, +, -, *, /, %, !)
- Скобки
- Пробелы (игнорируются)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List

from ..errors import ELTUserError


class ExpressionSyntaxError(ELTUserError):
    """Синтаксическая ошибка в выражении."""

    def __init__(self, message: str, position: int):
        self.message = message
        self.position = position
        super().__init__(f"Syntax error at position {position}: {message}")


@dataclass
class Token:
    """
    Токен выражения.

    Attributes:
        type: Тип токена (NUMBER, STRING, PARAM, IDENTIFIER, KEYWORD, OPERATOR, SYMBOL, EOF)
        value: Значение токена (для STRING — уже без кавычек и экранирования)
        position: Позиция в исходной строке
    """
    type: str
    value: str
    position: int

    def __repr__(self):
        return f"Token({self.type}, '{self.value}', pos={self.position})"


_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    "'": "'",
    '"': '"',
}


class ExpressionLexer:
    """
    Лексер для разбиения строки выражения на токены.
    """

    # Спецификация токенов: (regex_pattern, token_type, ignore_flag)
    TOKEN_SPECS = [
        (r'\s+', 'WHITESPACE', True),

        # Числа: 1.5, .5, 1e3, 2.5E-2, 42
        (r'\d+\.\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|\d+[eE][+-]?\d+|\d+', 'NUMBER', False),

        (r"'(?:[^'\\]|\\.)*'", 'STRING', False),
        (r'"(?:[^"\\]|\\.)*"', 'STRING', False),

        (r'\?\d+', 'PARAM', False),

        # Идентификатор или составной путь; сегмент начинается с буквы (любой), _ или $
        (r'(?:[^\W\d]|\$)[\w$]*(?:\.(?:[^\W\d]|\$)[\w$]*)*', 'IDENTIFIER', False),

        # Двухсимвольные операторы проверяем раньше односимвольных
        (r'\|\||&&|==|!=|>=|<=', 'OPERATOR', False),
        (r'[><+\-*/%!]', 'OPERATOR', False),

        (r'[()]', 'SYMBOL', False),

        (r'.', 'UNKNOWN', False),
    ]

    KEYWORDS = {'true', 'false', 'null', 'empty'}

    # Словесные синонимы операторов
    WORD_OPERATORS = {
        'and': '&&',
        'or': '||',
        'not': '!',
        'eq': '==',
        'ne': '!=',
        'gt': '>',
        'ge': '>=',
        'lt': '<',
        'le': '<=',
        'div': '/',
        'mod': '%',
    }

    def __init__(self):
        self._compiled_patterns = [
            (re.compile(pattern, re.DOTALL), token_type, ignore)
            for pattern, token_type, ignore in self.TOKEN_SPECS
        ]

    def tokenize(self, text: str) -> List[Token]:
        """
        Разбивает строку на токены.

        Args:
            text: Строка выражения

        Returns:
            Список токенов, включая EOF в конце

        Raises:
            ExpressionSyntaxError: При обнаружении неизвестного символа
                или незакрытой строки
        """
        tokens: List[Token] = []
        position = 0

        while position < len(text):
            for pattern, token_type, ignore in self._compiled_patterns:
                match = pattern.match(text, position)
                if not match:
                    continue

                value = match.group(0)
                if not ignore:
                    tokens.append(self._make_token(token_type, value, position))
                position = match.end()
                break

        tokens.append(Token(type='EOF', value='', position=position))
        return tokens

    def tokenize_stream(self, text: str) -> Iterator[Token]:
        """Генератор для ленивой токенизации."""
        for token in self.tokenize(text):
            yield token

    def _make_token(self, token_type: str, value: str, position: int) -> Token:
        if token_type == 'UNKNOWN':
            if value in ("'", '"'):
                raise ExpressionSyntaxError("Unterminated string literal", position)
            raise ExpressionSyntaxError(f"Unexpected character '{value}'", position)

        if token_type == 'STRING':
            return Token(type='STRING', value=_unescape(value[1:-1], position), position=position)

        if token_type == 'IDENTIFIER':
            if value in self.KEYWORDS:
                return Token(type='KEYWORD', value=value, position=position)
            if value in self.WORD_OPERATORS:
                return Token(type='OPERATOR', value=self.WORD_OPERATORS[value], position=position)

        return Token(type=token_type, value=value, position=position)


def _unescape(body: str, position: int) -> str:
    if "\\" not in body:
        return body
    out: List[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\":
            nxt = body[i + 1]
            if nxt not in _ESCAPES:
                raise ExpressionSyntaxError(f"Invalid escape sequence '\\{nxt}'", position + 1 + i)
            out.append(_ESCAPES[nxt])
            i += 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


__all__ = ["ExpressionLexer", "ExpressionSyntaxError", "Token"]
