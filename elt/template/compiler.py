"""
Компилятор построчных шаблонов.

Строка, которая начинается с ``<%`` и заканчивается на ``%>``, — директива:

    <% if expr %>  <% else %>  <% /if %>
    <% for item in path %>  (или <% for item : path %>)  <% /for %>

Любая другая строка — литерал с подстановками ``${path}``. Литеральная
строка выводится целиком и завершается разделителем строк; директивы
ничего не выводят.

Результат компиляции — CompiledTemplate, неизменяемый список действий.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any, Iterator, List, Optional, Sequence

from ..expr.evaluator import EvaluationError, ExpressionEvaluator, to_text
from ..expr.lexer import ExpressionSyntaxError
from ..expr.model import Expression
from ..expr.parser import ExpressionParser
from ..resolver import DefaultPropertyResolver, PropertyResolver, ResolutionError
from .blocks import Action, Block, CompiledTemplate, ForBlock, IfBlock, OuterBlock
from .context import RenderContext
from .errors import TemplateCompileError, TemplateRenderError

logger = logging.getLogger(__name__)

DIRECTIVE_START = "<%"
DIRECTIVE_END = "%>"
VARIABLE_START = "${"
VARIABLE_END = "}"

_COMMAND = re.compile(r"(/?[A-Za-z]+)(.*)", re.DOTALL)


def is_directive(line: str) -> bool:
    return (
        len(line) >= len(DIRECTIVE_START) + len(DIRECTIVE_END)
        and line.startswith(DIRECTIVE_START)
        and line.endswith(DIRECTIVE_END)
    )


class TemplateCompiler:
    """
    Компилятор шаблонов.

    Экземпляр не хранит состояния компиляции: стек блоков живет внутри
    вызова compile(), поэтому один компилятор можно использовать
    из нескольких потоков.
    """

    def __init__(
        self,
        resolver: Optional[PropertyResolver] = None,
        evaluator: Optional[ExpressionEvaluator] = None,
        parser: Optional[ExpressionParser] = None,
        uri: Optional[str] = None,
        accept_string_conditions: bool = True,
    ):
        """
        Args:
            resolver: Резолвер для подстановок ${...} и путей циклов
            evaluator: Вычислитель условий if (по умолчанию на том же резолвере)
            parser: Парсер выражений; если не задан, на каждый вызов compile()
                создается новый
            uri: Имя шаблона для сообщений об ошибках
            accept_string_conditions: Разрешать строковые условия "true"/"false"
        """
        self.resolver = resolver or DefaultPropertyResolver()
        self.evaluator = evaluator or ExpressionEvaluator(self.resolver)
        self.parser = parser
        self.uri = uri
        self.accept_string_conditions = accept_string_conditions

    def compile(self, lines: Iterable[str], uri: Optional[str] = None) -> CompiledTemplate:
        """
        Компилирует последовательность строк (без разделителей строк).

        Raises:
            TemplateCompileError: При структурной ошибке шаблона
        """
        uri = uri if uri is not None else self.uri
        parser = self.parser or ExpressionParser()
        stack: List[Block] = [OuterBlock()]
        line_number = 0

        logger.debug("Compiling template %s", uri or "<string>")
        for line_number, line in enumerate(lines, start=1):
            line = line.rstrip("\r\n")
            if is_directive(line):
                command = line[len(DIRECTIVE_START):-len(DIRECTIVE_END)].strip()
                self._compile_directive(stack, command, line_number, uri, parser)
            else:
                self._compile_line(stack[-1], line, line_number, uri)

        if len(stack) > 1:
            block = stack[-1]
            kind = "if" if isinstance(block, IfBlock) else "for"
            raise TemplateCompileError(
                f"Unterminated {kind} statement, beginning at line {block.line_number}",
                block.line_number,
                uri,
            )

        compiled = CompiledTemplate(actions=tuple(stack[0].actions), uri=uri, line_count=line_number)
        logger.debug("Compiled template %s: %d lines, %d actions",
                      uri or "<string>", line_number, len(compiled.actions))
        return compiled

    # ---------- директивы ----------

    def _compile_directive(
        self,
        stack: List[Block],
        command: str,
        line_number: int,
        uri: Optional[str],
        parser: ExpressionParser,
    ) -> None:
        match = _COMMAND.fullmatch(command)
        keyword = match.group(1) if match else ""
        rest = match.group(2).strip() if match else ""
        top = stack[-1]

        if keyword == "if":
            if not rest:
                raise TemplateCompileError("Missing expression in if statement", line_number, uri)
            try:
                condition = parser.parse(rest)
            except ExpressionSyntaxError as e:
                raise TemplateCompileError(f"Failed to parse if expression '{rest}': {e}", line_number, uri) from e
            self._push(stack, IfBlock(line_number=line_number, condition=condition))

        elif keyword == "else" and not rest:
            if not isinstance(top, IfBlock) or top.has_else:
                raise _unexpected("else", top, line_number, uri)
            top.start_else()

        elif keyword == "/if" and not rest:
            if not isinstance(top, IfBlock):
                raise _unexpected("/if", top, line_number, uri)
            self._pop(stack)
            stack[-1].add(_if_action(
                self.evaluator,
                top.condition,
                tuple(top.actions),
                tuple(top.else_actions),
                top.line_number,
                uri,
                self.accept_string_conditions,
            ))

        elif keyword == "for":
            loop_var, list_path = _parse_for(rest, line_number, uri)
            self._push(stack, ForBlock(line_number=line_number, loop_var=loop_var, list_path=list_path))

        elif keyword == "/for" and not rest:
            if not isinstance(top, ForBlock):
                raise _unexpected("/for", top, line_number, uri)
            self._pop(stack)
            stack[-1].add(_for_action(
                self.resolver,
                top.loop_var,
                top.list_path,
                tuple(top.actions),
                top.line_number,
                uri,
            ))

        else:
            raise TemplateCompileError(f"Invalid command: <%{command}%>", line_number, uri)

    @staticmethod
    def _push(stack: List[Block], block: Block) -> None:
        stack.append(block)
        logger.debug("Open %s at line %d (depth %d)", type(block).__name__, block.line_number, len(stack) - 1)

    @staticmethod
    def _pop(stack: List[Block]) -> Block:
        block = stack.pop()
        logger.debug("Close %s from line %d (depth %d)", type(block).__name__, block.line_number, len(stack))
        return block

    # ---------- литеральные строки ----------

    def _compile_line(self, block: Block, line: str, line_number: int, uri: Optional[str]) -> None:
        rest = line
        while True:
            offset = rest.find(VARIABLE_START)
            if offset == -1:
                block.add(_line_action(rest))
                return

            if offset > 0:
                block.add(_text_action(rest[:offset]))
            rest = rest[offset + len(VARIABLE_START):]

            end = rest.find(VARIABLE_END)
            if end == -1:
                raise TemplateCompileError("Unterminated variable reference", line_number, uri)
            nested = rest.find(VARIABLE_START)
            if nested != -1 and nested < end:
                raise TemplateCompileError("Nested variable reference", line_number, uri)

            path = rest[:end].strip()
            if not path:
                raise TemplateCompileError("Empty variable reference", line_number, uri)
            block.add(_variable_action(self.resolver, path, line_number, uri))
            rest = rest[end + len(VARIABLE_END):]


def _unexpected(directive: str, top: Block, line_number: int, uri: Optional[str]) -> TemplateCompileError:
    message = f"Unexpected <%{directive}%>"
    if top.closer is not None:
        message += f" (Expected <%{top.closer}%>)"
    return TemplateCompileError(message, line_number, uri)


def _parse_for(rest: str, line_number: int, uri: Optional[str]) -> tuple:
    words = rest.split()
    if len(words) != 3 or words[1] not in ("in", ":"):
        raise TemplateCompileError(
            f"Unable to parse for statement '{rest}' (Expected <loopVar> in <listVar>)", line_number, uri
        )
    loop_var, _, list_path = words
    if "." in loop_var:
        raise TemplateCompileError(f"Loop variable must be a simple name: {loop_var}", line_number, uri)
    return loop_var, list_path


# ---------- действия ----------

def _run(actions: Sequence[Action], ctx: RenderContext) -> None:
    for action in actions:
        action(ctx)


def _resolve(
    resolver: PropertyResolver,
    ctx: RenderContext,
    path: str,
    line_number: int,
    uri: Optional[str],
) -> Any:
    if ctx.model is None:
        raise TemplateRenderError(f"No model to resolve {path}", line_number, uri)
    try:
        return resolver.get_value(ctx.model, path)
    except ResolutionError as e:
        raise TemplateRenderError(str(e), line_number, uri) from e


def _text_action(text: str) -> Action:
    def action(ctx: RenderContext) -> None:
        ctx.write(text)
    return action


def _line_action(text: str) -> Action:
    def action(ctx: RenderContext) -> None:
        ctx.writeln(text)
    return action


def _variable_action(resolver: PropertyResolver, path: str, line_number: int, uri: Optional[str]) -> Action:
    def action(ctx: RenderContext) -> None:
        value = _resolve(resolver, ctx, path, line_number, uri)
        if value is None:
            raise TemplateRenderError(f"Variable resolved to null: {path}", line_number, uri)
        ctx.write(to_text(value))
    return action


def _if_action(
    evaluator: ExpressionEvaluator,
    condition: Expression,
    then: Sequence[Action],
    otherwise: Sequence[Action],
    line_number: int,
    uri: Optional[str],
    accept_strings: bool,
) -> Action:
    def action(ctx: RenderContext) -> None:
        try:
            value = evaluator.evaluate(condition, ctx.model)
        except (EvaluationError, ResolutionError) as e:
            raise TemplateRenderError(
                f"Failed to evaluate if expression '{condition.source}': {e}", line_number, uri
            ) from e
        flag = _condition_flag(value, condition, line_number, uri, accept_strings)
        _run(then if flag else otherwise, ctx)
    return action


def _condition_flag(
    value: Any,
    condition: Expression,
    line_number: int,
    uri: Optional[str],
    accept_strings: bool,
) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        raise TemplateRenderError(f"Expression evaluates to null: {condition.source}", line_number, uri)
    if isinstance(value, str) and accept_strings:
        return value.lower() == "true"
    raise TemplateRenderError(
        f"Expression must evaluate to a boolean, got {type(value).__name__}: {condition.source}",
        line_number,
        uri,
    )


def _for_action(
    resolver: PropertyResolver,
    loop_var: str,
    list_path: str,
    body: Sequence[Action],
    line_number: int,
    uri: Optional[str],
) -> Action:
    def action(ctx: RenderContext) -> None:
        items = _resolve(resolver, ctx, list_path, line_number, uri)
        if items is None:
            raise TemplateRenderError(f"List variable resolved to null: {list_path}", line_number, uri)
        if isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Iterable):
            raise TemplateRenderError(
                f"Value of {list_path} is not iterable: {type(items).__name__}", line_number, uri
            )

        model = ctx.model
        shadow = _shadow_model(model, resolver)
        ctx.model = shadow
        try:
            for item in items:
                shadow[loop_var] = item
                _run(body, ctx)
        finally:
            ctx.model = model
    return action


def _shadow_model(model: Any, resolver: PropertyResolver) -> Any:
    """Копия модели, в которую можно привязать переменную цикла."""
    if isinstance(model, LoopScope):
        return model.child()
    if isinstance(model, Mapping):
        return dict(model)
    return LoopScope(model, resolver)


class LoopScope(Mapping):
    """
    Область видимости цикла поверх модели, не являющейся словарем.

    Сначала ищет имя среди переменных циклов, затем делегирует исходной
    модели через резолвер.
    """

    def __init__(self, base: Any, resolver: PropertyResolver, bindings: Optional[dict] = None):
        self.base = base
        self.resolver = resolver
        self.bindings = dict(bindings or {})

    def child(self) -> LoopScope:
        return LoopScope(self.base, self.resolver, self.bindings)

    def __setitem__(self, key: str, value: Any) -> None:
        self.bindings[key] = value

    def __getitem__(self, key: str) -> Any:
        if key in self.bindings:
            return self.bindings[key]
        value = self.resolver.get_value(self.base, key)
        if value is None:
            raise KeyError(key)
        return value

    def __iter__(self) -> Iterator[str]:
        return iter(self.bindings)

    def __len__(self) -> int:
        return len(self.bindings)


__all__ = [
    "TemplateCompiler",
    "LoopScope",
    "is_directive",
    "DIRECTIVE_START",
    "DIRECTIVE_END",
]
