"""
Блоки компиляции и скомпилированный шаблон.

Компилятор собирает действия (actions) в стек открытых блоков. Действие —
вызываемый объект, принимающий RenderContext. Когда блок закрывается,
его списки действий замораживаются в кортежи и весь блок сворачивается
в одно действие родителя.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from ..expr.model import Expression
from .context import RenderContext

# Одна единица работы при рендеринге
Action = Callable[[RenderContext], None]


@dataclass
class Block:
    """Открытый блок: строка начала и накопленные действия."""
    line_number: int
    actions: List[Action] = field(default_factory=list)

    @property
    def closer(self) -> Optional[str]:
        """Директива, закрывающая блок (None для внешнего блока)."""
        return None

    def add(self, action: Action) -> None:
        self.actions.append(action)


@dataclass
class OuterBlock(Block):
    """Неявный блок верхнего уровня; всегда лежит на дне стека."""
    line_number: int = 1


@dataclass
class IfBlock(Block):
    """
    Блок <% if expr %> ... [<% else %> ...] <% /if %>.

    После start_else() новые действия попадают в ветку else.
    """
    condition: Optional[Expression] = None
    else_actions: List[Action] = field(default_factory=list)
    has_else: bool = False

    @property
    def closer(self) -> str:
        return "/if"

    def add(self, action: Action) -> None:
        if self.has_else:
            self.else_actions.append(action)
        else:
            self.actions.append(action)

    def start_else(self) -> None:
        self.has_else = True


@dataclass
class ForBlock(Block):
    """Блок <% for item in path %> ... <% /for %>."""
    loop_var: str = ""
    list_path: str = ""

    @property
    def closer(self) -> str:
        return "/for"


@dataclass(frozen=True)
class CompiledTemplate:
    """
    Результат компиляции: неизменяемая последовательность действий.

    Может рендериться любое число раз, в том числе параллельно.
    """
    actions: Tuple[Action, ...]
    uri: Optional[str] = None
    line_count: int = 0


__all__ = ["Action", "Block", "OuterBlock", "IfBlock", "ForBlock", "CompiledTemplate"]
