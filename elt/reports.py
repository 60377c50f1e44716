"""
JSON-отчеты CLI (pydantic-модели).
"""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel


class EvalReport(BaseModel):
    """Результат `elt eval --json`."""
    expression: str
    value: Union[bool, int, float, str, None]
    kind: str
    text: str


class TemplateCheck(BaseModel):
    path: str
    ok: bool
    lines: int = 0
    error: Optional[str] = None


class CheckReport(BaseModel):
    """Результат `elt check --json`."""
    templates: List[TemplateCheck]

    @property
    def ok(self) -> bool:
        return all(t.ok for t in self.templates)


__all__ = ["EvalReport", "TemplateCheck", "CheckReport"]
