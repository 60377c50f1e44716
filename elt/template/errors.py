from __future__ import annotations

from typing import Optional

from ..errors import ELTUserError


def format_location(line: Optional[int], uri: Optional[str]) -> str:
    """Строка вида 'report.tpl, line 3' для сообщений об ошибках."""
    parts = []
    if uri:
        parts.append(uri)
    if line is not None:
        parts.append(f"line {line}")
    return ", ".join(parts)


class _LocatedTemplateError(ELTUserError):
    def __init__(self, message: str, line: Optional[int] = None, uri: Optional[str] = None):
        self.message = message
        self.line = line
        self.uri = uri
        location = format_location(line, uri)
        super().__init__(f"{location}: {message}" if location else message)


class TemplateCompileError(_LocatedTemplateError):
    """Raised when template source is structurally invalid; no partial template is produced."""
    pass


class TemplateRenderError(_LocatedTemplateError):
    """Raised when a compiled template cannot be rendered against the given model."""
    pass


__all__ = ["TemplateCompileError", "TemplateRenderError", "format_location"]
