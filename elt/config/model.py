from __future__ import annotations

from dataclasses import dataclass

# Имена разделителей строк, допустимые в конфиге и в CLI
LINE_TERMINATORS = {
    "lf": "\n",
    "crlf": "\r\n",
    "cr": "\r",
}


def normalize_line_terminator(value: str) -> str:
    """Принимает имя ('lf', 'crlf', 'cr') или сам разделитель."""
    if value in LINE_TERMINATORS.values():
        return value
    try:
        return LINE_TERMINATORS[value.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown line terminator {value!r} (expected one of: {', '.join(LINE_TERMINATORS)})"
        ) from None


@dataclass
class EngineConfig:
    """
    Настройки движка шаблонов.

    Attributes:
        line_terminator: Разделитель, дописываемый после каждой литеральной строки
        encoding: Кодировка файлов шаблонов
        accept_if_strings: Разрешать строки "true"/"false" в качестве условий if
    """
    line_terminator: str = "\n"
    encoding: str = "utf-8"
    accept_if_strings: bool = True

    def __post_init__(self):
        self.line_terminator = normalize_line_terminator(self.line_terminator)


__all__ = ["EngineConfig", "LINE_TERMINATORS", "normalize_line_terminator"]
