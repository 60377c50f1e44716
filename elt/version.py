from __future__ import annotations

from importlib import metadata

# Имена дистрибутива: под основным именем и при установке из исходников
_DISTRIBUTIONS = ("elt-engine", "elt")


def tool_version(default: str = "0.0.0") -> str:
    """
    Версия установленного пакета для `elt --version`.

    Модуль ничего не импортирует из elt, чтобы его можно было
    подключать откуда угодно.
    """
    for dist in _DISTRIBUTIONS:
        try:
            return metadata.version(dist)
        except metadata.PackageNotFoundError:
            continue
    return default


__all__ = ["tool_version"]
