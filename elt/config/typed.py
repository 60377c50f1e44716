"""
Типизированная загрузка сырых YAML-данных в dataclass-конфигурации.

Каждая ошибка несет путь поля ($.line_terminator и т.п.), неизвестные
ключи отвергаются.
"""

from __future__ import annotations

import dataclasses
import logging
import typing as t
from dataclasses import fields, is_dataclass
from types import UnionType
from typing import Any, get_args, get_origin

from ..errors import ELTUserError

logger = logging.getLogger(__name__)


class ConfigLoadError(ELTUserError, ValueError):
    """Ошибка типизированной загрузки конфигурации с указанием пути поля."""
    pass


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", str(tp))


def _err(path: str, msg: str) -> ConfigLoadError:
    logger.debug("RAISE at %s: %s", path, msg)
    return ConfigLoadError(f"{path}: {msg}")


def _coerce_literal(val: Any, tp: Any, path: str) -> Any:
    allowed = get_args(tp)
    if val in allowed:
        return val
    raise _err(path, f"expected one of {list(allowed)}, got {val!r}")


def _coerce_union(val: Any, tp: Any, path: str) -> Any:
    errs: list[str] = []
    for sub in get_args(tp):
        # NoneType подходит только для val is None
        if sub is type(None):
            if val is None:
                return None
            continue
        try:
            return load_typed(sub, val, path=path)
        except ConfigLoadError as e:
            errs.append(str(e))
    raise _err(path, " | ".join(errs) or f"no variant of {_type_name(tp)} matched")


def _coerce_dataclass(val: Any, tp: Any, path: str) -> Any:
    if not isinstance(val, dict):
        raise _err(path, f"expected mapping for {_type_name(tp)}, got {type(val).__name__}")
    hints = t.get_type_hints(tp)
    fld_map = {f.name: f for f in fields(tp)}
    extras = set(val.keys()) - set(fld_map.keys())
    if extras:
        raise _err(path, f"unknown key(s): {sorted(extras)}")

    kwargs: dict[str, Any] = {}
    for name, f in fld_map.items():
        sub_path = f"{path}.{name}"
        if name in val:
            kwargs[name] = load_typed(hints.get(name, f.type), val[name], path=sub_path)
        elif f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            raise _err(sub_path, "required field missing")
    return tp(**kwargs)


def load_typed(tp: Any, val: Any, *, path: str = "$") -> Any:
    """
    Рекурсивно приводит сырое значение к типу tp по аннотациям.

    Поддерживаются dataclass, Literal, Optional/Union и примитивы.
    """
    origin = get_origin(tp)
    logger.debug("load_typed: path=%s, tp=%s, val-type=%s", path, _type_name(tp), type(val).__name__)

    if tp is Any:
        return val
    if isinstance(tp, type) and is_dataclass(tp):
        return _coerce_dataclass(val, tp, path)
    if origin is t.Literal:
        return _coerce_literal(val, tp, path)
    if origin in (t.Union, UnionType):
        return _coerce_union(val, tp, path)
    if tp in (str, int, float, bool):
        # bool является подклассом int, но в конфиге это разные типы
        if not isinstance(val, tp) or (tp is not bool and isinstance(val, bool)):
            raise _err(path, f"expected {_type_name(tp)}, got {type(val).__name__}")
        return val
    raise _err(path, f"unsupported type {_type_name(tp)}")


__all__ = ["ConfigLoadError", "load_typed"]
