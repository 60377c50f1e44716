"""
Резолверы свойств для модели данных.

Выражения и шаблоны никогда не выполняют интроспекцию сами: любое обращение
к свойству модели проходит через PropertyResolver. Встроенные реализации:

- MappingPropertyResolver: поиск по ключу в словарях (Mapping)
- ObjectPropertyResolver: геттеры в стиле getAge()/get_age() или атрибут age,
  способ доступа определяется один раз на тип и кэшируется
- AtomicPropertyResolver: словари через первый, остальные объекты через второй
- DefaultPropertyResolver: составные пути вида "foo.bar.baz"
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Dict, Optional, Tuple

from .errors import ELTUserError

logger = logging.getLogger(__name__)


class ResolutionError(ELTUserError):
    """Ошибка разрешения свойства в модели."""
    pass


class MissingValueError(ResolutionError):
    """Обязательное свойство разрешилось в None."""

    def __init__(self, obj: Any, prop: str):
        self.obj_type = type(obj).__name__
        self.property = prop
        super().__init__(f"Object of type {self.obj_type} returned null for property {prop}")


class NullIntermediateError(ResolutionError):
    """Промежуточный сегмент составного пути разрешился в None."""

    def __init__(self, partial: str, path: str):
        self.partial = partial
        self.path = path
        super().__init__(f"Intermediate value null for property {partial} while resolving {path}")


class PropertyResolver(ABC):
    """
    Контракт резолвера: по объекту и имени свойства вернуть значение или None.
    """

    @abstractmethod
    def get_value(self, obj: Any, prop: str) -> Any:
        """
        Возвращает значение свойства или None.

        Args:
            obj: Объект модели (не None)
            prop: Имя свойства ("foo" или, для составных резолверов, "foo.bar")
        """
        pass

    def require_value(self, obj: Any, prop: str) -> Any:
        """
        Как get_value, но None считается ошибкой.

        Raises:
            MissingValueError: Если свойство разрешилось в None
        """
        _check_args(obj, prop)
        value = self.get_value(obj, prop)
        if value is None:
            raise MissingValueError(obj, prop)
        return value


class MappingPropertyResolver(PropertyResolver):
    """Поиск по строковому ключу в словаре."""

    def get_value(self, obj: Any, prop: str) -> Any:
        _check_args(obj, prop)
        if not isinstance(obj, Mapping):
            raise TypeError(f"Expected a mapping, got {type(obj).__name__}")
        return obj.get(prop)


# Способ доступа к свойству: ("call", имя метода) или ("attr", имя атрибута)
_Accessor = Tuple[str, str]


class ObjectPropertyResolver(PropertyResolver):
    """
    Доступ к свойствам обычных объектов (dataclass, namedtuple, произвольные классы).

    Для сегмента ``age`` порядок поиска такой:
    1. метод ``getAge()`` (геттер в стиле бинов)
    2. метод ``get_age()``
    3. атрибут или property ``age``; если это метод — он вызывается без аргументов,
       но данные экземпляра с тем же именем возвращаются как есть

    Найденный способ доступа запоминается для пары (тип, имя).
    """

    def __init__(self):
        self._accessors: Dict[Tuple[type, str], Optional[_Accessor]] = {}
        self._lock = threading.Lock()

    def get_value(self, obj: Any, prop: str) -> Any:
        _check_args(obj, prop)
        accessor = self._accessor_for(type(obj), prop)
        if accessor is None:
            return getattr(obj, prop, None)
        kind, name = accessor
        value = getattr(obj, name, None)
        # атрибут экземпляра может перекрыть одноимённый метод класса
        if kind == "call" and callable(value):
            return value()
        return value

    def _accessor_for(self, tp: type, prop: str) -> Optional[_Accessor]:
        key = (tp, prop)
        try:
            return self._accessors[key]
        except KeyError:
            pass
        accessor = _find_accessor(tp, prop)
        with self._lock:
            self._accessors.setdefault(key, accessor)
        logger.debug("Accessor for %s.%s: %r", tp.__name__, prop, accessor)
        return accessor


def _find_accessor(tp: type, prop: str) -> Optional[_Accessor]:
    """
    Определяет способ доступа по классу.

    None означает «на уровне класса ничего нет» — тогда значение ищется
    среди атрибутов экземпляра.
    """
    for getter in (f"get{prop[:1].upper()}{prop[1:]}", f"get_{prop}"):
        if callable(getattr(tp, getter, None)):
            return ("call", getter)
    class_attr = getattr(tp, prop, None)
    if class_attr is None:
        return None
    if isinstance(class_attr, property) or not callable(class_attr):
        return ("attr", prop)
    return ("call", prop)


class AtomicPropertyResolver(PropertyResolver):
    """
    Резолвер простых (несоставных) свойств.

    Словари обрабатываются поиском по ключу, все остальные объекты —
    через геттеры и атрибуты.
    """

    def __init__(
        self,
        mapping_resolver: Optional[PropertyResolver] = None,
        object_resolver: Optional[PropertyResolver] = None,
    ):
        self.mapping_resolver = mapping_resolver or MappingPropertyResolver()
        self.object_resolver = object_resolver or ObjectPropertyResolver()

    def get_value(self, obj: Any, prop: str) -> Any:
        _check_args(obj, prop)
        if isinstance(obj, Mapping):
            return self.mapping_resolver.get_value(obj, prop)
        return self.object_resolver.get_value(obj, prop)


class DefaultPropertyResolver(PropertyResolver):
    """
    Резолвер составных путей "foo.bar.baz" поверх атомарного резолвера.

    Сегменты обходятся слева направо. None допустим только для последнего
    сегмента; None в промежуточном сегменте — ошибка с указанием уже
    пройденной части пути.
    """

    def __init__(self, atomic: Optional[PropertyResolver] = None):
        self.atomic = atomic or AtomicPropertyResolver()

    def get_value(self, obj: Any, prop: str) -> Any:
        _check_args(obj, prop)
        segments = prop.split(".")
        if any(not segment for segment in segments):
            raise ResolutionError(f"Invalid property path: '{prop}'")

        current = obj
        for i, segment in enumerate(segments[:-1]):
            current = self.atomic.get_value(current, segment)
            if current is None:
                raise NullIntermediateError(".".join(segments[:i + 1]), prop)
        return self.atomic.get_value(current, segments[-1])


def _check_args(obj: Any, prop: str) -> None:
    if obj is None:
        raise ValueError("Object must not be None")
    if not prop:
        raise ValueError("Property must not be empty")


__all__ = [
    "PropertyResolver",
    "MappingPropertyResolver",
    "ObjectPropertyResolver",
    "AtomicPropertyResolver",
    "DefaultPropertyResolver",
    "ResolutionError",
    "MissingValueError",
    "NullIntermediateError",
]
