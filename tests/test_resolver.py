"""
Тесты резолверов свойств.
"""

from collections import OrderedDict, namedtuple
from dataclasses import dataclass

import pytest

from elt.resolver import (
    AtomicPropertyResolver,
    DefaultPropertyResolver,
    MappingPropertyResolver,
    MissingValueError,
    NullIntermediateError,
    ObjectPropertyResolver,
    PropertyResolver,
    ResolutionError,
)


class Bean:
    def __init__(self):
        self._name = "bean"
        self.plain = "attr"

    def getName(self):
        return self._name

    def get_size(self):
        return 3

    def total(self):
        return 10

    @property
    def label(self):
        return "lbl"


@dataclass
class Box:
    width: int
    depth: int = 7


Point = namedtuple("Point", "x y")


class TestMappingPropertyResolver:

    def setup_method(self):
        self.resolver = MappingPropertyResolver()

    def test_lookup(self):
        assert self.resolver.get_value({"a": 1}, "a") == 1
        assert self.resolver.get_value(OrderedDict(b=2), "b") == 2

    def test_missing_key(self):
        assert self.resolver.get_value({"a": 1}, "b") is None

    def test_non_mapping(self):
        with pytest.raises(TypeError, match="Expected a mapping"):
            self.resolver.get_value([1, 2], "a")

    def test_invalid_arguments(self):
        with pytest.raises(ValueError, match="Object must not be None"):
            self.resolver.get_value(None, "a")
        with pytest.raises(ValueError, match="Property must not be empty"):
            self.resolver.get_value({}, "")


class TestObjectPropertyResolver:

    def setup_method(self):
        self.resolver = ObjectPropertyResolver()

    def test_bean_getter(self):
        assert self.resolver.get_value(Bean(), "name") == "bean"

    def test_snake_case_getter(self):
        assert self.resolver.get_value(Bean(), "size") == 3

    def test_plain_method_called(self):
        assert self.resolver.get_value(Bean(), "total") == 10

    def test_property(self):
        assert self.resolver.get_value(Bean(), "label") == "lbl"

    def test_instance_attribute(self):
        assert self.resolver.get_value(Bean(), "plain") == "attr"

    def test_dataclass_fields(self):
        box = Box(width=3)
        assert self.resolver.get_value(box, "width") == 3
        assert self.resolver.get_value(box, "depth") == 7

    def test_namedtuple(self):
        assert self.resolver.get_value(Point(1, 2), "y") == 2

    def test_unknown_property(self):
        assert self.resolver.get_value(Bean(), "nothing") is None

    def test_accessor_cached_per_type(self):
        self.resolver.get_value(Bean(), "name")
        self.resolver.get_value(Bean(), "name")
        assert self.resolver._accessors == {(Bean, "name"): ("call", "getName")}

    def test_getter_sees_instance_state(self):
        a, b = Bean(), Bean()
        b._name = "other"
        assert self.resolver.get_value(a, "name") == "bean"
        assert self.resolver.get_value(b, "name") == "other"

    def test_instance_data_shadows_method(self):
        """Данные экземпляра с именем метода класса возвращаются без вызова"""
        class Counter:
            def size(self):
                return 1

        shadowed = Counter()
        shadowed.size = 5
        assert self.resolver.get_value(Counter(), "size") == 1
        assert self.resolver.get_value(shadowed, "size") == 5
        assert self.resolver._accessors[(Counter, "size")] == ("call", "size")

    def test_instance_data_shadows_getter(self):
        class Named:
            def getTitle(self):
                return "method"

        item = Named()
        item.getTitle = "data"
        assert self.resolver.get_value(item, "title") == "data"


class TestAtomicPropertyResolver:

    def test_dispatch(self):
        resolver = AtomicPropertyResolver()
        assert resolver.get_value({"name": "dict"}, "name") == "dict"
        assert resolver.get_value(Bean(), "name") == "bean"

    def test_custom_resolvers(self):
        class Upper(PropertyResolver):
            def get_value(self, obj, prop):
                return prop.upper()

        resolver = AtomicPropertyResolver(object_resolver=Upper())
        assert resolver.get_value(Bean(), "name") == "NAME"
        assert resolver.get_value({"name": 1}, "name") == 1


class TestDefaultPropertyResolver:

    def setup_method(self):
        self.resolver = DefaultPropertyResolver()
        self.model = {
            "a": {"b": {"c": 42}},
            "bean": Bean(),
            "hole": None,
            "nested": {"none": None},
        }

    def test_simple_and_compound_paths(self):
        assert self.resolver.get_value(self.model, "a.b.c") == 42
        assert self.resolver.get_value(self.model, "bean.name") == "bean"

    def test_null_last_segment(self):
        assert self.resolver.get_value(self.model, "nested.none") is None
        assert self.resolver.get_value(self.model, "a.b.missing") is None

    def test_null_intermediate_segment(self):
        with pytest.raises(NullIntermediateError) as exc:
            self.resolver.get_value(self.model, "nested.none.x")
        assert exc.value.partial == "nested.none"
        assert str(exc.value) == "Intermediate value null for property nested.none while resolving nested.none.x"

        with pytest.raises(NullIntermediateError, match="property hole while"):
            self.resolver.get_value(self.model, "hole.x.y")

    def test_invalid_path(self):
        with pytest.raises(ResolutionError, match="Invalid property path"):
            self.resolver.get_value(self.model, "a..b")
        with pytest.raises(ResolutionError, match="Invalid property path"):
            self.resolver.get_value(self.model, "a.")

    def test_require_value(self):
        assert self.resolver.require_value(self.model, "a.b.c") == 42
        with pytest.raises(MissingValueError, match="Object of type dict returned null for property a.b.missing"):
            self.resolver.require_value(self.model, "a.b.missing")
