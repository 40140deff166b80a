"""
Configuration-field injection and type coercion.
"""

import collections.abc
from enum import Enum
from typing import (
    AbstractSet,
    Annotated,
    Any,
    ClassVar,
    Dict,
    Final,
    FrozenSet,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
    Union,
)

import pytest

from servicebay import (
    Config,
    ConfigurationStore,
    ImmutableFieldError,
    Inject,
    InjectionError,
    UnsupportedFieldTypeError,
)
from servicebay.injection import coerce_value, config_fields, inject_config


class Level(Enum):
    LOW = 1
    HIGH = 2


class Endpoint:
    pass


# ============================================================================
# coerce_value
# ============================================================================

class TestCoercion:

    @pytest.mark.parametrize("value, expected", [
        ("true", True), ("No", False), (1, True), (False, False),
    ])
    def test_bool(self, value, expected):
        assert coerce_value(value, bool) is expected

    def test_bool_rejects_garbage(self):
        with pytest.raises(InjectionError, match="expected bool"):
            coerce_value("perhaps", bool, owner="Svc", field="flag", key="svc.flag")

    @pytest.mark.parametrize("value, expected", [
        ("42", 42), (" 7 ", 7), (3, 3), (4.0, 4),
    ])
    def test_int(self, value, expected):
        assert coerce_value(value, int) == expected

    @pytest.mark.parametrize("value", ["4.5", 4.5, True, "many", [1]])
    def test_int_rejects(self, value):
        with pytest.raises(InjectionError):
            coerce_value(value, int)

    def test_float(self):
        assert coerce_value("2.5", float) == 2.5
        assert coerce_value(2, float) == 2.0
        with pytest.raises(InjectionError):
            coerce_value("fast", float)

    def test_str_from_scalars(self):
        assert coerce_value("x", str) == "x"
        assert coerce_value(8080, str) == "8080"
        with pytest.raises(UnsupportedFieldTypeError):
            coerce_value({"a": 1}, str)

    def test_enum_by_name(self):
        assert coerce_value("HIGH", Level) is Level.HIGH
        assert coerce_value(Level.LOW, Level) is Level.LOW

    def test_enum_unknown_name_lists_choices(self):
        with pytest.raises(InjectionError, match="LOW, HIGH"):
            coerce_value("MEDIUM", Level, owner="Svc", field="level", key="svc.level")

    def test_any_passes_through(self):
        value = {"nested": [1, 2]}
        assert coerce_value(value, Any) is value
        assert coerce_value(value, object) is value

    def test_none_stays_none(self):
        assert coerce_value(None, int) is None

    def test_optional_unwrapped(self):
        assert coerce_value("5", Optional[int]) == 5

    def test_union_accepts_matching_member(self):
        assert coerce_value(5, Union[int, str]) == 5
        assert coerce_value("x", int | str) == "x"
        with pytest.raises(UnsupportedFieldTypeError):
            coerce_value(1.5, Union[int, str])

    def test_sequences_pass_through(self):
        value = ["b", "a", "b"]
        assert coerce_value(value, list) is value
        assert coerce_value(value, List[str]) is value
        assert coerce_value(value, Sequence[str]) is value

    def test_tuple_from_list(self):
        assert coerce_value(["a", "b"], Tuple[str, ...]) == ("a", "b")

    def test_set_deduplicates(self):
        assert coerce_value(["b", "a", "b"], Set[str]) == {"a", "b"}
        assert coerce_value(["b", "a", "b"], FrozenSet[str]) == frozenset({"a", "b"})

    def test_abstract_set_keeps_insertion_order(self):
        result = coerce_value(["c", "a", "c", "b"], AbstractSet[str])
        assert isinstance(result, collections.abc.Set)
        assert list(result) == ["c", "a", "b"]

    def test_unhashable_set_members(self):
        with pytest.raises(InjectionError):
            coerce_value([["a"]], Set[Any])

    def test_mapping(self):
        value = {"a": 1}
        assert coerce_value(value, Dict[str, int]) is value
        with pytest.raises(UnsupportedFieldTypeError):
            coerce_value("a=1", dict)

    def test_instance_of_field_type(self):
        endpoint = Endpoint()
        assert coerce_value(endpoint, Endpoint) is endpoint

    def test_unsupported_type(self):
        with pytest.raises(UnsupportedFieldTypeError) as exc_info:
            coerce_value("http://x", Endpoint, owner="Svc", field="endpoint", key="svc.endpoint")

        error = exc_info.value
        assert error.key == "svc.endpoint"
        assert error.field_name == "endpoint"
        assert "Suggested fixes" in str(error)


# ============================================================================
# config_fields / inject_config
# ============================================================================

class Settings:
    name: Annotated[str, Config("app.name")] = "unnamed"
    port: Annotated[int, Config("app.port")] = 80
    level: Annotated[Level, Config("app.level")] = Level.LOW
    tags: Annotated[Set[str], Config("app.tags")] = frozenset()
    raw: Annotated[Any, Config("app.raw")] = None
    dependency: Annotated[Endpoint, Inject()]
    untouched: int = 5


class TestInjectConfig:

    def test_config_fields_listed(self):
        fields = config_fields(Settings)
        assert [f.name for f in fields] == ["name", "port", "level", "tags", "raw"]
        assert fields[1].key == "app.port"
        assert fields[1].annotation is int

    def test_values_coerced_and_assigned(self):
        store = ConfigurationStore({
            "app": {"name": "svc", "port": "8080", "level": "HIGH", "tags": ["x", "x"], "raw": [1]},
        })
        settings = Settings()
        inject_config(settings, store)

        assert settings.name == "svc"
        assert settings.port == 8080
        assert settings.level is Level.HIGH
        assert settings.tags == {"x"}
        assert settings.raw == [1]
        assert settings.untouched == 5

    def test_absent_keys_keep_defaults(self):
        settings = Settings()
        inject_config(settings, ConfigurationStore({"app.port": 9}))

        assert settings.port == 9
        assert settings.name == "unnamed"
        assert settings.level is Level.LOW

    def test_null_values_keep_defaults(self):
        class Nullable:
            port: Annotated[int, Config("app.port")] = 80
            host: Annotated[Optional[str], Config("app.host")] = "localhost"
            raw: Annotated[Any, Config("app.raw")] = "raw"

        obj = Nullable()
        inject_config(obj, ConfigurationStore({"app.port": None, "app.host": None, "app.raw": None}))

        assert obj.port == 80
        assert obj.host is None
        assert obj.raw is None

    def test_no_store(self):
        settings = Settings()
        inject_config(settings, None)
        assert settings.port == 80

    def test_subclass_inherits_fields(self):
        class Extended(Settings):
            extra: Annotated[bool, Config("app.extra")] = False

        obj = Extended()
        inject_config(obj, ConfigurationStore({"app.extra": "on", "app.port": 1}))
        assert obj.extra is True
        assert obj.port == 1

    def test_bad_value_names_field(self):
        with pytest.raises(InjectionError, match="app.port"):
            inject_config(Settings(), ConfigurationStore({"app.port": "eighty"}))

    def test_final_field_rejected(self):
        class Frozen:
            limit: Final[Annotated[int, Config("limit")]] = 1

        with pytest.raises(ImmutableFieldError, match="Final"):
            inject_config(Frozen(), ConfigurationStore({"limit": 2}))

    def test_classvar_field_rejected(self):
        class Shared:
            limit: ClassVar[Annotated[int, Config("limit")]] = 1

        with pytest.raises(ImmutableFieldError, match="ClassVar"):
            inject_config(Shared(), ConfigurationStore({"limit": 2}))

    def test_read_only_property_rejected(self):
        class ReadOnly:
            name: Annotated[str, Config("name")]

            @property
            def name(self):
                return "fixed"

        with pytest.raises(ImmutableFieldError, match="read-only property"):
            inject_config(ReadOnly(), ConfigurationStore({"name": "x"}))

    def test_slots_without_field_rejected(self):
        class Slotted:
            __slots__ = ()
            name: Annotated[str, Config("name")]

        with pytest.raises(ImmutableFieldError, match="not assignable"):
            inject_config(Slotted(), ConfigurationStore({"name": "x"}))

    def test_unreadable_annotations(self):
        class Broken:
            value: "DoesNotExist"  # noqa: F821

        with pytest.raises(InjectionError, match="Cannot read annotations"):
            config_fields(Broken)
