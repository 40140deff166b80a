"""
Configuration-field injection with type-directed coercion.

Fields opt in with ``Annotated[..., Config("key")]``. The class attribute
value acts as the default: when the key is absent the field is left alone.

Example:
    @singleton
    class Greeter:
        greeting: Annotated[str, Config("greeter.greeting")] = "Hello"
        retries: Annotated[int, Config("greeter.retries")] = 3
        mode: Annotated[Mode, Config("greeter.mode")] = Mode.FAST
"""

import collections.abc
import inspect
import types
from dataclasses import dataclass
from enum import Enum
from typing import (
    Annotated,
    Any,
    ClassVar,
    Dict,
    Final,
    Optional,
    Tuple,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from .config.store import ConfigurationStore, parse_bool
from .di.core import token_to_key
from .errors import (
    ConfigurationError,
    ImmutableFieldError,
    InjectionError,
    UnsupportedFieldTypeError,
)


_MISSING = object()

_SEQUENCE_ORIGINS = frozenset((
    list,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Iterable,
    collections.abc.Collection,
))

_SET_ORIGINS = frozenset((
    set,
    frozenset,
    collections.abc.Set,
    collections.abc.MutableSet,
))

_MAPPING_ORIGINS = frozenset((
    dict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
))

# Per-class field plans: type -> tuple of ConfigField
_field_cache: Dict[type, Tuple["ConfigField", ...]] = {}


@dataclass(frozen=True)
class Config:
    """Marks a field for configuration injection from ``key``."""

    key: str


@dataclass(frozen=True)
class ConfigField:
    """A field bound to a configuration key."""

    name: str
    key: str
    annotation: Any
    immutable: Optional[str] = None  # "Final", "ClassVar" or None


def _unwrap(annotation: Any) -> Tuple[Any, Optional[Config], Optional[str]]:
    """Peel Annotated / Final / ClassVar layers off an annotation."""
    marker: Optional[Config] = None
    immutable: Optional[str] = None

    while True:
        origin = get_origin(annotation)
        if origin is Annotated:
            base, *metadata = get_args(annotation)
            for meta in metadata:
                if isinstance(meta, Config):
                    marker = meta
            annotation = base
        elif origin is Final or annotation is Final:
            immutable = "Final"
            args = get_args(annotation)
            annotation = args[0] if args else Any
        elif origin is ClassVar or annotation is ClassVar:
            immutable = "ClassVar"
            args = get_args(annotation)
            annotation = args[0] if args else Any
        else:
            return annotation, marker, immutable


def config_fields(cls: type) -> Tuple[ConfigField, ...]:
    """List the config-injected fields of ``cls`` (cached per class)."""
    cached = _field_cache.get(cls)
    if cached is not None:
        return cached

    try:
        hints = get_type_hints(cls, include_extras=True)
    except Exception as e:
        raise InjectionError(f"Cannot read annotations of {token_to_key(cls)}: {e}") from e

    found = []
    for name, annotation in hints.items():
        base, marker, immutable = _unwrap(annotation)
        if marker is not None:
            found.append(ConfigField(name=name, key=marker.key, annotation=base, immutable=immutable))

    result = tuple(found)
    _field_cache[cls] = result
    return result


def _strip_optional(annotation: Any) -> Tuple[Any, ...]:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        return tuple(a for a in get_args(annotation) if a is not type(None))
    return (annotation,)


def _accepts_none(annotation: Any) -> bool:
    if annotation is Any or annotation is object or annotation is type(None):
        return True
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        return type(None) in get_args(annotation)
    return False


def _coerce_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("boolean is not an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{value!r} is not integral")
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise ValueError(f"{value!r} is not integer-like")


def _coerce_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise ValueError(f"{value!r} is not numeric")


def _coerce_set(value: Any, origin: Any) -> Any:
    if not isinstance(value, (list, tuple)):
        return value
    ordered = dict.fromkeys(value)
    if origin is frozenset:
        return frozenset(ordered)
    if origin is collections.abc.Set:
        # Insertion-ordered, read-only set view
        return ordered.keys()
    return set(ordered)


def coerce_value(value: Any, annotation: Any, *, owner: str = "", field: str = "", key: str = "") -> Any:
    """
    Coerce a configuration value into the field's declared type.

    Raises:
        InjectionError: when the value cannot be converted, or when the
            field type has no coercion strategy.
    """
    if value is None:
        return None

    candidates = _strip_optional(annotation)
    if len(candidates) > 1:
        # Plain unions: accept a value already matching one member
        for candidate in candidates:
            check = get_origin(candidate) or candidate
            if isinstance(check, type) and isinstance(value, check):
                return value
        raise UnsupportedFieldTypeError(owner, field, key, annotation, value)

    target = candidates[0]
    if target is Any or target is object or target is inspect.Parameter.empty:
        return value

    origin = get_origin(target) or target

    try:
        if origin is bool:
            return parse_bool(value, key)
        if origin is int:
            return _coerce_int(value)
        if origin is float:
            return _coerce_float(value)
    except (ValueError, ConfigurationError) as e:
        raise InjectionError(
            f"Cannot inject '{key}' into {owner}.{field}: expected {origin.__name__}, "
            f"got {value!r} ({e})"
        ) from e

    if origin is str:
        if isinstance(value, (str, int, float, bool)):
            return str(value)
        raise UnsupportedFieldTypeError(owner, field, key, target, value)

    if isinstance(origin, type) and issubclass(origin, Enum):
        if isinstance(value, origin):
            return value
        member = origin.__members__.get(value) if isinstance(value, str) else None
        if member is None:
            choices = ", ".join(origin.__members__)
            raise InjectionError(
                f"Cannot inject '{key}' into {owner}.{field}: {value!r} is not one of "
                f"{origin.__name__} ({choices})"
            )
        return member

    if origin is tuple:
        return tuple(value) if isinstance(value, list) else value

    if origin in _SEQUENCE_ORIGINS:
        return value

    if origin in _SET_ORIGINS:
        try:
            return _coerce_set(value, origin)
        except TypeError as e:
            raise InjectionError(f"Cannot inject '{key}' into {owner}.{field}: {e}") from e

    if origin in _MAPPING_ORIGINS and isinstance(value, collections.abc.Mapping):
        return value

    if isinstance(origin, type) and isinstance(value, origin):
        return value

    raise UnsupportedFieldTypeError(owner, field, key, target, value)


def _check_mutable(obj: Any, field: ConfigField, owner: str) -> None:
    if field.immutable:
        raise ImmutableFieldError(owner, field.name, f"declared {field.immutable}")

    attr = inspect.getattr_static(type(obj), field.name, None)
    if isinstance(attr, property) and attr.fset is None:
        raise ImmutableFieldError(owner, field.name, "a read-only property")


def inject_config(obj: Any, store: Optional[ConfigurationStore]) -> None:
    """
    Inject configuration values into every ``Config``-annotated field.

    Absent keys leave the field's current value untouched, and so do null
    values unless the field accepts None.

    Raises:
        InjectionError: immutable target, unsupported type or bad value
    """
    store = store if store is not None else ConfigurationStore()
    owner = token_to_key(type(obj))

    for field in config_fields(type(obj)):
        _check_mutable(obj, field, owner)

        value = store.get(field.key, _MISSING)
        if value is _MISSING or (value is None and not _accepts_none(field.annotation)):
            continue

        coerced = coerce_value(value, field.annotation, owner=owner, field=field.name, key=field.key)
        try:
            setattr(obj, field.name, coerced)
        except AttributeError as e:
            raise ImmutableFieldError(owner, field.name, f"not assignable ({e})") from e
