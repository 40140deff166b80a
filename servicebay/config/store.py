"""
ConfigurationStore - immutable, ordered key/value view over layered sources.
"""

from collections.abc import Mapping
from typing import Any, Dict, Iterator, List, Optional

from ..errors import ConfigurationError


_MISSING = object()

_TRUE_STRINGS = frozenset(("true", "yes", "on", "1"))
_FALSE_STRINGS = frozenset(("false", "no", "off", "0"))


class ConfigurationStore(Mapping):
    """
    Ordered mapping of dotted keys to values (scalar, list or nested mapping).

    Built once per container start and read-only afterwards, so it can be
    shared freely between services and threads.

    Usage:
        store = ConfigurationStore.layered(base, overrides)
        store.get_as_int("http.port", 8080)
    """

    __slots__ = ("_data",)

    def __init__(self, data: Optional[Mapping] = None):
        self._data: Dict[str, Any] = dict(data) if data else {}

    @classmethod
    def layered(cls, *sources: Optional[Mapping]) -> "ConfigurationStore":
        """
        Build a store from sources; later sources replace earlier keys.

        Replacement is top-level only: a nested mapping in a later source
        replaces the whole value, it is not merged.
        """
        data: Dict[str, Any] = {}
        for source in sources:
            if source:
                data.update(source)
        return cls(data)

    def with_overrides(self, overrides: Mapping) -> "ConfigurationStore":
        """Return a new store with ``overrides`` layered on top."""
        return ConfigurationStore.layered(self._data, overrides)

    # -- Mapping protocol -------------------------------------------------

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return f"ConfigurationStore({len(self._data)} keys)"

    # -- Lookup -----------------------------------------------------------

    def _lookup(self, key: str) -> Any:
        if key in self._data:
            return self._data[key]

        # Fall back to walking nested mappings: "a.b.c" -> data["a"]["b"]["c"]
        current: Any = self._data
        for part in key.split("."):
            if isinstance(current, Mapping) and part in current:
                current = current[part]
            else:
                return _MISSING
        return current

    def get(self, key: str, default: Any = None) -> Any:
        """Get value by exact key, then by dot-separated path."""
        value = self._lookup(key)
        return default if value is _MISSING else value

    def get_as_instance(self, key: str) -> Any:
        """Return the raw value stored under exactly ``key``, or None when absent."""
        return self._data.get(key)

    def get_as_str(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._lookup(key)
        if value is _MISSING or value is None:
            return default
        return str(value)

    def get_as_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        value = self._lookup(key)
        if value is _MISSING or value is None:
            return default
        if isinstance(value, bool):
            raise ConfigurationError(f"Config key '{key}' expected an integer, got boolean {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Config key '{key}' expected an integer, got {value!r}") from e

    def get_as_float(self, key: str, default: Optional[float] = None) -> Optional[float]:
        value = self._lookup(key)
        if value is _MISSING or value is None:
            return default
        if isinstance(value, bool):
            raise ConfigurationError(f"Config key '{key}' expected a number, got boolean {value!r}")
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Config key '{key}' expected a number, got {value!r}") from e

    def get_as_bool(self, key: str, default: Optional[bool] = None) -> Optional[bool]:
        value = self._lookup(key)
        if value is _MISSING or value is None:
            return default
        return parse_bool(value, key)

    def get_as_list(self, key: str, default: Optional[List[Any]] = None) -> Optional[List[Any]]:
        """Get a list value; a scalar is wrapped into a one-element list."""
        value = self._lookup(key)
        if value is _MISSING or value is None:
            return default
        if isinstance(value, (list, tuple)):
            return list(value)
        return [value]

    def all(self) -> Dict[str, Any]:
        """Export all config as a plain dictionary."""
        return dict(self._data)


def parse_bool(value: Any, key: str = "") -> bool:
    """Parse a boolean-like value (bool, 0/1, true/false, yes/no, on/off)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ConfigurationError(f"Config key '{key}' expected a boolean, got {value!r}")
