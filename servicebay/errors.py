"""
Container error taxonomy.

Two channels:
- discovery-phase errors (ConfigurationError, DiscoveryError) are logged and
  collected on the container as warnings, startup continues;
- initialization-phase errors (InjectionError, LifecycleError) propagate to
  the caller of ``Container.start()``.
"""

from typing import Any, Optional


class ContainerError(Exception):
    """Base exception for container errors."""
    pass


class ConfigurationError(ContainerError):
    """Configuration source could not be read, parsed or interpolated."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        if source:
            message = f"{message} (source: {source})"
        super().__init__(message)


class DiscoveryError(ContainerError):
    """A scan target, type or addon could not be loaded."""

    def __init__(self, message: str, target: Optional[str] = None):
        self.target = target
        super().__init__(message)


class InjectionError(ContainerError):
    """A field could not be injected (unsupported type, immutable target...)."""
    pass


class UnsupportedFieldTypeError(InjectionError):
    """Config value present for a field whose type has no coercion strategy."""

    def __init__(self, owner: str, field_name: str, key: str, field_type: Any, value: Any):
        self.owner = owner
        self.field_name = field_name
        self.key = key
        self.field_type = field_type

        type_str = getattr(field_type, "__qualname__", None) or repr(field_type)
        msg = (
            f"Field type not supported for configuration injection: "
            f"{owner}.{field_name} ({type_str}) <- '{key}' = {value!r}"
            f"\n\nSuggested fixes:"
            f"\n  - Annotate the field with a supported type (int, bool, str, Enum, list, set)"
            f"\n  - Annotate the field as Any to receive the raw value"
        )
        super().__init__(msg)


class ImmutableFieldError(InjectionError):
    """Config injection targets a Final, ClassVar or read-only field."""

    def __init__(self, owner: str, field_name: str, reason: str):
        self.owner = owner
        self.field_name = field_name

        msg = (
            f"Configurable fields should never be immutable: "
            f"{owner}.{field_name} is {reason}"
            f"\n\nSuggested fix:"
            f"\n  - Declare '{field_name}' as a plain mutable attribute"
        )
        super().__init__(msg)


class LifecycleError(ContainerError):
    """A service lifecycle callback failed or timed out."""

    def __init__(self, message: str, service: Optional[str] = None, hook: Optional[str] = None):
        self.service = service
        self.hook = hook
        super().__init__(message)


class AlreadyStartedError(ContainerError):
    """``start()`` called on a container that was already started."""

    def __init__(self, name: str, phase: str):
        self.name = name
        self.phase = phase
        super().__init__(
            f"Container '{name}' cannot start from phase '{phase}'. "
            f"A container is started at most once; create a fresh instance."
        )
