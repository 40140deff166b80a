"""
Registration table for singleton services and on-demand type descriptors.

Discovery never guesses from class shape: a class is a singleton service
only when it was registered here, either with a decorator or explicitly.
Registration is not inherited by subclasses.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Type, TypeVar, overload

from .di.core import token_to_key
from .injection import ConfigField, config_fields


T = TypeVar("T")


class ServiceMarker(str, Enum):
    """Recognized singleton markers; discovery treats both the same."""

    SINGLETON = "singleton"  # Generic injectable singleton
    SERVICE = "service"      # Named service


@dataclass(frozen=True)
class Registration:
    marker: ServiceMarker
    name: str


# Registration table: type -> Registration
_registrations: Dict[type, Registration] = {}

# Descriptor cache: type -> TypeDescriptor
_descriptors: Dict[type, "TypeDescriptor"] = {}


@dataclass(frozen=True)
class TypeDescriptor:
    """Facts about a loadable type, computed on demand."""

    type: type
    name: str
    registration: Optional[Registration]

    @property
    def is_singleton(self) -> bool:
        return self.registration is not None

    @property
    def config_fields(self) -> Tuple[ConfigField, ...]:
        return config_fields(self.type)

    @property
    def marker(self) -> Optional[ServiceMarker]:
        return self.registration.marker if self.registration else None


def _register(cls: type, marker: ServiceMarker, name: Optional[str]) -> None:
    if not isinstance(cls, type):
        raise TypeError(f"Only classes can be registered as services, got {cls!r}")
    _registrations[cls] = Registration(marker=marker, name=name or cls.__name__)
    _descriptors.pop(cls, None)


def register_singleton(cls: Type[T]) -> Type[T]:
    """Register ``cls`` as an injectable singleton."""
    _register(cls, ServiceMarker.SINGLETON, None)
    return cls


def register_service(cls: Type[T], name: Optional[str] = None) -> Type[T]:
    """Register ``cls`` as a named service."""
    _register(cls, ServiceMarker.SERVICE, name)
    return cls


def singleton(cls: Type[T]) -> Type[T]:
    """
    Decorator marking a class as an injectable singleton.

    Example:
        @singleton
        class Clock:
            ...
    """
    return register_singleton(cls)


@overload
def service(cls: Type[T]) -> Type[T]: ...


@overload
def service(*, name: Optional[str] = None) -> Callable[[Type[T]], Type[T]]: ...


def service(cls: Any = None, *, name: Optional[str] = None) -> Any:
    """
    Decorator marking a class as a named service.

    Usable bare (``@service``) or with a name (``@service(name="mailer")``).
    """
    if cls is not None:
        return register_service(cls)

    def decorator(klass: Type[T]) -> Type[T]:
        return register_service(klass, name)

    return decorator


def unregister(cls: type) -> None:
    """Remove ``cls`` from the registration table."""
    _registrations.pop(cls, None)
    _descriptors.pop(cls, None)


def registration_of(cls: type) -> Optional[Registration]:
    return _registrations.get(cls)


def type_name(cls: type) -> str:
    """Fully-qualified name: ``module.qualname``."""
    return token_to_key(cls)


def describe(cls: type) -> TypeDescriptor:
    """Build (or fetch cached) descriptor for ``cls``."""
    descriptor = _descriptors.get(cls)
    if descriptor is not None:
        return descriptor

    registration = _registrations.get(cls)
    descriptor = TypeDescriptor(
        type=cls,
        name=type_name(cls),
        registration=registration,
    )
    _descriptors[cls] = descriptor
    return descriptor
