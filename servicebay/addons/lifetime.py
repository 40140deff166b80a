"""
Lifetime addon - lets services that create objects at runtime have those
objects wired by the container.

A service opts in by implementing ``add_extension(extension)``; after
startup it receives a LifetimeExtension and should call
``extension.pre_activation(obj)`` for every object it activates.
"""

import logging
from typing import TYPE_CHECKING, Any, List, Protocol, runtime_checkable

from .base import Addon

if TYPE_CHECKING:
    from ..container import Container


logger = logging.getLogger("servicebay.addons.lifetime")


@runtime_checkable
class ExtensionHost(Protocol):
    """A service that accepts container extensions."""

    def add_extension(self, extension: Any) -> Any: ...


class LifetimeExtension:
    """Injects dependencies and configuration into activated objects."""

    def __init__(self, container: "Container"):
        self.container = container

    def pre_activation(self, obj: Any) -> Any:
        self.container.inject(obj)
        return obj


class LifetimeAddon(Addon):
    """Hands a LifetimeExtension to every discovered ExtensionHost."""

    def __init__(self):
        self.hosts: List[Any] = []

    def post_inject(self, container: "Container") -> None:
        for service in container.discovered_services:
            if isinstance(service, ExtensionHost):
                service.add_extension(LifetimeExtension(container))
                self.hosts.append(service)
                logger.debug(f"Lifetime extension attached to {type(service).__qualname__}")
