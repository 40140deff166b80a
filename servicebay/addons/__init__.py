"""
Addons shipped with servicebay.

Every concrete Addon subclass defined under this package is discovered
and loaded by ``Container.start()``.
"""

from .base import Addon
from .lifetime import ExtensionHost, LifetimeAddon, LifetimeExtension

ADDON_NAMESPACE = __name__

__all__ = [
    "ADDON_NAMESPACE",
    "Addon",
    "ExtensionHost",
    "LifetimeAddon",
    "LifetimeExtension",
]
