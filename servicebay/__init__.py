"""
Servicebay - discovery-and-lifecycle application container.

Complete integration of:
- Config: layered YAML sources with ``${VAR:default}`` interpolation
- Discovery: package crawling for marked singleton services and addons
- Injection: ``Annotated`` dependency and configuration fields
- Lifecycle: post-construct, start, pre-destroy and stop, in order
"""

__version__ = "0.1.0"

# ============================================================================
# Core
# ============================================================================

from .container import Container, ServiceRecord
from .lifecycle import ContainerPhase, LifecycleEvent, ServiceState, TeardownOrder

# ============================================================================
# Service declaration
# ============================================================================

from .descriptors import (
    ServiceMarker,
    TypeDescriptor,
    describe,
    register_service,
    register_singleton,
    service,
    singleton,
    unregister,
)
from .di import Inject, ServiceLocator, inject, post_construct, pre_destroy
from .injection import Config

# ============================================================================
# Configuration
# ============================================================================

from .config import ConfigurationStore, YAMLConfigReader, read_config

# ============================================================================
# Addons
# ============================================================================

from .addons import Addon, ExtensionHost, LifetimeAddon, LifetimeExtension

# ============================================================================
# Errors
# ============================================================================

from .errors import (
    AlreadyStartedError,
    ConfigurationError,
    ContainerError,
    DiscoveryError,
    ImmutableFieldError,
    InjectionError,
    LifecycleError,
    UnsupportedFieldTypeError,
)
from .di import DIError, ProviderNotFoundError


__all__ = [
    "__version__",
    # Core
    "Container",
    "ServiceRecord",
    "ContainerPhase",
    "LifecycleEvent",
    "ServiceState",
    "TeardownOrder",
    # Declaration
    "ServiceMarker",
    "TypeDescriptor",
    "describe",
    "register_service",
    "register_singleton",
    "service",
    "singleton",
    "unregister",
    "Inject",
    "ServiceLocator",
    "inject",
    "post_construct",
    "pre_destroy",
    "Config",
    # Configuration
    "ConfigurationStore",
    "YAMLConfigReader",
    "read_config",
    # Addons
    "Addon",
    "ExtensionHost",
    "LifetimeAddon",
    "LifetimeExtension",
    # Errors
    "AlreadyStartedError",
    "ConfigurationError",
    "ContainerError",
    "DiscoveryError",
    "ImmutableFieldError",
    "InjectionError",
    "LifecycleError",
    "UnsupportedFieldTypeError",
    "DIError",
    "ProviderNotFoundError",
]
