"""
Service locator used by the container to hold singletons, inject
dependencies and run post-construct / pre-destroy callbacks.
"""

from .core import ServiceLocator, token_to_key
from .decorators import Inject, inject, post_construct, pre_destroy
from .errors import DIError, ProviderNotFoundError

__all__ = [
    "ServiceLocator",
    "token_to_key",
    "Inject",
    "inject",
    "post_construct",
    "pre_destroy",
    "DIError",
    "ProviderNotFoundError",
]
