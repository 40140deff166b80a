"""
Injection markers and lifecycle callback decorators.
"""

from typing import Any, Callable, Optional, Type, TypeVar
from dataclasses import dataclass


F = TypeVar("F", bound=Callable[..., Any])

POST_CONSTRUCT = "post_construct"
PRE_DESTROY = "pre_destroy"


@dataclass(frozen=True)
class Inject:
    """
    Injection metadata marker for fields.

    Usage:
        class UserService:
            repo: Annotated[UserRepo, Inject()]
            cache: Annotated[Cache, Inject(optional=True)]
    """

    token: Optional[Type | str] = None
    optional: bool = False


def inject(
    token: Optional[Type | str] = None,
    *,
    optional: bool = False,
) -> Inject:
    """
    Create injection metadata.

    Args:
        token: Optional explicit token (inferred from the annotation if None)
        optional: If True, inject None if no service is registered

    Returns:
        Inject metadata object
    """
    return Inject(token=token, optional=optional)


def _lifecycle_marker(phase: str) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        func.__sb_lifecycle__ = phase  # type: ignore[attr-defined]
        return func
    return decorator


def post_construct(func: F) -> F:
    """
    Mark a method to run after dependencies and configuration are injected.

    Example:
        @post_construct
        async def connect(self):
            self.pool = await create_pool(self.dsn)
    """
    return _lifecycle_marker(POST_CONSTRUCT)(func)


def pre_destroy(func: F) -> F:
    """Mark a method to run before the service is stopped."""
    return _lifecycle_marker(PRE_DESTROY)(func)
