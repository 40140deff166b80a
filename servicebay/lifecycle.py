"""
Lifecycle primitives - service states, container phases, events.

Services move strictly forward:

    DISCOVERED -> INJECTED -> POST_CONSTRUCTED -> STARTED
               -> PRE_DESTROYED -> STOPPED

There is no paused or restarted state.
"""

from typing import Any, Callable, Optional
from dataclasses import dataclass
import asyncio
import inspect
from enum import Enum


class ServiceState(Enum):
    """Per-service lifecycle states."""
    DISCOVERED = "discovered"
    INJECTED = "injected"
    POST_CONSTRUCTED = "post_constructed"
    STARTED = "started"
    PRE_DESTROYED = "pre_destroyed"
    STOPPED = "stopped"


class ContainerPhase(Enum):
    """Container phases."""
    INIT = "init"
    STARTING = "starting"
    READY = "ready"
    STOPPING = "stopping"
    STOPPED = "stopped"
    ERROR = "error"


class TeardownOrder(str, Enum):
    """Order in which services are torn down on stop()."""
    REVERSE = "reverse"      # Reverse of discovery order (default)
    DISCOVERY = "discovery"  # Same order as startup (legacy)


@dataclass
class LifecycleEvent:
    """Event emitted during lifecycle transitions."""
    phase: ContainerPhase
    service: Optional[str] = None
    state: Optional[ServiceState] = None
    message: Optional[str] = None
    error: Optional[BaseException] = None


async def call_hook(fn: Callable[[], Any], timeout: Optional[float] = None) -> Any:
    """
    Run a sync or async lifecycle callable and wait for it to complete.

    Raises:
        asyncio.TimeoutError: if ``timeout`` expires
    """
    result = fn()
    if inspect.isawaitable(result):
        if timeout is not None:
            return await asyncio.wait_for(result, timeout)
        return await result
    return result

