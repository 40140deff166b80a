"""
Service locator - registry of live singletons for one container start.

The locator is an explicit object handed to whoever needs lookup; there is
no process-wide instance.
"""

from typing import (
    Annotated,
    Any,
    Dict,
    List,
    Optional,
    Tuple,
    Type,
    TypeVar,
    get_args,
    get_origin,
    get_type_hints,
)
import inspect
import logging

from .decorators import Inject, POST_CONSTRUCT, PRE_DESTROY
from .errors import DIError, ProviderNotFoundError


logger = logging.getLogger("servicebay.di")

T = TypeVar("T")

# Module-level cache: type -> "module.qualname" string
_type_key_cache: Dict[type, str] = {}

# Per-class injection plans: type -> [(attr, token, optional)]
_inject_plans: Dict[type, List[Tuple[str, Any, bool]]] = {}

# Per-class lifecycle callbacks: (type, phase) -> [method names]
_hook_cache: Dict[Tuple[type, str], List[str]] = {}


def token_to_key(token: Type | str) -> str:
    """Convert type or string to registry key (``module.qualname``)."""
    if isinstance(token, str):
        return token

    if isinstance(token, type):
        key = _type_key_cache.get(token)
        if key is None:
            key = f"{token.__module__}.{token.__qualname__}"
            _type_key_cache[token] = key
        return key

    return str(token)


def _inject_plan(cls: type) -> List[Tuple[str, Any, bool]]:
    plan = _inject_plans.get(cls)
    if plan is not None:
        return plan

    plan = []
    try:
        hints = get_type_hints(cls, include_extras=True)
    except Exception as e:
        raise DIError(f"Cannot read annotations of {token_to_key(cls)}: {e}") from e

    for attr, annotation in hints.items():
        if get_origin(annotation) is not Annotated:
            continue
        base, *metadata = get_args(annotation)
        for meta in metadata:
            if isinstance(meta, Inject):
                token = meta.token if meta.token is not None else base
                plan.append((attr, token, meta.optional))
                break

    _inject_plans[cls] = plan
    return plan


def _lifecycle_methods(cls: type, phase: str) -> List[str]:
    key = (cls, phase)
    names = _hook_cache.get(key)
    if names is not None:
        return names

    names = []
    # Base classes first, each name once (overrides replace the base hook)
    for klass in reversed(cls.__mro__):
        for name, member in vars(klass).items():
            func = getattr(member, "__func__", member)
            if getattr(func, "__sb_lifecycle__", None) == phase and name not in names:
                names.append(name)

    _hook_cache[key] = names
    return names


class ServiceLocator:
    """
    Registry of live instances with field injection and lifecycle callbacks.

    Responsibilities:
    - Hold constants (ready-made singletons) by type name and contracts
    - Inject ``Annotated[T, Inject()]`` fields from registered constants
    - Invoke @post_construct / @pre_destroy callbacks (sync or async)
    """

    __slots__ = ("name", "_constants", "_order")

    def __init__(self, name: str = "servicebay"):
        self.name = name
        self._constants: Dict[str, Any] = {}
        self._order: List[Any] = []

    def add_constant(self, instance: Any, contracts: Tuple[type, ...] = ()) -> None:
        """
        Register a live singleton.

        Args:
            instance: The object to register
            contracts: Types the instance is found under (default: its own type)
        """
        keys = [token_to_key(c) for c in (contracts or (type(instance),))]

        for key in keys:
            existing = self._constants.get(key)
            if existing is not None and existing is not instance:
                raise DIError(
                    f"Service for {key} already registered in locator '{self.name}': "
                    f"{type(existing).__qualname__}"
                )
            self._constants[key] = instance

        self._order.append(instance)
        logger.debug(f"Registered constant {keys[0]} in locator '{self.name}'")

    def get_service(self, token: Type[T] | str) -> Optional[T]:
        """Get a registered instance, or None when absent."""
        instance = self._constants.get(token_to_key(token))
        if instance is not None:
            return instance

        if isinstance(token, type):
            for candidate in self._order:
                if isinstance(candidate, token):
                    return candidate

        return None

    def resolve(
        self,
        token: Type[T] | str,
        *,
        optional: bool = False,
        requested_by: Optional[str] = None,
    ) -> Optional[T]:
        """
        Resolve a registered instance.

        Raises:
            ProviderNotFoundError: If not registered and not optional
        """
        instance = self.get_service(token)
        if instance is None and not optional:
            key = token_to_key(token)
            short = key.rsplit(".", 1)[-1]
            candidates = [k for k in self._constants if k.endswith(short)]
            raise ProviderNotFoundError(key, candidates=candidates, requested_by=requested_by)
        return instance

    def is_registered(self, token: Type | str) -> bool:
        return self.get_service(token) is not None

    def services(self) -> List[Any]:
        """All registered instances in registration order."""
        return list(self._order)

    def inject(self, obj: Any) -> None:
        """Assign every ``Inject``-annotated field of ``obj``."""
        owner = token_to_key(type(obj))
        for attr, token, optional in _inject_plan(type(obj)):
            value = self.resolve(token, optional=optional, requested_by=owner)
            setattr(obj, attr, value)

    async def post_construct(self, obj: Any) -> None:
        """Run @post_construct callbacks of ``obj``."""
        await self._run_hooks(obj, POST_CONSTRUCT)

    async def pre_destroy(self, obj: Any) -> None:
        """Run @pre_destroy callbacks of ``obj``."""
        await self._run_hooks(obj, PRE_DESTROY)

    async def _run_hooks(self, obj: Any, phase: str) -> None:
        for name in _lifecycle_methods(type(obj), phase):
            result = getattr(obj, name)()
            if inspect.isawaitable(result):
                await result

    def has_hooks(self, obj: Any, phase: str) -> bool:
        return bool(_lifecycle_methods(type(obj), phase))

    def clear(self) -> None:
        self._constants.clear()
        self._order.clear()
