"""
Container - discovers singleton services and addons, injects them and
drives their lifecycle.

Startup (``await container.start()``):
    1. Load configuration (unless pre-seeded)
    2. Let configuration override the container name
    3. Create a fresh service locator holding the container itself
    4. Discover addons, merge their scan targets
    5. Crawl packages and classes, registering singleton services
    6. Run addon ``configure`` hooks
    7. Initialize services in discovery order, then addon ``post_inject``

Steps 1-5 are best-effort: failures are logged, collected in
``discovery_warnings`` and startup continues with what was found. Steps 6-7
propagate failures to the caller.

A container is started at most once; use a fresh instance to restart.
"""

import asyncio
import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Type, TypeVar, Union

from . import injection
from .addons import ADDON_NAMESPACE, Addon
from .config import ConfigurationStore, YAMLConfigReader
from .descriptors import TypeDescriptor, describe, type_name
from .di import ServiceLocator
from .discovery import PackageScanner, load_type
from .errors import (
    AlreadyStartedError,
    ConfigurationError,
    ContainerError,
    DiscoveryError,
    LifecycleError,
)
from .lifecycle import (
    ContainerPhase,
    LifecycleEvent,
    ServiceState,
    TeardownOrder,
    call_hook,
)


logger = logging.getLogger("servicebay.container")

T = TypeVar("T")

DEFAULT_NAME = "servicebay-container"

NAME_KEY = "servicebay.container.name"
PACKAGES_KEY = "servicebay.container.packages"
CLASSES_KEY = "servicebay.container.classes"
SCAN_NESTED_KEY = "servicebay.container.scan_nested"
TEARDOWN_ORDER_KEY = "servicebay.container.teardown_order"
LIFECYCLE_TIMEOUT_KEY = "servicebay.container.lifecycle_timeout"


@dataclass
class ServiceRecord:
    """A discovered service instance and where it is in its lifecycle."""
    instance: Any
    descriptor: TypeDescriptor
    intercepted: bool = False
    state: ServiceState = ServiceState.DISCOVERED

    @property
    def name(self) -> str:
        return self.descriptor.name


def _is_addon_type(cls: type) -> bool:
    return (
        issubclass(cls, Addon)
        and cls is not Addon
        and not inspect.isabstract(cls)
        and not getattr(cls, "_is_protocol", False)
    )


def _nested_classes(cls: type) -> List[type]:
    prefix = cls.__qualname__ + "."
    return [
        member for member in vars(cls).values()
        if inspect.isclass(member) and member.__qualname__ == prefix + member.__name__
    ]


def _dedupe(items: Iterable[Any]) -> List[Any]:
    return list(dict.fromkeys(items))


class Container:
    """
    Minimal application container.

    Usage:
        container = Container()
        container.add_package_to_scan("myapp.services")
        await container.start()
        clock = container.get(Clock)
        ...
        await container.stop()

    Or as an async context manager:
        async with Container(config={...}) as container:
            ...
    """

    #: Package crawled for Addon subclasses on every start.
    addon_namespace: str = ADDON_NAMESPACE

    def __init__(
        self,
        name: Optional[str] = None,
        *,
        config: Optional[Mapping] = None,
        config_reader: Optional[YAMLConfigReader] = None,
        scan_nested: Optional[bool] = None,
        teardown_order: Optional[Union[TeardownOrder, str]] = None,
        lifecycle_timeout: Optional[float] = None,
    ):
        """
        Initialize container.

        Args:
            name: Container name (configuration may override it)
            config: Pre-seeded configuration; skips reading YAML sources
            config_reader: Reader used when no configuration is supplied
            scan_nested: Recurse into nested classes of non-service types
            teardown_order: ``reverse`` (default) or ``discovery``
            lifecycle_timeout: Seconds allowed per lifecycle callback
        """
        self.name = name or DEFAULT_NAME
        self._config: Optional[ConfigurationStore] = None
        if config is not None:
            self.configuration = config
        self._config_reader = config_reader
        self._scan_nested = scan_nested
        self._teardown_order = TeardownOrder(teardown_order) if teardown_order else None
        self._lifecycle_timeout = lifecycle_timeout

        self.phase = ContainerPhase.INIT
        self.service_locator: Optional[ServiceLocator] = None
        self.scanner = PackageScanner()

        self._packages_to_scan: List[str] = []
        self._classes_to_scan: List[Union[str, type]] = []
        self._discovered_types: List[type] = []
        self._processed: set = set()
        self._records: List[ServiceRecord] = []
        self._addons: List[Addon] = []
        self._discovered = False
        self._event_handlers: List[Callable[[LifecycleEvent], None]] = []

        self.discovery_warnings: List[ContainerError] = []
        self.teardown_errors: List[LifecycleError] = []

    def __repr__(self) -> str:
        return f"<Container name={self.name!r} phase={self.phase.value} services={len(self._records)}>"

    # ------------------------------------------------------------------
    # Configuration and settings
    # ------------------------------------------------------------------

    @property
    def configuration(self) -> ConfigurationStore:
        if self._config is None:
            return ConfigurationStore()
        return self._config

    @configuration.setter
    def configuration(self, config: Mapping) -> None:
        if not isinstance(config, ConfigurationStore):
            config = ConfigurationStore(config)
        self._config = config

    @property
    def scan_nested(self) -> bool:
        return bool(self._scan_nested)

    @property
    def teardown_order(self) -> TeardownOrder:
        return self._teardown_order or TeardownOrder.REVERSE

    @property
    def lifecycle_timeout(self) -> Optional[float]:
        return self._lifecycle_timeout

    def _load_configuration(self) -> None:
        if self._config is None:
            reader = self._config_reader or YAMLConfigReader()
            try:
                self._config = reader.read()
            except ConfigurationError:
                self._config = ConfigurationStore()
                raise

        store = self._config
        self.name = store.get_as_str(NAME_KEY, self.name)

        if self._scan_nested is None:
            self._scan_nested = store.get_as_bool(SCAN_NESTED_KEY, False)
        if self._lifecycle_timeout is None:
            self._lifecycle_timeout = store.get_as_float(LIFECYCLE_TIMEOUT_KEY)
        if self._teardown_order is None:
            order = store.get_as_str(TEARDOWN_ORDER_KEY, TeardownOrder.REVERSE.value)
            try:
                self._teardown_order = TeardownOrder(order)
            except ValueError as e:
                raise ConfigurationError(
                    f"Config key '{TEARDOWN_ORDER_KEY}' must be one of "
                    f"{[o.value for o in TeardownOrder]}, got {order!r}"
                ) from e

    # ------------------------------------------------------------------
    # Pre-start configuration
    # ------------------------------------------------------------------

    def _warn_if_started(self, what: str) -> None:
        if self._discovered:
            logger.warning(f"{what} after discovery has no effect on container '{self.name}'")

    def add_package_to_scan(self, package_name: str) -> None:
        self._warn_if_started(f"Adding package {package_name}")
        self._packages_to_scan.append(package_name)

    def add_class_to_scan(self, class_or_name: Union[str, type]) -> None:
        """Add a class (or its fully-qualified name) to scan."""
        label = class_or_name if isinstance(class_or_name, str) else type_name(class_or_name)
        self._warn_if_started(f"Adding class {label}")
        self._classes_to_scan.append(class_or_name)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def discovered_types(self) -> List[type]:
        """Every type considered by the crawl, in processing order."""
        return list(self._discovered_types)

    @property
    def discovered_services(self) -> List[Any]:
        """Service instances in discovery order."""
        return [record.instance for record in self._records]

    @property
    def discovered_addons(self) -> List[Addon]:
        return list(self._addons)

    @property
    def service_records(self) -> List[ServiceRecord]:
        return list(self._records)

    @property
    def service_states(self) -> Dict[str, ServiceState]:
        """Service type name -> current lifecycle state."""
        return {record.name: record.state for record in self._records}

    def get(self, service_type: Type[T], create_if_absent: bool = False) -> Optional[T]:
        """
        Get the registered instance of ``service_type``.

        Args:
            service_type: Type to look up
            create_if_absent: Construct and inject a new (untracked) instance
                when none is registered

        Returns:
            The instance, or None when absent and not created
        """
        instance = None
        if self.service_locator is not None:
            instance = self.service_locator.get_service(service_type)

        if instance is None and create_if_absent:
            instance = service_type()
            self.inject(instance)

        return instance

    def inject(self, obj: Any, inject_config: bool = True) -> None:
        """Inject dependencies and (optionally) configuration into ``obj``."""
        if self.service_locator is not None:
            self.service_locator.inject(obj)

        if inject_config:
            injection.inject_config(obj, self.configuration)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_event(self, handler: Callable[[LifecycleEvent], None]) -> None:
        """
        Register event handler.

        Args:
            handler: Callable that receives LifecycleEvent
        """
        self._event_handlers.append(handler)

    def _emit_event(self, event: LifecycleEvent) -> None:
        for handler in self._event_handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Event handler error: {e}")

    # ------------------------------------------------------------------
    # Discovery (best-effort)
    # ------------------------------------------------------------------

    def _record_warning(self, error: ContainerError) -> None:
        self.discovery_warnings.append(error)
        logger.warning(str(error))

    def _best_effort(self, step: str, func: Callable[[], None]) -> None:
        try:
            func()
        except ContainerError as e:
            logger.error(f"Container '{self.name}' {step} failed: {e}")
            self.discovery_warnings.append(e)
        except Exception as e:
            logger.error(f"Container '{self.name}' {step} failed: {e}")
            error = DiscoveryError(f"{step} failed: {e}")
            error.__cause__ = e
            self.discovery_warnings.append(error)

    def _create_locator(self) -> None:
        self.service_locator = ServiceLocator(self.name)
        self.service_locator.add_constant(self, contracts=(type(self), Container))

    async def discover(self) -> None:
        """
        Run the discovery steps of ``start()`` without initializing services.

        Runs at most once per container; ``start()`` reuses its result.
        """
        if self._discovered:
            return
        self._discovered = True

        self._best_effort("configuration loading", self._load_configuration)
        self._best_effort("service locator creation", self._create_locator)
        self._best_effort("addon discovery", self._discover_addons)
        self._best_effort("package crawl", self._crawl_packages)

    def _discover_addons(self) -> None:
        candidates = self.scanner.scan_package(
            self.addon_namespace,
            predicate=_is_addon_type,
            on_error=self._record_warning,
        )

        for addon_class in candidates:
            name = type_name(addon_class)
            try:
                addon = addon_class()
                packages = list(addon.get_packages_to_scan() or [])
                classes = list(addon.get_classes_to_scan() or [])
            except Exception as e:
                error = DiscoveryError(f"Addon {name} failed to load: {e}", target=name)
                error.__cause__ = e
                self._record_warning(error)
                continue

            self._packages_to_scan.extend(packages)
            self._classes_to_scan.extend(classes)
            self._addons.append(addon)
            logger.debug(f"  ↳ addon {name} loaded")

        logger.info(f"Container discovered {len(self._addons)} addons.")

    def _crawl_packages(self) -> None:
        store = self.configuration

        packages = _dedupe(list(store.get_as_list(PACKAGES_KEY, [])) + self._packages_to_scan)
        for package in packages:
            try:
                types = self.scanner.scan_package(package, on_error=self._record_warning)
            except DiscoveryError as e:
                self._record_warning(e)
                continue

            for cls in types:
                self._process_guarded(cls)

        classes = _dedupe(list(store.get_as_list(CLASSES_KEY, [])) + self._classes_to_scan)
        for target in classes:
            if isinstance(target, str):
                try:
                    target = load_type(target)
                except DiscoveryError as e:
                    self._record_warning(e)
                    continue
            self._process_guarded(target)

        logger.info(
            f"Container considered {len(self._discovered_types)} classes "
            f"and discovered {len(self._records)} services."
        )

    def _process_guarded(self, cls: type) -> None:
        try:
            self.process_type(cls)
        except Exception as e:
            name = type_name(cls)
            error = DiscoveryError(f"Could not register {name}: {e}", target=name)
            error.__cause__ = e
            self._record_warning(error)

    def process_type(self, cls: type) -> Optional[Any]:
        """
        Process one candidate type (at most once per container).

        Singleton types are instantiated, or taken from their interception
        slot in configuration, then tracked and registered in the locator.

        Returns:
            The service instance when ``cls`` is a singleton registered by
            this call, otherwise None
        """
        if cls in self._processed:
            return None
        self._processed.add(cls)
        self._discovered_types.append(cls)

        descriptor = describe(cls)
        if descriptor.is_singleton:
            # Singletons are a special case as we allow interception
            instance = self.configuration.get_as_instance(descriptor.name)
            intercepted = instance is not None
            if not intercepted:
                instance = cls()

            self._records.append(ServiceRecord(instance, descriptor, intercepted=intercepted))
            self.service_locator.add_constant(instance, contracts=(cls,))
            logger.debug(
                f"  ↳ {descriptor.name} registered"
                + (" (intercepted)" if intercepted else "")
            )
            return instance

        if self.scan_nested:
            for nested in _nested_classes(cls):
                self._process_guarded(nested)

        return None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """
        Start the container.

        Raises:
            AlreadyStartedError: If called more than once
            InjectionError: If a service cannot be injected
            LifecycleError: If a service or addon hook fails; services
                started before the failure keep running
        """
        if self.phase is not ContainerPhase.INIT:
            raise AlreadyStartedError(self.name, self.phase.value)

        self.phase = ContainerPhase.STARTING
        self._emit_event(LifecycleEvent(ContainerPhase.STARTING))
        logger.info(f"Starting container '{self.name}'...")

        await self.discover()

        try:
            await self._init_services()
        except Exception as e:
            self.phase = ContainerPhase.ERROR
            self._emit_event(LifecycleEvent(ContainerPhase.ERROR, message="Startup failed", error=e))
            logger.error(f"✗ Container '{self.name}' failed to start: {e}")
            raise

        self.phase = ContainerPhase.READY
        self._emit_event(LifecycleEvent(ContainerPhase.READY))
        logger.info(
            f"✓ Container '{self.name}' started "
            f"({len(self._records)} services, {len(self.discovery_warnings)} warnings)."
        )

    async def _init_services(self) -> None:
        for addon in self._addons:
            await self._call_addon(addon, "configure")

        # Indexing picks up services registered by hooks during the pass
        index = 0
        while index < len(self._records):
            await self._init_service(self._records[index])
            index += 1

        for addon in self._addons:
            await self._call_addon(addon, "post_inject")

    async def _call_addon(self, addon: Addon, hook: str) -> None:
        name = type_name(type(addon))
        try:
            await call_hook(lambda: getattr(addon, hook)(self), self.lifecycle_timeout)
        except ContainerError:
            raise
        except asyncio.TimeoutError as e:
            raise LifecycleError(
                f"Addon {name}.{hook} timed out after {self.lifecycle_timeout}s",
                service=name, hook=hook,
            ) from e
        except Exception as e:
            raise LifecycleError(f"Addon {name}.{hook} failed: {e}", service=name, hook=hook) from e

    async def _run_hook(self, record: ServiceRecord, hook: str, func: Callable[[], Any]) -> None:
        try:
            await call_hook(func, self.lifecycle_timeout)
        except ContainerError:
            raise
        except asyncio.TimeoutError as e:
            raise LifecycleError(
                f"Service {record.name} {hook} timed out after {self.lifecycle_timeout}s",
                service=record.name, hook=hook,
            ) from e
        except Exception as e:
            raise LifecycleError(
                f"Service {record.name} {hook} failed: {e}",
                service=record.name, hook=hook,
            ) from e

    def _transition(self, record: ServiceRecord, state: ServiceState) -> None:
        record.state = state
        self._emit_event(LifecycleEvent(self.phase, service=record.name, state=state))

    async def _init_service(self, record: ServiceRecord) -> None:
        if record.state is not ServiceState.DISCOVERED:
            return

        instance = record.instance
        locator = self.service_locator

        self.inject(instance)
        self._transition(record, ServiceState.INJECTED)

        await self._run_hook(record, "post_construct", lambda: locator.post_construct(instance))
        self._transition(record, ServiceState.POST_CONSTRUCTED)

        start = getattr(instance, "start", None)
        if callable(start):
            await self._run_hook(record, "start", start)
        self._transition(record, ServiceState.STARTED)
        logger.debug(f"  ↳ {record.name} started")

    async def stop(self) -> None:
        """
        Stop the container.

        Tears down every service that got past post-construct, in reverse
        discovery order unless ``teardown_order`` is ``discovery``. A failing
        service does not prevent the others from stopping; failures are
        logged and collected in ``teardown_errors``. Never raises.
        """
        if self.phase in (ContainerPhase.INIT, ContainerPhase.STOPPED):
            logger.debug(f"Container '{self.name}' not running, nothing to stop")
            return

        self.phase = ContainerPhase.STOPPING
        self._emit_event(LifecycleEvent(ContainerPhase.STOPPING))
        logger.info(f"Stopping container '{self.name}'...")

        records = list(self._records)
        if self.teardown_order is TeardownOrder.REVERSE:
            records.reverse()

        for record in records:
            await self._destroy_service(record)

        self._clear()
        self.phase = ContainerPhase.STOPPED
        self._emit_event(LifecycleEvent(ContainerPhase.STOPPED))

        if self.teardown_errors:
            logger.warning(
                f"Container '{self.name}' stopped with {len(self.teardown_errors)} teardown errors."
            )
        else:
            logger.info(f"✓ Container '{self.name}' stopped.")

    async def _destroy_service(self, record: ServiceRecord) -> None:
        if record.state not in (ServiceState.POST_CONSTRUCTED, ServiceState.STARTED):
            return

        instance = record.instance
        locator = self.service_locator
        was_started = record.state is ServiceState.STARTED

        try:
            await self._run_hook(record, "pre_destroy", lambda: locator.pre_destroy(instance))
        except LifecycleError as e:
            self._teardown_failure(record, e)
        self._transition(record, ServiceState.PRE_DESTROYED)

        stop = getattr(instance, "stop", None)
        if was_started and callable(stop):
            try:
                await self._run_hook(record, "stop", stop)
            except LifecycleError as e:
                self._teardown_failure(record, e)
        self._transition(record, ServiceState.STOPPED)

    def _teardown_failure(self, record: ServiceRecord, error: LifecycleError) -> None:
        # Log but don't raise - continue cleanup
        self.teardown_errors.append(error)
        logger.error(f"  ✗ {record.name} teardown error: {error}")
        self._emit_event(LifecycleEvent(
            ContainerPhase.STOPPING,
            service=record.name,
            message=f"{record.name} teardown error",
            error=error,
        ))

    def _clear(self) -> None:
        self._records.clear()
        self._addons.clear()
        self._discovered_types.clear()
        self._processed.clear()
        if self.service_locator is not None:
            self.service_locator.clear()
            self.service_locator = None

    async def __aenter__(self) -> "Container":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.stop()
        return False  # Don't suppress exceptions
