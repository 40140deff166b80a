"""
Package Scanner Utility.

Turns package names into candidate classes and fully-qualified names into
loaded types. Essential for container auto-discovery.
"""

import importlib
import inspect
import logging
import pkgutil
import time
from types import ModuleType
from typing import Any, Callable, Dict, List, Optional

from ..errors import DiscoveryError


logger = logging.getLogger("servicebay.scanner")

ErrorCallback = Callable[[DiscoveryError], None]


class PackageScanner:
    """
    Scanner for discovering classes in Python packages.

    Ordering is deterministic: modules in ``pkgutil`` walk order (sorted by
    name at each level, parents before children), classes in definition
    order within their module. Each class is reported once, from the
    module that defines it.
    """

    def __init__(self):
        self._scan_stats = {
            'scan_time': 0.0,
            'modules_scanned': 0,
            'classes_found': 0,
            'errors_encountered': 0,
        }

    def get_stats(self) -> Dict[str, Any]:
        """Get scanning statistics."""
        return self._scan_stats.copy()

    def scan_package(
        self,
        package_name: str,
        predicate: Optional[Callable[[type], bool]] = None,
        recursive: bool = True,
        on_error: Optional[ErrorCallback] = None,
    ) -> List[type]:
        """
        Scan a package (or plain module) for classes.

        Args:
            package_name: Dotted python path (e.g. 'myapp.services')
            predicate: Optional custom filter function
            recursive: Whether to scan subpackages
            on_error: Receives a DiscoveryError for every submodule that
                fails to import; the submodule is skipped

        Returns:
            List of discovered classes

        Raises:
            DiscoveryError: If the root package cannot be imported
        """
        start_time = time.time()
        discovered: List[type] = []

        try:
            module = importlib.import_module(package_name)
        except Exception as e:
            self._scan_stats['errors_encountered'] += 1
            raise DiscoveryError(
                f"Could not import package {package_name}: {e}", target=package_name
            ) from e

        self._scan_module(module, discovered, predicate)

        if recursive and hasattr(module, "__path__"):
            failed = set()

            def report(name: str) -> None:
                # walk_packages retries packages we already failed to import
                if name not in failed:
                    failed.add(name)
                    self._report(on_error, name, f"Failed to import subpackage {name}")

            for _, name, _ in pkgutil.walk_packages(
                module.__path__,
                module.__name__ + ".",
                onerror=report,
            ):
                try:
                    submodule = importlib.import_module(name)
                except Exception as e:
                    failed.add(name)
                    self._report(on_error, name, f"Failed to scan submodule {name}: {e}", e)
                    continue
                self._scan_module(submodule, discovered, predicate)

        self._scan_stats['classes_found'] += len(discovered)
        self._scan_stats['scan_time'] += time.time() - start_time
        return discovered

    def _report(
        self,
        on_error: Optional[ErrorCallback],
        name: str,
        message: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        self._scan_stats['errors_encountered'] += 1
        logger.debug(message)
        if on_error is not None:
            error = DiscoveryError(message, target=name)
            error.__cause__ = cause
            on_error(error)

    def _scan_module(
        self,
        module: ModuleType,
        discovered: List[type],
        predicate: Optional[Callable[[type], bool]],
    ) -> None:
        """Internal helper to scan a single module."""
        self._scan_stats['modules_scanned'] += 1

        # vars() keeps definition order, unlike inspect.getmembers()
        for obj in list(vars(module).values()):
            if not inspect.isclass(obj):
                continue

            # Only classes defined here, not re-exports or imports
            if obj.__module__ != module.__name__:
                continue

            if predicate and not predicate(obj):
                continue

            if obj not in discovered:
                discovered.append(obj)


def load_type(name: str) -> type:
    """
    Load a class by fully-qualified name.

    Accepts ``pkg.mod.Class``, ``pkg.mod.Outer.Inner`` and ``pkg.mod:Class``.

    Raises:
        DiscoveryError: If the module or attribute cannot be loaded
    """
    if ":" in name:
        module_name, qualname = name.split(":", 1)
        try:
            module = importlib.import_module(module_name)
        except Exception as e:
            raise DiscoveryError(f"Could not load class {name}: {e}", target=name) from e
        return _resolve_attr(module, qualname.split("."), name)

    parts = name.split(".")
    for index in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:index])
        try:
            module = importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            # Only the candidate itself missing means "try a shorter prefix"
            if e.name and (module_name == e.name or module_name.startswith(e.name + ".")):
                continue
            raise DiscoveryError(f"Could not load class {name}: {e}", target=name) from e
        except Exception as e:
            raise DiscoveryError(f"Could not load class {name}: {e}", target=name) from e
        return _resolve_attr(module, parts[index:], name)

    raise DiscoveryError(f"Could not load class {name}: no importable module", target=name)


def _resolve_attr(module: ModuleType, path: List[str], name: str) -> type:
    obj: Any = module
    for part in path:
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise DiscoveryError(f"Could not load class {name}: {e}", target=name) from e

    if not inspect.isclass(obj):
        raise DiscoveryError(f"{name} is not a class", target=name)
    return obj
