"""
Addon capability - pluggable contributors of scan targets and setup hooks.
"""

from typing import TYPE_CHECKING, Any, List

if TYPE_CHECKING:
    from ..container import Container


class Addon:
    """
    Base class for container addons.

    Concrete subclasses placed under the addon namespace are discovered,
    constructed once (no arguments) per container start and discarded on
    stop. Every hook is optional; ``configure`` and ``post_inject`` may be
    coroutines.

    Order of calls during ``Container.start()``:
        1. get_packages_to_scan() / get_classes_to_scan()  (before the crawl)
        2. configure(container)    (after the crawl, before services init)
        3. post_inject(container)  (after every service is started)
    """

    def get_packages_to_scan(self) -> List[str]:
        """Extra packages the container should crawl."""
        return []

    def get_classes_to_scan(self) -> List[str]:
        """Extra fully-qualified class names the container should crawl."""
        return []

    def configure(self, container: "Container") -> Any:
        """Runs once, before service initialization."""
        return None

    def post_inject(self, container: "Container") -> Any:
        """Runs once, after every discovered service is wired and started."""
        return None
