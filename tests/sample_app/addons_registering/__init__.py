from servicebay import Addon

from ..extra import Extra


class RegistrarAddon(Addon):
    """Registers a service by hand instead of through the crawl."""

    def __init__(self):
        self.extra = None

    def configure(self, container):
        self.extra = container.process_type(Extra)
