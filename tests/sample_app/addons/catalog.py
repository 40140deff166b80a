from abc import ABC, abstractmethod

from servicebay import Addon

from ..journal import record


class AbstractAddon(Addon, ABC):
    @abstractmethod
    def describe(self):
        ...


class BrokenAddon(Addon):
    def __init__(self):
        raise RuntimeError("addon cannot be constructed")


class RecordingAddon(Addon):
    def __init__(self):
        self.states_at_configure = None
        self.states_at_post_inject = None

    def get_packages_to_scan(self):
        return ["sample_app.greeting"]

    def get_classes_to_scan(self):
        return ["sample_app.extra.Extra"]

    def configure(self, container):
        record("RecordingAddon", "configure")
        self.states_at_configure = dict(container.service_states)

    async def post_inject(self, container):
        record("RecordingAddon", "post_inject")
        self.states_at_post_inject = dict(container.service_states)
