"""A service that activates objects at runtime through a lifetime extension."""

from typing import Annotated

from servicebay import Config, Inject, singleton

from .greeting.services import Clock


@singleton
class ActivationHost:
    def __init__(self):
        self.extensions = []

    def add_extension(self, extension):
        self.extensions.append(extension)

    def activate(self, cls):
        obj = cls()
        for extension in self.extensions:
            obj = extension.pre_activation(obj)
        return obj


class Widget:
    clock: Annotated[Clock, Inject()]
    label: Annotated[str, Config("widget.label")] = "plain"
