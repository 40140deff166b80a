from servicebay import Addon


class FailingConfigureAddon(Addon):
    def configure(self, container):
        raise ValueError("bad addon setup")
