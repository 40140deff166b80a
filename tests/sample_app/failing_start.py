from servicebay import post_construct, pre_destroy, singleton

from .journal import record


@singleton
class Healthy:
    def start(self):
        record("Healthy", "start")

    def stop(self):
        record("Healthy", "stop")


@singleton
class Broken:
    @post_construct
    def ready(self):
        record("Broken", "post_construct")

    @pre_destroy
    def cleanup(self):
        record("Broken", "pre_destroy")

    async def start(self):
        raise RuntimeError("port already in use")

    def stop(self):
        record("Broken", "stop")


@singleton
class NeverReached:
    def start(self):
        record("NeverReached", "start")
