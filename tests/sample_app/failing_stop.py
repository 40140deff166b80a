from servicebay import singleton

from .journal import record


@singleton
class Database:
    def stop(self):
        record("Database", "stop")


@singleton
class Flaky:
    async def stop(self):
        raise RuntimeError("connection reset")


@singleton
class Cache:
    def stop(self):
        record("Cache", "stop")
