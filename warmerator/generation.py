from .cache_store import CacheStore


class Generation:
    """Monotonic invalidation counter shared through the cache store.

    Every invalidation bumps it. A fetch remembers the value it started under
    and commits only while the value is unchanged.
    """

    def __init__(self, store: CacheStore, key: str):
        self._store = store
        self.key = key

    async def current(self) -> int:
        return int(await self._store.get(self.key) or 0)

    async def bump(self, *keys: str) -> int:
        """Increment the counter and delete ``keys`` in one atomic store operation."""
        return await self._store.invalidate(self.key, *keys)
