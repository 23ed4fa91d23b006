from .cache_store import CacheStore
from .config import CACHE_TTL, COMPRESS_THRESHOLD
from .keys import CacheKeys
from .loggable import Loggable
from .payload import decode_payload, encode_payload


class ScanCheckpoint(Loggable):
    """Scan position and partial results of an unfinished full-table scan.

    ``SCAN_CURSOR`` is only present while a scan is incomplete, so its absence
    means there is nothing to resume.
    """

    def __init__(self, store: CacheStore, keys: CacheKeys, ttl: int = CACHE_TTL,
                 compress_threshold: int = COMPRESS_THRESHOLD, logging: bool = True):
        self._store = store
        self._keys = keys
        self.ttl = ttl
        self.compress_threshold = compress_threshold
        self._logging = logging

    async def has_cursor(self) -> bool:
        return await self._store.get(self._keys.scan_cursor) is not None

    async def load_partial(self) -> list | None:
        return decode_payload(await self._store.get(self._keys.partial))

    async def load(self) -> tuple[dict, list] | None:
        """Cursor and accumulated records of an interrupted scan, or None."""
        cursor = decode_payload(await self._store.get(self._keys.scan_cursor))
        if cursor is None:
            return None
        records = await self.load_partial() or []
        return cursor, records

    async def _write(self, key: str, value, generation: int | None) -> bool:
        payload, compressed = encode_payload(value, self.compress_threshold)
        if compressed:
            self._log(f"Compressed checkpoint '{key}' to {len(payload):,} bytes")
        if generation is None:
            await self._store.set(key, payload, self.ttl)
            return True
        return await self._store.set_if_equals(self._keys.generation, str(generation), key, payload, self.ttl)

    async def save(self, records: list, cursor: dict | None, generation: int | None = None) -> bool:
        """Persist one page of progress.

        With ``generation`` set, every write is conditional on the generation
        being unchanged; False means an invalidation won and nothing more was
        written.
        """
        if records:
            if not await self._write(self._keys.partial, records, generation):
                return False
            self._log(f"Cached {len(records):,} partial records")
        if cursor is None:
            await self._store.delete(self._keys.scan_cursor)
            return True
        if not await self._write(self._keys.scan_cursor, cursor, generation):
            return False
        self._log("Saved scan position for resume")
        return True

    async def clear(self):
        await self._store.delete(self._keys.partial, self._keys.scan_cursor)
