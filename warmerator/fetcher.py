import asyncio
import time

from .checkpoint import ScanCheckpoint
from .config import PAGE_DELAY, SCAN_BATCH_SIZE
from .errors import ScanSupersededError, StaleLockError
from .generation import Generation
from .loggable import Loggable
from .lock import DistributedLock
from .records import record_id
from .source import DesignSource


class CollectionFetcher(Loggable):
    """Full-table scan of the source, checkpointed after every page.

    The scan resumes from the checkpoint when one exists and leaves it in
    place when anything goes wrong, so the next run picks up where this one
    stopped.
    """

    def __init__(self, source: DesignSource, checkpoint: ScanCheckpoint, lock: DistributedLock,
                 generation: Generation = None, batch_size: int = SCAN_BATCH_SIZE,
                 page_delay: float = PAGE_DELAY, logging: bool = True):
        self.source = source
        self.checkpoint = checkpoint
        self.lock = lock
        self.generation = generation
        self.batch_size = batch_size
        self.page_delay = page_delay
        self._logging = logging

    async def _ensure_lock(self, token: str):
        if await self.lock.is_stale():
            self._log("Lock became stale during fetch")
            raise StaleLockError(f"Lock '{self.lock.key}' became stale during fetch")
        if not await self.lock.is_held_by(token):
            self._log("Lock was lost during fetch")
            raise StaleLockError(f"Lock '{self.lock.key}' is no longer held by this fetch")

    async def fetch_all(self, token: str, generation: int | None = None) -> list:
        """Scan every record while ``token`` owns the lock.

        With ``generation`` set, checkpoints are only written while the cache
        generation is unchanged; otherwise ScanSupersededError is raised.
        """
        start = time.perf_counter()
        records = []
        seen = set()
        cursor = None

        resumed = await self.checkpoint.load()
        if resumed is not None:
            cursor, records = resumed
            seen = {record_id(r) for r in records}
            self._log(f"Resuming scan from last position with {len(records):,} records from partial cache")

        scan_count = 0
        while True:
            await self._ensure_lock(token)
            scan_count += 1
            page = await self.source.scan_page(self.batch_size, cursor)
            added = 0
            for item in page.items:
                uid = record_id(item)
                if uid is not None and uid in seen:
                    continue
                seen.add(uid)
                records.append(item)
                added += 1
            self._log(f"Scan #{scan_count}: {len(page.items):,} items fetched, {added:,} new, {len(records):,} total")

            cursor = page.last_key
            if not await self.checkpoint.save(records if added else [], cursor, generation):
                current = await self.generation.current() if self.generation else None
                self._log(f"Cache invalidated during fetch (generation {generation} -> {current}), abandoning scan")
                raise ScanSupersededError(generation, current)
            if cursor is None:
                break
            await asyncio.sleep(self.page_delay)

        self._log(f"Fetch complete: {len(records):,} records in {scan_count} scans, "
                  f"{(time.perf_counter() - start) * 1000:.0f}ms")
        return records
