import time

from .cache_store import CacheStore
from .checkpoint import ScanCheckpoint
from .config import (CACHE_TTL, COMPRESS_THRESHOLD, DEFAULT_NAMESPACE, LOCK_RETRIES, LOCK_RETRY_DELAY, LOCK_TTL,
                     PAGE_DELAY, SCAN_BATCH_SIZE, Settings)
from .errors import ScanSupersededError
from .fetcher import CollectionFetcher
from .generation import Generation
from .jobs import BackgroundJobs
from .keys import CacheKeys
from .lock import DistributedLock
from .loggable import Loggable
from .payload import decode_payload, encode_payload
from .source import DesignSource

# outcomes recorded in last_cache_status
HIT = "hit"
PARTIAL = "partial"
MISS = "miss"
BUSY = "busy"


class CollectionCache(Loggable):
    """Cache-aside access to the complete record collection.

    Reads prefer the complete cache, then the partial cache of an unfinished
    scan (completing it in the background), then a lock-guarded fresh scan.
    Writes call ``invalidate_all`` so the next read rebuilds from the source.
    """

    def __init__(self,
                 store: CacheStore,
                 source: DesignSource,
                 data_id: str = DEFAULT_NAMESPACE,
                 ttl: int = CACHE_TTL,
                 lock_ttl: int = LOCK_TTL,
                 batch_size: int = SCAN_BATCH_SIZE,
                 page_delay: float = PAGE_DELAY,
                 lock_retries: int = LOCK_RETRIES,
                 lock_retry_delay: float = LOCK_RETRY_DELAY,
                 compress_threshold: int = COMPRESS_THRESHOLD,
                 logging: bool = True,
                 jobs: BackgroundJobs = None):
        """Initialize the cache for one collection.

        Args:
            store: Key-value store shared by every process serving the collection
            source: Paginated source of truth
            data_id: Collection name, slugified into the key namespace (default: "design_library")
            ttl: Lifetime of cache entries in seconds (default: 6 hours)
            lock_ttl: Seconds after which the scan lock counts as stale (default: 300)
            batch_size: Records requested per scan page (default: 1000)
            page_delay: Pause between scan pages in seconds (default: 0.1)
            lock_retries: Lock acquisition attempts (default: 3)
            lock_retry_delay: Pause between lock attempts in seconds (default: 1.0)
            compress_threshold: Payload size in bytes above which values are gzipped
            logging: True=log cache operations, False=silent (default: True)
            jobs: Background job registry (a private one by default)
        """
        self.keys = CacheKeys(data_id)
        self.store = store
        self.source = source
        self.ttl = ttl
        self.lock_retries = lock_retries
        self.lock_retry_delay = lock_retry_delay
        self.compress_threshold = compress_threshold
        self._logging = logging
        self.lock = DistributedLock(store, self.keys.lock, ttl=lock_ttl, logging=logging)
        self.generation = Generation(store, self.keys.generation)
        self.checkpoint = ScanCheckpoint(store, self.keys, ttl=ttl, compress_threshold=compress_threshold,
                                         logging=logging)
        self.fetcher = CollectionFetcher(source, self.checkpoint, self.lock, self.generation,
                                         batch_size=batch_size, page_delay=page_delay, logging=logging)
        self.jobs = jobs or BackgroundJobs(logging=logging)
        self.last_cache_status = None

    @classmethod
    def from_settings(cls, settings: Settings, store: CacheStore, source: DesignSource) -> "CollectionCache":
        return cls(store, source,
                   data_id=settings.namespace,
                   ttl=settings.cache_ttl,
                   lock_ttl=settings.lock_ttl,
                   batch_size=settings.scan_batch_size,
                   page_delay=settings.page_delay,
                   lock_retries=settings.lock_retries,
                   lock_retry_delay=settings.lock_retry_delay,
                   compress_threshold=settings.compress_threshold,
                   logging=settings.logging)

    def __repr__(self):
        return f"CollectionCache({self.keys.namespace!r})"

    async def get_collection(self) -> list:
        """All records, possibly a partial snapshot, or [] while another process is fetching."""
        start = time.perf_counter()

        complete = decode_payload(await self.store.get(self.keys.all_complete))
        if complete is not None:
            self.last_cache_status = HIT
            self._log(f"Complete cache HIT: {len(complete):,} records in {_elapsed_ms(start)}ms")
            return complete

        partial = await self.checkpoint.load_partial()
        if partial is not None:
            self.last_cache_status = PARTIAL
            self._log(f"Partial cache HIT: {len(partial):,} records in {_elapsed_ms(start)}ms")
            if await self.checkpoint.has_cursor():
                self._log("Found last scan position, completing the scan in the background")
                self.jobs.submit(self.keys.namespace, self._fetch_in_background)
            return partial

        self.last_cache_status = MISS
        self._log(f"Cache MISS after {_elapsed_ms(start)}ms")
        token = await self.lock.acquire(self.lock_retries, self.lock_retry_delay)
        if token is None:
            self.last_cache_status = BUSY
            self._log("Another process is fetching, returning an empty collection")
            return []
        try:
            records = await self._fetch_and_commit(token, attempts=2)
            return [] if records is None else records
        except Exception as e:
            self._log_error(f"Error fetching collection: {e!r}")
            raise
        finally:
            await self.lock.release(token)

    async def _fetch_and_commit(self, token: str, attempts: int = 1) -> list | None:
        """Fetch and commit the collection. None when every attempt was superseded by an invalidation."""
        for attempt in range(1, attempts + 1):
            generation = await self.generation.current()
            try:
                records = await self.fetcher.fetch_all(token, generation)
            except ScanSupersededError:
                self._log(f"Fetch attempt {attempt}/{attempts} superseded by an invalidation")
                continue
            if await self._commit(records, generation):
                return records
        return None

    async def _commit(self, records: list, generation: int) -> bool:
        """Store the finished collection unless an invalidation happened since ``generation``."""
        start = time.perf_counter()
        payload, compressed = encode_payload(records, self.compress_threshold)
        committed = await self.store.set_if_equals(self.keys.generation, str(generation),
                                                   self.keys.all_complete, payload, self.ttl)
        if not committed:
            self._log(f"Discarding {len(records):,} fetched records: cache invalidated since generation {generation}")
            return False
        await self.store.delete(self.keys.partial)
        self._log(f"Cached {len(records):,} complete records{' (compressed)' if compressed else ''} "
                  f"in {_elapsed_ms(start)}ms, TTL {self.ttl}s")
        return True

    async def _fetch_in_background(self) -> bool:
        token = await self.lock.acquire(self.lock_retries, self.lock_retry_delay)
        if token is None:
            self._log("Could not acquire lock for background fetch, skipping")
            return False
        try:
            return await self._fetch_and_commit(token) is not None
        finally:
            await self.lock.release(token)

    def refresh_in_background(self):
        """Refetch the collection without blocking; joins a background fetch already running."""
        return self.jobs.submit(self.keys.namespace, self._fetch_in_background)

    async def force_start(self) -> bool:
        """Run a full fetch now. True once the result is committed.

        False when another process holds the lock or an invalidation superseded the fetch.
        """
        token = await self.lock.acquire(self.lock_retries, self.lock_retry_delay)
        if token is None:
            self._log("Another process is already fetching")
            return False
        try:
            self._log("Force starting fetch from source")
            return await self._fetch_and_commit(token) is not None
        finally:
            await self.lock.release(token)

    async def invalidate_all(self) -> int:
        """Drop the complete cache, the partial cache and the scan position. Returns the new generation."""
        generation = await self.generation.bump(*self.keys.collection_keys)
        self._log(f"Cache invalidated, generation {generation}")
        return generation

    async def has_complete(self) -> bool:
        return await self.store.get(self.keys.all_complete) is not None

    async def is_fetching(self) -> bool:
        return await self.lock.is_locked()

    async def status(self) -> dict:
        return {
            "complete": await self.has_complete(),
            "partial": await self.store.get(self.keys.partial) is not None,
            "resumable": await self.checkpoint.has_cursor(),
            "fetching": await self.is_fetching(),
            "generation": await self.generation.current(),
            "jobs": self.jobs.running(),
            "lastCacheStatus": self.last_cache_status,
        }


def _elapsed_ms(start: float) -> int:
    return round((time.perf_counter() - start) * 1000)
