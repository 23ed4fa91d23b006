import asyncio
import secrets
import time

from .cache_store import CacheStore
from .config import LOCK_RETRIES, LOCK_RETRY_DELAY, LOCK_TTL
from .errors import CacheStoreError
from .loggable import Loggable


def _now_ms() -> int:
    return int(time.time() * 1000)


def _timestamp_of(value: str | None) -> int | None:
    """Holder timestamp from a lock value of the form ``<epoch-millis>:<token>``."""
    if not value:
        return None
    try:
        return int(value.split(":", 1)[0])
    except ValueError:
        return None


class DistributedLock(Loggable):
    """Mutual exclusion across processes built on set-if-absent with expiry.

    ``acquire`` hands out a random ownership token; only the holder of that
    token can ``release`` the lock. A lock older than its TTL is stale and may
    be taken over.
    """

    def __init__(self, store: CacheStore, key: str, ttl: int = LOCK_TTL, logging: bool = True, clock=_now_ms):
        self._store = store
        self.key = key
        self.ttl = ttl
        self._logging = logging
        self._clock = clock

    def __repr__(self):
        return f"DistributedLock({self.key!r})"

    def _is_expired(self, value: str | None) -> bool:
        timestamp = _timestamp_of(value)
        return timestamp is not None and self._clock() - timestamp > self.ttl * 1000

    async def acquire(self, retries: int = LOCK_RETRIES, delay: float = LOCK_RETRY_DELAY) -> str | None:
        """Try to take the lock. Returns the ownership token, or None if every attempt failed."""
        try:
            current = await self._store.get(self.key)
            if self._is_expired(current):
                self._log(f"Found stale lock '{self.key}', forcing release")
                await self._store.delete_if_equals(self.key, current)

            for attempt in range(1, retries + 1):
                token = secrets.token_hex(16)
                if await self._store.set_if_absent(self.key, f"{self._clock()}:{token}", self.ttl):
                    self._log(f"Lock '{self.key}' acquired on attempt {attempt}")
                    return token
                if attempt < retries:
                    self._log(f"Lock '{self.key}' attempt {attempt}/{retries} failed, retrying in {delay}s")
                    await asyncio.sleep(delay)
        except CacheStoreError as e:
            self._log_error(f"Error acquiring lock '{self.key}': {e}")
            return None
        self._log(f"Failed to acquire lock '{self.key}' after {retries} attempts")
        return None

    async def release(self, token: str | None) -> bool:
        """Release the lock if ``token`` still owns it. Store errors are swallowed."""
        if not token:
            return False
        try:
            current = await self._store.get(self.key)
            if current is None or current.split(":", 1)[-1] != token:
                self._log(f"Lock '{self.key}' not held by this token, leaving it")
                return False
            released = await self._store.delete_if_equals(self.key, current)
        except CacheStoreError as e:
            self._log_error(f"Error releasing lock '{self.key}': {e}")
            return False
        if released:
            self._log(f"Lock '{self.key}' released")
        return released

    async def is_stale(self) -> bool:
        """True when the lock exists and is older than its TTL."""
        try:
            return self._is_expired(await self._store.get(self.key))
        except CacheStoreError as e:
            self._log_error(f"Error checking lock '{self.key}': {e}")
            return False

    async def is_held_by(self, token: str | None) -> bool:
        if not token:
            return False
        value = await self._store.get(self.key)
        return value is not None and value.split(":", 1)[-1] == token

    async def is_locked(self) -> bool:
        return await self._store.get(self.key) is not None
