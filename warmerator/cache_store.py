"""Key-value stores holding the cached collection, its checkpoint and the scan lock."""

import time
from functools import wraps

import redis
import redis.asyncio as aioredis

from .errors import CacheStoreError

_DELETE_IF_EQUALS = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""

_SET_IF_EQUALS = """
local current = redis.call('get', KEYS[1])
if not current then
    current = '0'
end
if current == ARGV[1] then
    redis.call('set', KEYS[2], ARGV[2], 'EX', ARGV[3])
    return 1
end
return 0
"""

_INVALIDATE = """
local generation = redis.call('incr', KEYS[1])
if #KEYS > 1 then
    redis.call('del', unpack(KEYS, 2))
end
return generation
"""


class CacheStore:
    """Interface of the asynchronous key-value store.

    Values are strings. Every ``ttl`` is in seconds.
    """

    async def get(self, key: str) -> str | None:
        raise NotImplementedError

    async def set(self, key: str, value: str, ttl: int) -> None:
        raise NotImplementedError

    async def delete(self, *keys: str) -> int:
        raise NotImplementedError

    async def set_if_absent(self, key: str, value: str, ttl: int) -> bool:
        """Atomically set ``key`` unless it exists. True when the value was written."""
        raise NotImplementedError

    async def delete_if_equals(self, key: str, value: str) -> bool:
        """Atomically delete ``key`` only while it still holds ``value``."""
        raise NotImplementedError

    async def invalidate(self, generation_key: str, *keys: str) -> int:
        """Atomically increment ``generation_key`` and delete ``keys``. Returns the new generation."""
        raise NotImplementedError

    async def set_if_equals(self, guard_key: str, expected: str, key: str, value: str, ttl: int) -> bool:
        """Atomically write ``key`` only while ``guard_key`` holds ``expected``.

        A missing guard counts as ``"0"``.
        """
        raise NotImplementedError

    async def close(self) -> None:
        pass


def _wrap_redis_errors(func):
    @wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except redis.RedisError as e:
            raise CacheStoreError(f"Redis {func.__name__} failed: {e}") from e

    return wrapper


class RedisCacheStore(CacheStore):
    """Redis (or Valkey) backed store, shared across every API instance."""

    def __init__(self, client: aioredis.Redis):
        self._redis = client
        self._delete_if_equals = client.register_script(_DELETE_IF_EQUALS)
        self._set_if_equals = client.register_script(_SET_IF_EQUALS)
        self._invalidate = client.register_script(_INVALIDATE)

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheStore":
        return cls(aioredis.from_url(url, decode_responses=True))

    @_wrap_redis_errors
    async def get(self, key: str) -> str | None:
        return await self._redis.get(key)

    @_wrap_redis_errors
    async def set(self, key: str, value: str, ttl: int) -> None:
        await self._redis.set(key, value, ex=ttl)

    @_wrap_redis_errors
    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self._redis.delete(*keys)

    @_wrap_redis_errors
    async def set_if_absent(self, key: str, value: str, ttl: int) -> bool:
        return bool(await self._redis.set(key, value, ex=ttl, nx=True))

    @_wrap_redis_errors
    async def delete_if_equals(self, key: str, value: str) -> bool:
        return bool(await self._delete_if_equals(keys=[key], args=[value]))

    @_wrap_redis_errors
    async def invalidate(self, generation_key: str, *keys: str) -> int:
        return int(await self._invalidate(keys=[generation_key, *keys]))

    @_wrap_redis_errors
    async def set_if_equals(self, guard_key: str, expected: str, key: str, value: str, ttl: int) -> bool:
        return bool(await self._set_if_equals(keys=[guard_key, key], args=[expected, value, ttl]))

    async def close(self) -> None:
        await self._redis.aclose()


class InMemoryCacheStore(CacheStore):
    """Single-process store with TTL enforcement, for local runs and tests.

    Every operation completes without awaiting, so each one is atomic with
    respect to other coroutines on the same event loop.
    """

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._data: dict[str, tuple[str, float | None]] = {}

    def _live(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    def _expiry(self, ttl: int | None) -> float | None:
        return None if ttl is None else self._clock() + ttl

    def keys(self) -> list[str]:
        return [k for k in list(self._data) if self._live(k) is not None]

    async def get(self, key: str) -> str | None:
        return self._live(key)

    async def set(self, key: str, value: str, ttl: int | None) -> None:
        self._data[key] = (value, self._expiry(ttl))

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._live(key) is not None:
                removed += 1
            self._data.pop(key, None)
        return removed

    async def set_if_absent(self, key: str, value: str, ttl: int) -> bool:
        if self._live(key) is not None:
            return False
        self._data[key] = (value, self._expiry(ttl))
        return True

    async def delete_if_equals(self, key: str, value: str) -> bool:
        if self._live(key) != value:
            return False
        del self._data[key]
        return True

    async def invalidate(self, generation_key: str, *keys: str) -> int:
        current = self._live(generation_key)
        generation = int(current or 0) + 1
        expires_at = self._data[generation_key][1] if current is not None else None
        self._data[generation_key] = (str(generation), expires_at)
        for key in keys:
            self._data.pop(key, None)
        return generation

    async def set_if_equals(self, guard_key: str, expected: str, key: str, value: str, ttl: int) -> bool:
        if (self._live(guard_key) or "0") != expected:
            return False
        self._data[key] = (value, self._expiry(ttl))
        return True
