"""
Resumable Scan Example
======================
A scan interrupted half way leaves its records and scan position in the cache.
The next read serves that partial snapshot immediately and finishes the scan
in the background, starting from the saved position instead of from scratch.

Runs entirely in memory; no Redis or AWS needed.
"""

import asyncio

from warmerator import CollectionCache, DesignSource, InMemoryCacheStore, ScanPage, SourceConnectionError


class FlakyTable(DesignSource):
    def __init__(self, count: int):
        self.uids = [f"design-{i:05d}" for i in range(count)]
        self.fail_on_page = 2
        self.pages = 0

    async def scan_page(self, limit, start_key=None):
        self.pages += 1
        if self.pages == self.fail_on_page:
            raise SourceConnectionError("network blip")
        start = 0 if start_key is None else self.uids.index(start_key["uid"]) + 1
        chunk = self.uids[start:start + limit]
        last_key = {"uid": chunk[-1]} if start + limit < len(self.uids) else None
        return ScanPage([{"uid": uid} for uid in chunk], last_key)


async def main():
    table = FlakyTable(2500)
    cache = CollectionCache(InMemoryCacheStore(), table, page_delay=0)

    try:
        await cache.get_collection()
    except SourceConnectionError as e:
        print(f"First read failed: {e}")

    partial = await cache.get_collection()
    print(f"Second read served {len(partial):,} records from the partial cache ({cache.last_cache_status})")

    await cache.jobs.wait()
    complete = await cache.get_collection()
    print(f"After the background job: {len(complete):,} records ({cache.last_cache_status})")
    print(await cache.status())


if __name__ == "__main__":
    asyncio.run(main())
