"""
Cache Status Example
====================
Shows how reads are served (last_cache_status) and what an invalidation does
to the cache generation.

  1st read:   miss  - scanned from the source, complete cache written
  2nd read:   hit   - served from the complete cache
  after a write the cache is invalidated and the next read is a miss again
"""

import asyncio

from warmerator import CollectionCache, DesignSource, InMemoryCacheStore, Loggable, ScanPage


class StaticTable(DesignSource):
    def __init__(self):
        self.records = {f"d{i}": {"uid": f"d{i}"} for i in range(5)}

    async def scan_page(self, limit, start_key=None):
        return ScanPage(list(self.records.values()), None)

    async def put(self, record):
        self.records[record["uid"]] = record


async def main():
    Loggable.set_logging(False)
    table = StaticTable()
    cache = CollectionCache(InMemoryCacheStore(), table)

    await cache.get_collection()
    print(f"first read:  {cache.last_cache_status}")
    await cache.get_collection()
    print(f"second read: {cache.last_cache_status}")

    await table.put({"uid": "d99"})
    generation = await cache.invalidate_all()
    records = await cache.get_collection()
    print(f"after write: {cache.last_cache_status}, {len(records)} records, generation {generation}")


if __name__ == "__main__":
    asyncio.run(main())
