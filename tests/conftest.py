import bisect

import pytest

from warmerator import CollectionCache, DesignSource, InMemoryCacheStore, ScanPage, SourceConnectionError


class FakeDesignSource(DesignSource):
    """In-memory stand-in for the DynamoDB table, scanned in uid order."""

    def __init__(self, count: int = 0):
        self.records = {}
        for i in range(count):
            uid = f"design-{i:05d}"
            self.records[uid] = {"uid": uid, "designName": f"Design {i}"}
        self.scan_calls = 0
        self.fail_after_pages = None
        self.on_scan = None

    async def scan_page(self, limit, start_key=None):
        if self.fail_after_pages is not None and self.scan_calls >= self.fail_after_pages:
            raise SourceConnectionError("source went away")
        self.scan_calls += 1
        if self.on_scan is not None:
            await self.on_scan(self.scan_calls)
        uids = sorted(self.records)
        start = 0 if start_key is None else bisect.bisect_right(uids, start_key["uid"])
        chunk = uids[start:start + limit]
        items = [dict(self.records[uid]) for uid in chunk]
        last_key = {"uid": chunk[-1]} if start + limit < len(uids) else None
        return ScanPage(items, last_key)

    async def put(self, record):
        self.records[record["uid"]] = dict(record)

    async def update(self, uid, fields):
        self.records.setdefault(uid, {"uid": uid}).update(fields)
        return dict(self.records[uid])

    async def delete(self, uid):
        self.records.pop(uid, None)


@pytest.fixture
def store():
    return InMemoryCacheStore()


@pytest.fixture
def make_source():
    return FakeDesignSource


@pytest.fixture
def make_cache(store):
    def factory(source, **kwargs):
        options = {"logging": False, "page_delay": 0, "lock_retry_delay": 0, "batch_size": 1000}
        options.update(kwargs)
        return CollectionCache(store, source, **options)
    return factory
