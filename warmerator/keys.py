from slugify import slugify

from .config import DEFAULT_NAMESPACE


class CacheKeys:
    """Key names shared by every process warming the same collection."""

    def __init__(self, data_id: str = DEFAULT_NAMESPACE):
        self.namespace = slugify(data_id, separator="_") or DEFAULT_NAMESPACE
        self.all_complete = f"{self.namespace}:all"
        self.partial = f"{self.namespace}:partial"
        self.scan_cursor = f"{self.namespace}:last_scan_position"
        self.lock = f"{self.namespace}:lock"
        self.generation = f"{self.namespace}:generation"

    @property
    def collection_keys(self) -> tuple[str, str, str]:
        """The keys an invalidation removes."""
        return self.all_complete, self.partial, self.scan_cursor

    def __repr__(self):
        return f"CacheKeys({self.namespace!r})"
