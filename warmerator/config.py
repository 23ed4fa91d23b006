import os
from dataclasses import dataclass

# Defaults
CACHE_TTL = 6 * 60 * 60  # seconds
LOCK_TTL = 300  # seconds
SCAN_BATCH_SIZE = 1000
PAGE_DELAY = 0.1  # seconds between scan pages
LOCK_RETRIES = 3
LOCK_RETRY_DELAY = 1.0  # seconds
COMPRESS_THRESHOLD = 100_000  # bytes
DEFAULT_PAGE_LIMIT = 500
DEFAULT_NAMESPACE = "design_library"
DEFAULT_REDIS_URL = "redis://localhost:6379/0"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_int(value: str | None, default: int) -> int:
    if value is None or value == "":
        return default
    return int(value)


@dataclass
class Settings:
    """Runtime configuration for the design cache service."""

    redis_url: str = DEFAULT_REDIS_URL
    aws_region: str | None = None
    design_table: str | None = None
    namespace: str = DEFAULT_NAMESPACE
    cache_ttl: int = CACHE_TTL
    lock_ttl: int = LOCK_TTL
    scan_batch_size: int = SCAN_BATCH_SIZE
    page_delay: float = PAGE_DELAY
    lock_retries: int = LOCK_RETRIES
    lock_retry_delay: float = LOCK_RETRY_DELAY
    compress_threshold: int = COMPRESS_THRESHOLD
    strict_cursors: bool = False
    logging: bool = True

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            redis_url=env.get("REDIS_URL") or DEFAULT_REDIS_URL,
            aws_region=env.get("AWS_REGION"),
            design_table=env.get("DESIGN_TABLE"),
            namespace=env.get("DESIGN_CACHE_NAMESPACE") or DEFAULT_NAMESPACE,
            cache_ttl=_env_int(env.get("DESIGN_CACHE_TTL"), CACHE_TTL),
            lock_ttl=_env_int(env.get("DESIGN_LOCK_TTL"), LOCK_TTL),
            scan_batch_size=_env_int(env.get("DESIGN_SCAN_BATCH_SIZE"), SCAN_BATCH_SIZE),
            strict_cursors=_env_bool(env.get("DESIGN_STRICT_CURSORS"), False),
            logging=_env_bool(env.get("WARMERATOR_LOGGING"), True),
        )
