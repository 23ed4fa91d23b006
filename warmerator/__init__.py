from .api import create_app, create_app_from_env
from .cache_store import CacheStore, InMemoryCacheStore, RedisCacheStore
from .checkpoint import ScanCheckpoint
from .collection_cache import CollectionCache
from .config import Settings
from .errors import (AccessDeniedError, CacheStoreError, CredentialsError, ScanSupersededError, SourceConnectionError,
                     StaleLockError, TableNotFoundError, UnknownCursorError, WarmeratorError, error_message)
from .fetcher import CollectionFetcher
from .jobs import BackgroundJobs
from .lock import DistributedLock
from .loggable import Loggable
from .pagination import Page, paginate
from .records import normalize_record
from .source import DesignSource, DynamoDBDesignSource, ScanPage
