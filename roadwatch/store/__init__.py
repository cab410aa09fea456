"""
roadwatch/store — hazard persistence (remote document store + local cache).
"""

from roadwatch.store.hazard_store import (
    LOCAL_ID_PREFIX,
    HazardStore,
    is_local_id,
    normalize_document,
    record_to_dict,
)
from roadwatch.store.local_cache import LocalCache, SqliteLocalCache
from roadwatch.store.remote_base import RemoteStoreAdapter

__all__ = [
    "LOCAL_ID_PREFIX",
    "HazardStore",
    "is_local_id",
    "normalize_document",
    "record_to_dict",
    "LocalCache",
    "SqliteLocalCache",
    "RemoteStoreAdapter",
]
