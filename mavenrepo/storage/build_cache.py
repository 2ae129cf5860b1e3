"""Access-time tracking for the build-cache bucket."""

from __future__ import annotations

import time
from typing import Callable, Optional

from .catalog_store import CatalogEntity, CatalogKey, CatalogStore

BUILD_CACHE_ACCESS_KIND = "TrackedBuildCacheAccessTime"


def access_key(repository: str, blob_key: str) -> CatalogKey:
    return CatalogKey(BUILD_CACHE_ACCESS_KIND, blob_key.strip("/"), repository)


def record_access(
    store: CatalogStore,
    repository: str,
    blob_key: str,
    *,
    clock: Callable[[], float] = time.time,
) -> int:
    """Store ``now`` as the last access of ``blob_key``; returns the epoch."""

    now = int(clock())
    store.put(
        CatalogEntity(
            key=access_key(repository, blob_key),
            properties={"lastAccessed": now},
        )
    )
    return now


def last_accessed(
    store: CatalogStore, repository: str, blob_key: str
) -> Optional[int]:
    entity = store.get(access_key(repository, blob_key))
    if entity is None:
        return None
    return int(entity.properties["lastAccessed"])
