"""
Default cache assembly.

Builds a Cache from settings and registers the shipped backends: the
persistent backend at priority 10 and the in-memory fallback at priority 100,
so the fallback only serves when the storage medium is unusable.
"""

from __future__ import annotations

import time

from sitecache.backends.memory import MemoryBackend
from sitecache.backends.persistent import PersistentBackend
from sitecache.config import CacheSettings, get_settings
from sitecache.logging import get_logger
from sitecache.registry import Cache
from sitecache.storage import SQLiteStorage, StorageMedium
from sitecache.types import Clock

logger = get_logger(__name__)

PERSISTENT_IDENTIFIER = "persistent"
PERSISTENT_PRIORITY = 10
MEMORY_IDENTIFIER = "memory"
MEMORY_PRIORITY = 100


def create_cache(
    settings: CacheSettings | None = None,
    medium: StorageMedium | None = None,
    clock: Clock = time.time,
) -> Cache:
    """Create a cache with the shipped backends registered.

    Args:
        settings: Cache settings. If None, loads from env.
        medium: Storage medium for the persistent backend. Defaults to an
            SQLiteStorage at settings.STORAGE_PATH.
        clock: Time source shared by both backends.

    Returns:
        A Cache whose active backend is the best one available.
    """
    settings = settings or get_settings()
    if medium is None:
        medium = SQLiteStorage(settings.STORAGE_PATH)

    cache = Cache(settings)
    cache.register_implementation(
        PERSISTENT_IDENTIFIER,
        PersistentBackend(
            medium,
            namespace=settings.STORAGE_NAMESPACE,
            site_id=settings.SITE_ID,
            network_id=settings.NETWORK_ID,
            clock=clock,
        ),
        PERSISTENT_PRIORITY,
    )
    cache.register_implementation(
        MEMORY_IDENTIFIER,
        MemoryBackend(
            site_id=settings.SITE_ID,
            network_id=settings.NETWORK_ID,
            clock=clock,
        ),
        MEMORY_PRIORITY,
    )

    active = cache.active_backend
    logger.debug(
        "Cache assembled",
        backend=active.identifier if active is not None else None,
    )
    return cache
