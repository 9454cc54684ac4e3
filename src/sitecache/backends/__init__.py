"""
Cache backends.

- base.py: CacheBackend contract and NamespacedBackend shared semantics
- memory.py: MemoryBackend, the always-available fallback
- persistent.py: PersistentBackend over a StorageMedium
"""

from sitecache.backends.base import (
    REQUIRED_METHODS,
    CacheBackend,
    EntryStore,
    MemoryEntryStore,
    NamespacedBackend,
)
from sitecache.backends.memory import MemoryBackend
from sitecache.backends.persistent import PersistentBackend

__all__ = [
    "REQUIRED_METHODS",
    "CacheBackend",
    "EntryStore",
    "MemoryBackend",
    "MemoryEntryStore",
    "NamespacedBackend",
    "PersistentBackend",
]
