"""
In-memory fallback backend.

Entries live for the lifetime of the backend instance. Requirements are
always met, so this backend is registered at a low preference and picked up
whenever nothing durable is available.
"""

from __future__ import annotations

import time
from collections.abc import Iterable

from sitecache.backends.base import EntryStore, MemoryEntryStore, NamespacedBackend
from sitecache.types import Clock


class MemoryBackend(NamespacedBackend):
    """Process-lifetime cache backend."""

    def __init__(
        self,
        site_id: int = 1,
        network_id: int = 1,
        clock: Clock = time.time,
    ) -> None:
        super().__init__(site_id=site_id, network_id=network_id, clock=clock)
        self._entries = MemoryEntryStore()

    def _store_for(self, group: str) -> EntryStore:
        return self._entries

    def _clear_all(self) -> None:
        self._entries.clear()

    def add_non_persistent_groups(self, groups: str | Iterable[str]) -> None:
        # Nothing here persists, so there is nothing to opt out of.
        pass

    def check_requirements(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._entries)
