"""
Backend contract and the shared key/value semantics.

CacheBackend is the interface the registry accepts: fourteen required
operations plus the optional init()/close() lifecycle hooks, which the
registry detects at runtime.

NamespacedBackend implements all fourteen once on top of an EntryStore, a
minimal read/write/delete/clear primitive addressed by (group, composite key).
Concrete backends only decide which EntryStore serves a group, so composite
keys, expiry and floor clamping behave identically everywhere.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from sitecache.keys import KeyScope
from sitecache.types import (
    Clock,
    Entry,
    as_int,
    copy_payload,
    current_time,
    is_number,
)

REQUIRED_METHODS: tuple[str, ...] = (
    "add",
    "replace",
    "set",
    "get",
    "remove",
    "flush",
    "incr",
    "decr",
    "switch_to_site",
    "switch_to_network",
    "add_network_groups",
    "add_global_groups",
    "add_non_persistent_groups",
    "check_requirements",
)


class CacheBackend(ABC):
    """Abstract interface for cache backends.

    The registry stamps ``identifier`` and ``priority`` on a backend when it
    is registered.
    """

    identifier: str | None = None
    priority: int | None = None

    @abstractmethod
    def add(self, key: str | int, data: Any, group: str, expire: int) -> bool:
        """Store data only if no live entry exists."""
        ...

    @abstractmethod
    def replace(self, key: str | int, data: Any, group: str, expire: int) -> bool:
        """Store data only if a live entry exists."""
        ...

    @abstractmethod
    def set(self, key: str | int, data: Any, group: str, expire: int) -> bool:
        """Store data unconditionally."""
        ...

    @abstractmethod
    def get(self, key: str | int, group: str, force: bool = False) -> Any | None:
        """Get live data, or None."""
        ...

    @abstractmethod
    def remove(self, key: str | int, group: str) -> bool:
        """Delete a live entry."""
        ...

    @abstractmethod
    def flush(self) -> bool:
        """Delete every entry this backend owns."""
        ...

    @abstractmethod
    def incr(self, key: str | int, offset: int, group: str) -> int | float | bool:
        """Increment a live entry, clamping at 0."""
        ...

    @abstractmethod
    def decr(self, key: str | int, offset: int, group: str) -> int | float | bool:
        """Decrement a live entry, clamping at 0."""
        ...

    @abstractmethod
    def switch_to_site(self, site_id: int) -> bool:
        """Scope site groups to another site."""
        ...

    @abstractmethod
    def switch_to_network(self, network_id: int) -> bool:
        """Scope network groups to another network."""
        ...

    @abstractmethod
    def add_network_groups(self, groups: str | Iterable[str]) -> None:
        ...

    @abstractmethod
    def add_global_groups(self, groups: str | Iterable[str]) -> None:
        ...

    @abstractmethod
    def add_non_persistent_groups(self, groups: str | Iterable[str]) -> None:
        ...

    @abstractmethod
    def check_requirements(self) -> bool:
        """Probe whether the backend can run here. No side effects."""
        ...


class EntryStore(ABC):
    """Raw entry primitive addressed by (group, composite key).

    Implementations return entries as stored; expiry and copying are handled
    by NamespacedBackend.
    """

    @abstractmethod
    def read(self, group: str, full_key: str) -> Entry | None:
        """Get the entry for a slot, or None if the slot is empty."""
        ...

    @abstractmethod
    def write(self, group: str, full_key: str, entry: Entry) -> None:
        ...

    @abstractmethod
    def delete(self, group: str, full_key: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        """Delete every entry this store owns."""
        ...


class MemoryEntryStore(EntryStore):
    """Entries held in a dict of group -> composite key -> Entry."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Entry]] = {}

    def read(self, group: str, full_key: str) -> Entry | None:
        return self._data.get(group, {}).get(full_key)

    def write(self, group: str, full_key: str, entry: Entry) -> None:
        self._data.setdefault(group, {})[full_key] = entry

    def delete(self, group: str, full_key: str) -> None:
        self._data.get(group, {}).pop(full_key, None)

    def clear(self) -> None:
        self._data = {}

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._data.values())


class NamespacedBackend(CacheBackend):
    """CacheBackend implemented over EntryStore primitives.

    Subclasses implement ``_store_for(group)``, ``_clear_all()`` and
    ``check_requirements()``.
    """

    def __init__(
        self,
        site_id: int = 1,
        network_id: int = 1,
        clock: Clock = time.time,
    ) -> None:
        """Initialize the backend.

        Args:
            site_id: Initial site ID.
            network_id: Initial network ID.
            clock: Returns the current Unix time; injectable for tests.
        """
        self.scope = KeyScope(site_id=site_id, network_id=network_id)
        self._clock = clock

    @abstractmethod
    def _store_for(self, group: str) -> EntryStore:
        """Get the store holding a group's entries."""
        ...

    @abstractmethod
    def _clear_all(self) -> None:
        ...

    def _now(self) -> int:
        return current_time(self._clock)

    def _live_entry(self, full_key: str, group: str) -> Entry | None:
        """Read a slot, deleting it if it has expired."""
        store = self._store_for(group)
        entry = store.read(group, full_key)
        if entry is None:
            return None
        if entry.is_expired(self._now()):
            store.delete(group, full_key)
            return None
        return entry

    def _exists(self, key: str | int, group: str) -> bool:
        return self._live_entry(self.scope.full_key(key, group), group) is not None

    def _make_entry(self, data: Any, expire: int | float) -> Entry:
        seconds = as_int(expire)
        return Entry(
            data=copy_payload(data),
            expire=self._now() + seconds if seconds else 0,
        )

    def _apply_offset(self, key: str | int, delta: int, group: str) -> int | float | bool:
        full_key = self.scope.full_key(key, group)
        entry = self._live_entry(full_key, group)
        if entry is None:
            return False

        value = entry.data if is_number(entry.data) else 0
        entry.data = max(value + delta, 0)
        self._store_for(group).write(group, full_key, entry)
        return entry.data

    def add(self, key: str | int, data: Any, group: str, expire: int = 0) -> bool:
        if self._exists(key, group):
            return False
        return self.set(key, data, group, expire)

    def replace(self, key: str | int, data: Any, group: str, expire: int = 0) -> bool:
        if not self._exists(key, group):
            return False
        return self.set(key, data, group, expire)

    def set(self, key: str | int, data: Any, group: str, expire: int = 0) -> bool:
        full_key = self.scope.full_key(key, group)
        self._store_for(group).write(group, full_key, self._make_entry(data, expire))
        return True

    def get(self, key: str | int, group: str, force: bool = False) -> Any | None:
        entry = self._live_entry(self.scope.full_key(key, group), group)
        if entry is None:
            return None
        return copy_payload(entry.data)

    def remove(self, key: str | int, group: str) -> bool:
        full_key = self.scope.full_key(key, group)
        if self._live_entry(full_key, group) is None:
            return False
        self._store_for(group).delete(group, full_key)
        return True

    def flush(self) -> bool:
        self._clear_all()
        return True

    def incr(self, key: str | int, offset: int = 1, group: str = "default") -> int | float | bool:
        return self._apply_offset(key, as_int(offset), group)

    def decr(self, key: str | int, offset: int = 1, group: str = "default") -> int | float | bool:
        return self._apply_offset(key, -as_int(offset), group)

    def switch_to_site(self, site_id: int) -> bool:
        self.scope.site_id = site_id
        return True

    def switch_to_network(self, network_id: int) -> bool:
        self.scope.network_id = network_id
        return True

    def add_network_groups(self, groups: str | Iterable[str]) -> None:
        self.scope.add_network_groups(groups)

    def add_global_groups(self, groups: str | Iterable[str]) -> None:
        self.scope.add_global_groups(groups)

    def add_non_persistent_groups(self, groups: str | Iterable[str]) -> None:
        self.scope.add_non_persistent_groups(groups)
