"""
Durable backend over a StorageMedium.

Entries are serialized with orjson as ``{"data": ..., "expire": ...}`` and
stored under ``"<namespace>:<group>:<composite key>"``. Text under the
namespace that does not decode to that shape is corrupt: the slot is purged
and the read reports a miss.

Groups marked non-persistent bypass the medium and live in an in-memory side
table with the same semantics.
"""

from __future__ import annotations

import time
from typing import Any

import orjson

from sitecache.backends.base import EntryStore, MemoryEntryStore, NamespacedBackend
from sitecache.exceptions import CorruptEntryError
from sitecache.logging import get_logger
from sitecache.storage import StorageMedium
from sitecache.types import Clock, Entry

logger = get_logger(__name__)

DEFAULT_NAMESPACE = "siteCache"


def encode_entry(entry: Entry) -> str:
    """Serialize an entry to text."""
    return orjson.dumps(entry.to_dict(), option=orjson.OPT_NON_STR_KEYS).decode("utf-8")


def decode_entry(text: str, storage_key: str = "") -> Entry:
    """Parse persisted text back into an entry.

    Raises:
        CorruptEntryError: If the text is not JSON or not entry-shaped.
    """
    try:
        raw: Any = orjson.loads(text)
    except orjson.JSONDecodeError as e:
        raise CorruptEntryError(
            "Persisted entry is not valid JSON",
            context={"storage_key": storage_key, "reason": str(e)},
        ) from e

    if not isinstance(raw, dict) or "data" not in raw:
        raise CorruptEntryError(
            "Persisted entry has the wrong shape",
            context={"storage_key": storage_key, "reason": type(raw).__name__},
        )

    expire = raw.get("expire") or 0
    if isinstance(expire, bool) or not isinstance(expire, (int, float)):
        raise CorruptEntryError(
            "Persisted entry has an invalid expiry",
            context={"storage_key": storage_key, "reason": repr(expire)},
        )

    return Entry(data=raw["data"], expire=int(expire))


class MediumEntryStore(EntryStore):
    """EntryStore writing serialized entries to a StorageMedium."""

    def __init__(self, medium: StorageMedium, namespace: str = DEFAULT_NAMESPACE) -> None:
        self.medium = medium
        self.namespace = namespace

    def storage_key(self, group: str, full_key: str) -> str:
        return f"{self.namespace}:{group}:{full_key}"

    def owns(self, storage_key: str) -> bool:
        return storage_key.startswith(f"{self.namespace}:")

    def read(self, group: str, full_key: str) -> Entry | None:
        storage_key = self.storage_key(group, full_key)
        text = self.medium.get_item(storage_key)
        if not text:
            return None

        try:
            return decode_entry(text, storage_key)
        except CorruptEntryError as e:
            logger.debug("Purging corrupt entry", **e.context)
            self.medium.remove_item(storage_key)
            return None

    def write(self, group: str, full_key: str, entry: Entry) -> None:
        self.medium.set_item(self.storage_key(group, full_key), encode_entry(entry))

    def delete(self, group: str, full_key: str) -> None:
        self.medium.remove_item(self.storage_key(group, full_key))

    def clear(self) -> None:
        removed = 0
        for storage_key in self.medium.keys():
            if self.owns(storage_key):
                self.medium.remove_item(storage_key)
                removed += 1
        logger.debug("Flushed persistent entries", namespace=self.namespace, removed=removed)


class PersistentBackend(NamespacedBackend):
    """Cache backend that survives restarts of the host process."""

    def __init__(
        self,
        medium: StorageMedium,
        namespace: str = DEFAULT_NAMESPACE,
        site_id: int = 1,
        network_id: int = 1,
        clock: Clock = time.time,
    ) -> None:
        """Initialize the backend.

        Args:
            medium: Storage medium holding serialized entries.
            namespace: Key prefix this backend owns on the medium.
            site_id: Initial site ID.
            network_id: Initial network ID.
            clock: Returns the current Unix time; injectable for tests.
        """
        super().__init__(site_id=site_id, network_id=network_id, clock=clock)
        self.medium = medium
        self._persistent = MediumEntryStore(medium, namespace)
        self._non_persistent = MemoryEntryStore()

    @property
    def namespace(self) -> str:
        return self._persistent.namespace

    def _store_for(self, group: str) -> EntryStore:
        if self.scope.is_non_persistent(group):
            return self._non_persistent
        return self._persistent

    def _clear_all(self) -> None:
        self._non_persistent.clear()
        self._persistent.clear()

    def check_requirements(self) -> bool:
        return self.medium is not None and self.medium.is_available()

    def init(self) -> None:
        """Open the storage medium."""
        self.medium.open()

    def close(self) -> None:
        """Release the storage medium."""
        self.medium.close()
