"""
Cache facade with priority-based backend selection.

Callers talk to one Cache object. Backends register with a priority (lower
is preferred); on every registration that could improve the choice, the
registry walks the priority buckets in ascending order and activates the
first backend whose check_requirements() passes. Every public operation is
forwarded to the active backend with defaults applied and numeric arguments
coerced.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sitecache.backends.base import REQUIRED_METHODS
from sitecache.config import CacheSettings, get_settings
from sitecache.exceptions import SiteCacheError
from sitecache.logging import get_logger, log_context
from sitecache.types import (
    DAY_IN_SECONDS,
    DEFAULT_GROUP,
    DEFAULT_PRIORITY,
    HOUR_IN_SECONDS,
    MINUTE_IN_SECONDS,
    WEEK_IN_SECONDS,
    YEAR_IN_SECONDS,
    coerce_int,
)

logger = get_logger(__name__)


def _has_method(implementation: Any, name: str) -> bool:
    return callable(getattr(implementation, name, None))


def _record_groups(recorded: list[str], groups: list[str]) -> None:
    for group in groups:
        if group not in recorded:
            recorded.append(group)


class Cache:
    """Key/value cache facade over the best available backend.

    Features:
    - Priority buckets, registration order within a bucket
    - Requirements probing before activation
    - close()/init() lifecycle on backend switches
    - Scope and group classifications carried over to a newly selected backend
    - One "no implementation" warning per failed selection episode
    """

    MINUTE_IN_SECONDS = MINUTE_IN_SECONDS
    HOUR_IN_SECONDS = HOUR_IN_SECONDS
    DAY_IN_SECONDS = DAY_IN_SECONDS
    WEEK_IN_SECONDS = WEEK_IN_SECONDS
    YEAR_IN_SECONDS = YEAR_IN_SECONDS

    def __init__(self, settings: CacheSettings | None = None) -> None:
        """Initialize the facade.

        Args:
            settings: Cache settings. If None, loads from env.
        """
        self.settings = settings or get_settings()
        self._implementations: dict[int, list[Any]] = {}
        self._current: Any | None = None
        self._logged_error = False
        self._selected_before = False

        self._site_id = self.settings.SITE_ID
        self._network_id = self.settings.NETWORK_ID
        self._global_groups: list[str] = []
        self._network_groups: list[str] = []
        self._non_persistent_groups: list[str] = []

    @property
    def active_backend(self) -> Any | None:
        """The backend operations are currently forwarded to."""
        return self._current

    @property
    def site_id(self) -> int:
        return self._site_id

    @property
    def network_id(self) -> int:
        return self._network_id

    def get_implementation(self, identifier: str) -> Any | None:
        """Find a registered backend by identifier."""
        for bucket in self._implementations.values():
            for implementation in bucket:
                if implementation.identifier == identifier:
                    return implementation
        return None

    # ------------------------------------------------------------------
    # Registration and selection
    # ------------------------------------------------------------------

    def register_implementation(
        self,
        identifier: str,
        implementation: Any,
        priority: int | None = None,
    ) -> bool:
        """Register a cache backend.

        Args:
            identifier: Unique identifier for the backend.
            implementation: Object providing every method in REQUIRED_METHODS.
                init() and close() are optional.
            priority: Lower values are preferred. Defaults to 10.

        Returns:
            True if registered, False if a required method is missing or the
            identifier is taken.
        """
        missing = [name for name in REQUIRED_METHODS if not _has_method(implementation, name)]
        if missing:
            logger.warning(
                "Rejected cache implementation with missing methods",
                identifier=identifier,
                missing=missing,
            )
            return False

        if self.get_implementation(identifier) is not None:
            logger.warning("Cache implementation already registered", identifier=identifier)
            return False

        priority = DEFAULT_PRIORITY if priority is None else int(priority)

        implementation.identifier = identifier
        implementation.priority = priority
        self._implementations.setdefault(priority, []).append(implementation)

        logger.debug("Registered cache implementation", identifier=identifier, priority=priority)

        if self._current is None or self._current.priority > priority:
            self._select_implementation()

        return True

    def _select_implementation(self) -> None:
        """Activate the most preferred backend whose requirements are met."""
        for priority in sorted(self._implementations):
            for implementation in self._implementations[priority]:
                if not implementation.check_requirements():
                    logger.debug(
                        "Cache implementation requirements not met",
                        identifier=implementation.identifier,
                    )
                    continue

                if implementation is not self._current and not self._activate(implementation):
                    continue

                self._logged_error = False
                return

    def _activate(self, implementation: Any) -> bool:
        """Close the active backend and switch to another.

        Returns:
            False if the new backend's init() fails. No backend is active
            then, and selection moves on to the next candidate.
        """
        previous = self._current

        if previous is not None and _has_method(previous, "close"):
            previous.close()

        self._current = implementation
        if _has_method(implementation, "init"):
            try:
                implementation.init()
            except SiteCacheError as e:
                logger.warning(
                    "Cache implementation failed to initialize",
                    identifier=implementation.identifier,
                    error=str(e),
                )
                self._current = None
                return False

        if self._selected_before:
            self._carry_over_state(implementation)
        self._selected_before = True

        with log_context(
            site_id=self._site_id,
            network_id=self._network_id,
            backend=implementation.identifier,
        ):
            logger.info(
                "Cache implementation selected",
                identifier=implementation.identifier,
                priority=implementation.priority,
                previous=previous.identifier if previous is not None else None,
            )
        return True

    def _carry_over_state(self, implementation: Any) -> None:
        """Bring a newly selected backend to the scope and groups callers set up."""
        if self.settings.IS_MULTISITE:
            implementation.switch_to_site(self._site_id)
            implementation.switch_to_network(self._network_id)
        if self._global_groups:
            implementation.add_global_groups(list(self._global_groups))
        if self._network_groups:
            implementation.add_network_groups(list(self._network_groups))
        if self._non_persistent_groups:
            implementation.add_non_persistent_groups(list(self._non_persistent_groups))

    def _maybe_log_error(self) -> None:
        """Log the missing-implementation message once per episode."""
        if self._logged_error:
            return

        logger.warning(self.settings.NO_IMPLEMENTATION_SET)
        self._logged_error = True

    # ------------------------------------------------------------------
    # Data operations
    # ------------------------------------------------------------------

    def add(
        self,
        key: str | int,
        data: Any,
        group: str | None = None,
        expire: int | str | None = None,
    ) -> bool:
        """Add data to the cache if the key doesn't already exist.

        Args:
            key: The cache key to use for retrieval later.
            data: The data to add to the cache.
            group: The group to add the cache to. Enables the same key to be
                used across groups. Defaults to "default".
            expire: When the cache data should expire, in seconds. 0 means
                no expiration.

        Returns:
            True on success, False if the key and group already exist.
        """
        if self._current is None:
            self._maybe_log_error()
            return False

        return self._current.add(key, data, group or DEFAULT_GROUP, coerce_int(expire, 0))

    def replace(
        self,
        key: str | int,
        data: Any,
        group: str | None = None,
        expire: int | str | None = None,
    ) -> bool:
        """Replace the contents of the cache with new data.

        Returns:
            True if contents were replaced, False if the original value does
            not exist.
        """
        if self._current is None:
            self._maybe_log_error()
            return False

        return self._current.replace(key, data, group or DEFAULT_GROUP, coerce_int(expire, 0))

    def set(
        self,
        key: str | int,
        data: Any,
        group: str | None = None,
        expire: int | str | None = None,
    ) -> bool:
        """Save data to the cache, whether or not the key exists.

        Returns:
            True on success, False if no backend is active.
        """
        if self._current is None:
            self._maybe_log_error()
            return False

        return self._current.set(key, data, group or DEFAULT_GROUP, coerce_int(expire, 0))

    def get(self, key: str | int, group: str | None = None, force: bool = False) -> Any | None:
        """Retrieve cache contents by key and group.

        Args:
            key: The key under which the contents are stored.
            group: Where the contents are grouped. Defaults to "default".
            force: Whether to force an update of the local cache from the
                persistent cache. Backends that keep a single copy ignore it.

        Returns:
            The cached data, or None on a miss. A stored None is returned
            the same way; use add() or replace() to tell the two apart.
        """
        if self._current is None:
            self._maybe_log_error()
            return None

        return self._current.get(key, group or DEFAULT_GROUP, force)

    def remove(self, key: str | int, group: str | None = None) -> bool:
        """Remove the cache contents matching key and group."""
        if self._current is None:
            self._maybe_log_error()
            return False

        return self._current.remove(key, group or DEFAULT_GROUP)

    def flush(self) -> bool:
        """Remove all cache items of the active backend."""
        if self._current is None:
            self._maybe_log_error()
            return False

        return self._current.flush()

    def incr(
        self,
        key: str | int,
        offset: int | str | None = None,
        group: str | None = None,
    ) -> int | float | bool:
        """Increment a numeric cache item's value.

        Returns:
            The item's new value, or False if the item does not exist.
        """
        if self._current is None:
            self._maybe_log_error()
            return False

        return self._current.incr(key, coerce_int(offset, 1), group or DEFAULT_GROUP)

    def decr(
        self,
        key: str | int,
        offset: int | str | None = None,
        group: str | None = None,
    ) -> int | float | bool:
        """Decrement a numeric cache item's value, never below 0.

        Returns:
            The item's new value, or False if the item does not exist.
        """
        if self._current is None:
            self._maybe_log_error()
            return False

        return self._current.decr(key, coerce_int(offset, 1), group or DEFAULT_GROUP)

    # ------------------------------------------------------------------
    # Scope and groups
    # ------------------------------------------------------------------

    def switch_to_site(self, site_id: int | str) -> bool:
        """Switch the site that site-scoped groups resolve to.

        Returns:
            True if the site is now current (including when multisite is
            disabled), False if the ID is invalid or no backend is active.
        """
        if not self.settings.IS_MULTISITE:
            return True

        site_id = coerce_int(site_id, self._site_id)
        if not isinstance(site_id, int):
            logger.warning("Ignoring invalid site ID")
            return False

        if site_id == self._site_id:
            return True

        if self._current is None:
            self._maybe_log_error()
            return False

        switched = self._current.switch_to_site(site_id)
        if switched:
            self._site_id = site_id
        return switched

    def switch_to_network(self, network_id: int | str) -> bool:
        """Switch the network that network groups resolve to.

        Returns:
            True if the network is now current (including when multisite is
            disabled), False if the ID is invalid or no backend is active.
        """
        if not self.settings.IS_MULTISITE:
            return True

        network_id = coerce_int(network_id, self._network_id)
        if not isinstance(network_id, int):
            logger.warning("Ignoring invalid network ID")
            return False

        if network_id == self._network_id:
            return True

        if self._current is None:
            self._maybe_log_error()
            return False

        switched = self._current.switch_to_network(network_id)
        if switched:
            self._network_id = network_id
        return switched

    def add_network_groups(self, groups: str | Iterable[str]) -> None:
        """Add a group or several to the list of network groups."""
        if self._current is None:
            self._maybe_log_error()
            return

        groups = [groups] if isinstance(groups, str) else list(groups)
        self._current.add_network_groups(groups)
        _record_groups(self._network_groups, groups)

    def add_global_groups(self, groups: str | Iterable[str]) -> None:
        """Add a group or several to the list of global groups."""
        if self._current is None:
            self._maybe_log_error()
            return

        groups = [groups] if isinstance(groups, str) else list(groups)
        self._current.add_global_groups(groups)
        _record_groups(self._global_groups, groups)

    def add_non_persistent_groups(self, groups: str | Iterable[str]) -> None:
        """Add a group or several to the list of non-persistent groups."""
        if self._current is None:
            self._maybe_log_error()
            return

        groups = [groups] if isinstance(groups, str) else list(groups)
        self._current.add_non_persistent_groups(groups)
        _record_groups(self._non_persistent_groups, groups)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Initialize the active backend, if it needs initializing."""
        if self._current is None:
            self._maybe_log_error()
            return

        if not _has_method(self._current, "init"):
            return

        self._current.init()

    def close(self) -> None:
        """Close the active backend, if it holds resources."""
        if self._current is None:
            self._maybe_log_error()
            return

        if not _has_method(self._current, "close"):
            return

        self._current.close()
