"""
Group classification and composite key generation.

Every backend owns one KeyScope. It records which groups are global,
network-wide or non-persistent, plus the site and network the cache is
currently scoped to, and turns (key, group) into the composite storage key:

    global group   -> "<key>"
    network group  -> "network<network_id>_<key>"
    anything else  -> "site<site_id>_<key>"
"""

from __future__ import annotations

from collections.abc import Iterable

from sitecache.types import GroupScope


def _as_group_list(groups: str | Iterable[str]) -> list[str]:
    if isinstance(groups, str):
        return [groups]
    return list(groups)


class KeyScope:
    """Classification sets and current scope for one backend."""

    def __init__(self, site_id: int = 1, network_id: int = 1) -> None:
        """Initialize the scope.

        Args:
            site_id: Initial site ID.
            network_id: Initial network ID.
        """
        self.site_id = site_id
        self.network_id = network_id
        self.global_groups: set[str] = set()
        self.network_groups: set[str] = set()
        self.non_persistent_groups: set[str] = set()

    def add_global_groups(self, groups: str | Iterable[str]) -> None:
        """Mark one group or several as global."""
        self.global_groups.update(_as_group_list(groups))

    def add_network_groups(self, groups: str | Iterable[str]) -> None:
        """Mark one group or several as network-wide."""
        self.network_groups.update(_as_group_list(groups))

    def add_non_persistent_groups(self, groups: str | Iterable[str]) -> None:
        """Mark one group or several as non-persistent."""
        self.non_persistent_groups.update(_as_group_list(groups))

    def is_non_persistent(self, group: str) -> bool:
        return group in self.non_persistent_groups

    def classify(self, group: str) -> GroupScope:
        """Classify a group. Global wins over network."""
        if group in self.global_groups:
            return GroupScope.GLOBAL
        if group in self.network_groups:
            return GroupScope.NETWORK
        return GroupScope.SITE

    def prefix(self, group: str) -> str:
        """Get the scope prefix for a group under the current scope."""
        scope = self.classify(group)
        if scope is GroupScope.GLOBAL:
            return ""
        if scope is GroupScope.NETWORK:
            return f"network{self.network_id}_"
        return f"site{self.site_id}_"

    def full_key(self, key: str | int, group: str) -> str:
        """Build the composite key for a cache key in a group."""
        return f"{self.prefix(group)}{key}"
