"""
Exception hierarchy for the site cache.

The public cache surface reports failure through return values (False/None),
so these exceptions mostly travel between internal layers. All of them
inherit from SiteCacheError, which carries optional structured context for
logging.
"""

from __future__ import annotations

from typing import Any


class SiteCacheError(Exception):
    """Base exception for all site cache errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class ConfigurationError(SiteCacheError):
    """Raised when host-supplied cache settings are invalid.

    Examples:
        - Settings payload is not a mapping
        - Site or network ID is not a positive integer
        - Storage namespace contains the ':' separator
    """

    pass


class StorageError(SiteCacheError):
    """Raised when the underlying storage medium fails.

    Context should include:
        - medium: The medium class name
        - operation: The primitive being executed (get_item, set_item, ...)
        - key: The storage key, if any
    """

    pass


class CorruptEntryError(SiteCacheError):
    """Raised when a persisted entry cannot be decoded.

    Handled inside the persistent backend, which purges the slot and reports
    a cache miss.

    Context should include:
        - storage_key: The medium key holding the corrupt text
        - reason: Why decoding failed
    """

    pass
