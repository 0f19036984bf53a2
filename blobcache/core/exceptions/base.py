"""
Base Exception Class

This module contains ONLY the base exception class that all other exceptions
inherit from, plus ConfigurationError. Specialized exceptions live in their
themed modules.
"""

from typing import Any


class BlobCacheError(Exception):
    """
    Base exception for all blobcache errors.

    All custom exceptions inherit from this class to enable:
    - Consistent absorption at the cache engine boundary
    - Structured error logging
    - Rich context for debugging

    Attributes:
        message: Error message
        details: Additional error details (dict)

    Example:
        raise CacheStorageError(
            "Failed to write blob",
            details={"cache_key": "user:1", "path": "/tmp/cache/ab12..."},
        )
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = (details or {}).copy()
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for logging/API responses.

        Returns:
            Dict with error_type, message and details
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }

    def with_context(self, **context) -> "BlobCacheError":
        """
        Add additional context to the error details.

        Returns:
            Self (for method chaining)
        """
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        details_str = f", details={self.details}" if self.details else ""
        return f"{self.__class__.__name__}(message='{self.message}'{details_str})"

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        message: str | None = None,
        **details
    ) -> "BlobCacheError":
        """
        Create an error from another exception.

        Useful for wrapping OSError / decode errors with cache context.

        Example:
            >>> try:
            ...     path.write_bytes(data)
            ... except OSError as e:
            ...     raise CacheStorageError.from_exception(e, cache_key=key)
        """
        error_message = message or str(exc)
        error_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details
        }
        return cls(error_message, details=error_details)


class ConfigurationError(BlobCacheError):
    """Raised when configuration is invalid or missing."""
    pass
