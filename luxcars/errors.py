from __future__ import annotations
"""Exception hierarchy shared by the admin clients and batch scripts."""


class LuxCarsError(Exception):
    """Base class for project errors."""


class ConfigError(LuxCarsError):
    """Missing or invalid configuration (credentials, paths)."""


class RemoteDatabaseError(LuxCarsError):
    """D1 HTTP API returned an error status or ``success: false``."""

    def __init__(self, message: str, status: int | None = None, errors: list | None = None):
        super().__init__(message)
        self.status = status
        self.errors = errors or []

    @property
    def code(self) -> int | None:
        """First error code reported by the API, if any."""
        for err in self.errors:
            if isinstance(err, dict) and err.get('code') is not None:
                return err.get('code')
        return None


class StorageError(LuxCarsError):
    """Image download or object storage failure."""


class PhotoSearchError(LuxCarsError):
    """Photo search API failure."""


class IndexingError(LuxCarsError):
    """Search-engine indexing setup failure."""


__all__ = [
    "LuxCarsError",
    "ConfigError",
    "RemoteDatabaseError",
    "StorageError",
    "PhotoSearchError",
    "IndexingError",
]
