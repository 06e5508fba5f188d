"""Error taxonomy shared by the refresh pipeline and the HTTP layer."""
from typing import Optional


class CountryApiError(Exception):
    """Base class for every error raised by the country API."""


class SourceUnavailable(CountryApiError):
    """An external data source could not be fetched or decoded."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Could not fetch data from {source}: {reason}")


class StorageError(CountryApiError):
    """The underlying database failed; no partial change was applied."""


class NotFound(CountryApiError):
    """A lookup or delete target does not exist."""

    def __init__(self, message: str = "Country not found", searched_for: Optional[str] = None):
        self.message = message
        self.searched_for = searched_for
        super().__init__(message)


class RenderError(CountryApiError):
    """The summary image could not be written to the cache."""
