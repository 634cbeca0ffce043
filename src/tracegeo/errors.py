"""Error taxonomy for geolocation lookups"""

from typing import List, Optional


class GeoError(Exception):
    """Base exception for geolocation operations."""

    exit_code = 1
    retryable = False

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(message)


class ConfigurationError(GeoError):
    """A required setting is missing or invalid."""

    exit_code = 3


class GeoIOError(GeoError, OSError):
    """File or system access failure."""

    exit_code = 2


class FormatError(GeoError):
    """Source data is structurally invalid."""

    exit_code = 4


class NetworkError(GeoError, ConnectionError):
    """Transport-level provider failure."""

    exit_code = 5
    retryable = True


class ProviderTimeoutError(NetworkError, TimeoutError):
    """The provider did not answer within the caller's timeout."""


class UpstreamRejectedError(GeoError):
    """Provider signalled a non-success status, quota exhaustion or blocking."""

    exit_code = 6

    def __init__(
        self, message: str, context: Optional[str] = None, status_code: Optional[int] = None
    ):
        self.status_code = status_code
        super().__init__(message, context)


class EmptyResponseError(GeoError):
    """Well-formed response carrying none of the expected fields.

    Usually means an intermediary (CDN bot protection, captive portal)
    intercepted the request.
    """

    exit_code = 6


class NotFoundError(GeoError):
    """A required resource (such as a database file) could not be found."""

    exit_code = 7


class LookupMissError(GeoError):
    """The data source has no record for the address."""

    exit_code = 7


class ResolutionError(GeoError):
    """Every configured provider failed."""

    def __init__(self, errors: List[GeoError], context: Optional[str] = None):
        self.errors = list(errors)
        summary = "; ".join(
            f"{err.context}: {err.message}" if err.context else err.message for err in self.errors
        )
        super().__init__(f"all providers failed ({summary})", context)
        if self.errors:
            self.exit_code = self.errors[-1].exit_code

    @property
    def last(self) -> Optional[GeoError]:
        return self.errors[-1] if self.errors else None
