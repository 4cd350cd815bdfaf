"""manifest-finder specific exceptions."""

from typing import Any


class ManifestFinderError(Exception):
    """Base class for errors raised while detecting a manifest."""


class FetchError(ManifestFinderError):
    """Raised when a resource could not be fetched after every fallback was tried."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class HttpForbiddenError(FetchError):
    """Raised when the web server answered with 403 Forbidden."""


class ResponseDecodingError(FetchError):
    """Raised when a response body can't be decoded with its declared charset."""


class ManifestNotFoundError(ManifestFinderError):
    """Raised when no manifest could be located or downloaded.

    `details` carries diagnostics, such as the HTML of the inspected document.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class InvalidManifestJsonError(ManifestFinderError):
    """Raised when the manifest body isn't JSON, or nothing in it could be decoded.

    `warnings` carries the per-field decode warnings gathered before giving up.
    """

    def __init__(self, message: str, warnings: dict[str, list[str]] | None = None) -> None:
        super().__init__(message)
        self.warnings: dict[str, list[str]] = warnings or {}
