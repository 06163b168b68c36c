"""Exception hierarchy raised by the Rumo client."""

from __future__ import annotations


class RumoError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(RumoError):
    """The client was constructed with missing or invalid settings."""


class TransportError(RumoError):
    """The request never produced an HTTP response (DNS, refused, reset...)."""


class RumoTimeoutError(TransportError):
    """The request exceeded its connect or read timeout."""


class RemoteError(RumoError):
    """The API answered with a non-2xx status.

    Args:
        status_code: HTTP status returned by the server.
        body: Raw response body, as text.
        url: The request URL.
    """

    def __init__(self, status_code: int, body: str = "", url: str = "") -> None:
        self.status_code = status_code
        self.body = body
        self.url = url
        message = f"Rumo API returned HTTP {status_code} for {url or '<unknown url>'}"
        if body:
            message = f"{message}: {body[:500]}"
        super().__init__(message)


class DeserializationError(RumoError):
    """A response body was not valid JSON or did not match the expected shape."""
