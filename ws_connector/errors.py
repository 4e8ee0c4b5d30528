"""Error types raised by ws-connector.

Configuration mistakes surface at build time, descriptor mistakes at call
time, and I/O failures as TransportError. Non-2xx responses are never raised
by the connector itself; see ConnectorResponse.fail_if_not_successful().
"""

from __future__ import annotations


class ConnectorError(Exception):
    """Base class for connector errors."""


class ConfigurationError(ConnectorError):
    """Raised when the connector is misconfigured (missing URL, bad proxy, etc.)."""


class ArgumentError(ConnectorError, ValueError):
    """Raised when a request descriptor is unsupported or malformed."""


class TransportError(ConnectorError):
    """Raised when a request fails at the I/O level.

    Covers connection refused, timeouts, resets, TLS handshake and DNS
    failures, redirect loops, undecodable bodies and unreadable file parts. The original exception is available as ``cause`` and as
    ``__cause__``.
    """

    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(f"Fail to request {url}")
        self.url = url
        self.cause = cause


class HttpError(ConnectorError):
    """Raised by ConnectorResponse.fail_if_not_successful() for non-2xx responses."""

    def __init__(self, url: str, status_code: int, body: str = "") -> None:
        message = f"Error {status_code} on {url}"
        if body:
            message = f"{message} : {body}"
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.body = body


class ConnectorClosedError(ConnectorError):
    """Raised when a call is made on a connector that was closed."""


class ResponseConsumedError(ConnectorError):
    """Raised when a response body is accessed after it was streamed or closed."""
