"""Response Wrapper - Stable view over an httpx response.

Callers never see httpx types. The body can be read once: either fully
(content()/text(), cached afterwards) or as a stream (iter_bytes()). The
underlying connection goes back to the pool when the body is fully read,
when close() is called, when the wrapper is used as a context manager and the
block exits, or when the wrapper is garbage collected.
"""

from __future__ import annotations

import weakref
from collections.abc import Iterator, Mapping
from typing import Any

import httpx

from ws_connector.errors import HttpError, ResponseConsumedError, TransportError


class ResponseHeaders(Mapping[str, str]):
    """Read-only, case-insensitive response headers.

    Repeated headers are joined with ", " by item access; use get_list() to
    see each value.
    """

    def __init__(self, headers: httpx.Headers) -> None:
        self._headers = headers

    def __getitem__(self, key: str) -> str:
        return self._headers[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers.keys())

    def __len__(self) -> int:
        return len(self._headers.keys())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key in self._headers

    def get_list(self, key: str) -> list[str]:
        return self._headers.get_list(key)

    def __repr__(self) -> str:
        return f"ResponseHeaders({dict(self.items())!r})"


class ConnectorResponse:
    """Response to one HttpConnector.call().

    Usage:
        with connector.call(GetRequest(path="api/system/status")) as response:
            if response.is_successful:
                print(response.text())
    """

    def __init__(self, response: httpx.Response, request_url: str | None = None) -> None:
        self._response = response
        self._request_url = request_url if request_url is not None else str(response.request.url)
        self._headers = ResponseHeaders(response.headers)
        self._finalizer = weakref.finalize(self, response.close)

    def __enter__(self) -> ConnectorResponse:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<ConnectorResponse [{self.status_code}] {self._request_url}>"

    # -------------------------------------------------------------------------
    # Status and headers
    # -------------------------------------------------------------------------

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def request_url(self) -> str:
        """URL the request was sent to, for diagnostics."""
        return self._request_url

    @property
    def headers(self) -> ResponseHeaders:
        return self._headers

    def header(self, name: str) -> str | None:
        """Value of a header (case-insensitive), or None if absent."""
        return self._headers.get(name)

    @property
    def content_type(self) -> str | None:
        return self.header("Content-Type")

    @property
    def is_successful(self) -> bool:
        """True for 2xx status codes."""
        return 200 <= self.status_code < 300

    @property
    def has_content(self) -> bool:
        """False for 204 No Content."""
        return self.status_code != 204

    @property
    def is_closed(self) -> bool:
        return self._response.is_closed

    def fail_if_not_successful(self) -> ConnectorResponse:
        """Raise HttpError unless the status is 2xx. Returns self for chaining.

        The body is read into the error so that server messages are not lost.
        """
        if self.is_successful:
            return self
        try:
            body = self.text()
        except ResponseConsumedError:
            body = ""
        raise HttpError(self._request_url, self.status_code, body)

    # -------------------------------------------------------------------------
    # Body
    # -------------------------------------------------------------------------

    def content(self) -> bytes:
        """Read the whole body. Releases the connection.

        Raises:
            ResponseConsumedError: If the body was streamed or the response closed.
            TransportError: If reading fails at the I/O level or the body cannot be decoded.
        """
        try:
            return self._response.read()
        except (httpx.StreamConsumed, httpx.StreamClosed) as e:
            raise ResponseConsumedError(f"Response body of {self._request_url} was already consumed") from e
        except httpx.RequestError as e:
            raise TransportError(self._request_url, e) from e
        finally:
            self.close()

    def text(self) -> str:
        """Read the whole body as a string, using the response charset (UTF-8 by default)."""
        self.content()
        return self._response.text

    def iter_bytes(self, chunk_size: int | None = None) -> Iterator[bytes]:
        """Stream the body in chunks. The connection is released when the
        iterator is exhausted, closed, or abandoned.

        Raises:
            ResponseConsumedError: If the body was already read or the response closed.
        """
        if self._response.is_stream_consumed or self._response.is_closed:
            raise ResponseConsumedError(f"Response body of {self._request_url} was already consumed")
        return self._stream(chunk_size)

    def _stream(self, chunk_size: int | None) -> Iterator[bytes]:
        try:
            yield from self._response.iter_bytes(chunk_size)
        except httpx.RequestError as e:
            raise TransportError(self._request_url, e) from e
        finally:
            self.close()

    def close(self) -> None:
        """Release the underlying connection. Safe to call more than once."""
        self._finalizer()
