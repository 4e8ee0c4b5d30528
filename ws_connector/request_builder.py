"""Request Builder - Turns request descriptors into wire-ready requests."""

from __future__ import annotations

import base64
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

import httpx

from ws_connector.errors import ArgumentError, TransportError
from ws_connector.models import GetRequest, Part, PostRequest
from ws_connector.multipart import encode_multipart
from ws_connector.url_resolver import resolve_url


@dataclass(frozen=True)
class ResolvedRequest:
    """A fully formed outbound request.

    ``body`` is None for GET, b"" for a POST without parts, and the encoded
    multipart body otherwise.
    """

    method: Literal["GET", "POST"]
    url: httpx.URL
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None


def basic_credentials(login: str, password: str | None) -> str:
    """Encode an Authorization header value using the Basic scheme.

    A None password is sent as empty, which is how access tokens are
    passed: the token is the login and the password is blank.
    """
    user_pass = f"{login}:{password or ''}".encode("utf-8")
    return "Basic " + base64.b64encode(user_pass).decode("ascii")


def build_request(
    request: Any,
    base_url: httpx.URL,
    *,
    credentials: str | None = None,
    proxy_credentials: str | None = None,
    user_agent: str | None = None,
) -> ResolvedRequest:
    """Build the outbound request for a GET or POST descriptor.

    Raises:
        ArgumentError: If ``request`` is not a supported descriptor.
        TransportError: If a file part cannot be read.
    """
    parts: Mapping[str, Part] = {}
    match request:
        case GetRequest():
            method: Literal["GET", "POST"] = "GET"
            body: bytes | None = None
        case PostRequest(parts=parts) if parts:
            method = "POST"
            body = None
        case PostRequest():
            method = "POST"
            body = b""
        case _:
            raise ArgumentError(f"Unsupported implementation: {type(request)!r}")

    url = resolve_url(base_url, request.path, request.params)

    content_type: str | None = None
    if parts:
        try:
            multipart = encode_multipart(parts)
        except OSError as e:
            raise TransportError(str(url), e) from e
        body = multipart.content
        content_type = multipart.content_type

    headers: dict[str, str] = {
        "Accept": request.media_type,
        "Accept-Charset": "UTF-8",
    }
    if credentials is not None:
        headers["Authorization"] = credentials
    if proxy_credentials is not None:
        headers["Proxy-Authorization"] = proxy_credentials
    if user_agent is not None:
        headers["User-Agent"] = user_agent
    if content_type is not None:
        headers["Content-Type"] = content_type

    return ResolvedRequest(method=method, url=url, headers=headers, body=body)
