"""URL Resolver - Joins the base URL with request paths and query parameters."""

from __future__ import annotations

import re
from collections.abc import Iterable
from urllib.parse import urlencode

import httpx

from ws_connector.errors import ArgumentError, ConfigurationError

_LEADING_SEPARATORS = re.compile(r"^/+")

_SUPPORTED_SCHEMES = ("http", "https")


def normalize_base_url(url: str) -> httpx.URL:
    """Parse a server URL and make sure it ends with "/".

    The trailing separator is required so that relative paths are resolved
    below the base path: "http://host/api" + "rules" must give
    "http://host/api/rules", not "http://host/rules".

    Raises:
        ConfigurationError: If the URL is not an absolute http(s) URL.
    """
    if not url.endswith("/"):
        url = f"{url}/"
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"Malformed URL: '{url}'") from e
    if parsed.scheme not in _SUPPORTED_SCHEMES or not parsed.host:
        raise ConfigurationError(f"Malformed URL: '{url}'")
    return parsed


def resolve_url(
    base_url: httpx.URL,
    path: str,
    params: Iterable[tuple[str, str]] = (),
) -> httpx.URL:
    """Resolve a request path and query parameters against the base URL.

    Leading separators are stripped from the path first, so "/rules",
    "//rules" and "rules" all land under the base path. Parameters are
    appended after any query already present in the path, in order, and a
    repeated key produces repeated query parameters.

    Raises:
        ArgumentError: If the path cannot be turned into a valid URL.
    """
    relative = _LEADING_SEPARATORS.sub("", path)
    try:
        url = base_url.join(relative)
        # QueryParams groups values by key, so pairs are encoded here in order
        encoded = urlencode(list(params)).encode("ascii")
        if encoded:
            query = url.query + b"&" + encoded if url.query else encoded
            url = url.copy_with(query=query)
    except httpx.InvalidURL as e:
        raise ArgumentError(f"Invalid request path '{path}': {e}") from e
    return url
