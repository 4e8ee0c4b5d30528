"""HttpConnector - Sends request descriptors to a web service over HTTP(S).

Connect to any server available through HTTP or HTTPS. TLS 1.0, 1.1 and 1.2
are supported; SSLv3 is not. Environment proxies (HTTP_PROXY, HTTPS_PROXY,
NO_PROXY) are honored unless an explicit proxy is configured.

Usage:
    connector = (
        HttpConnector.new_builder()
        .url("https://localhost:9000")
        .token("squ_1234")
        .user_agent("my-tool/1.0")
        .build()
    )
    with connector.call(GetRequest(path="api/rules/search").with_param("q", "xoo")) as response:
        print(response.status_code, response.text())
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ws_connector.errors import ArgumentError, ConfigurationError, ConnectorClosedError, TransportError
from ws_connector.models import (
    DEFAULT_CONNECT_TIMEOUT_MILLISECONDS,
    DEFAULT_READ_TIMEOUT_MILLISECONDS,
    ConnectorSettings,
)
from ws_connector.request_builder import ResolvedRequest, basic_credentials, build_request
from ws_connector.response import ConnectorResponse
from ws_connector.tls import create_ssl_context
from ws_connector.url_resolver import normalize_base_url

logger = logging.getLogger(__name__)

_PROXY_SCHEMES = ("http", "https", "socks5", "socks5h")


def _timeout_seconds(milliseconds: int) -> float | None:
    """Convert a timeout in milliseconds to httpx seconds. Zero means no limit."""
    if milliseconds == 0:
        return None
    return milliseconds / 1000.0


def _build_timeout(settings: ConnectorSettings) -> httpx.Timeout:
    connect = _timeout_seconds(settings.connect_timeout_ms)
    read = _timeout_seconds(settings.read_timeout_ms)
    return httpx.Timeout(connect=connect, read=read, write=read, pool=connect)


def _validate_settings(settings: ConnectorSettings) -> httpx.URL:
    """Check settings that can be checked without I/O. Returns the base URL."""
    if settings.url is None or not settings.url.strip():
        raise ConfigurationError("Server URL is not defined")
    base_url = normalize_base_url(settings.url.strip())

    if settings.connect_timeout_ms < 0:
        raise ConfigurationError(
            f"Connect timeout must be positive or zero, got {settings.connect_timeout_ms}"
        )
    if settings.read_timeout_ms < 0:
        raise ConfigurationError(
            f"Read timeout must be positive or zero, got {settings.read_timeout_ms}"
        )

    if settings.user_agent is not None:
        if not settings.user_agent.isascii() or any(c in settings.user_agent for c in "\r\n"):
            raise ConfigurationError(
                f"User agent must be ASCII without line breaks, got {settings.user_agent!r}"
            )

    if settings.proxy is not None:
        try:
            proxy_url = httpx.URL(settings.proxy)
        except httpx.InvalidURL as e:
            raise ConfigurationError(f"Malformed proxy URL: '{settings.proxy}'") from e
        if proxy_url.scheme not in _PROXY_SCHEMES or not proxy_url.host:
            raise ConfigurationError(f"Malformed proxy URL: '{settings.proxy}'")

    return base_url


class HttpConnector:
    """Immutable connector to one server.

    Thread-safe: calls may be issued concurrently from several threads. The
    httpx connection pool is the only shared state and is never exposed to
    callers except through ``http_client`` for advanced use.

    Use HttpConnector.new_builder() or HttpConnector.from_settings() to create
    instances.
    """

    DEFAULT_CONNECT_TIMEOUT_MILLISECONDS = DEFAULT_CONNECT_TIMEOUT_MILLISECONDS
    DEFAULT_READ_TIMEOUT_MILLISECONDS = DEFAULT_READ_TIMEOUT_MILLISECONDS

    def __init__(self, settings: ConnectorSettings, base_url: httpx.URL) -> None:
        """Private, settings must already be validated. See from_settings()."""
        self._settings = settings
        self._base_url = base_url
        self._user_agent = settings.user_agent

        if settings.login:
            self._credentials: str | None = basic_credentials(settings.login, settings.password)
        else:
            # no login nor access token
            self._credentials = None
        # Proxy credentials also apply to environment proxies, so they are
        # encoded even when no explicit proxy is configured.
        if settings.proxy_login:
            self._proxy_credentials: str | None = basic_credentials(
                settings.proxy_login, settings.proxy_password
            )
        else:
            self._proxy_credentials = None

        self._client = httpx.Client(**self._build_client_kwargs(settings))

    @staticmethod
    def new_builder() -> HttpConnectorBuilder:
        return HttpConnectorBuilder()

    @classmethod
    def from_settings(cls, settings: ConnectorSettings) -> HttpConnector:
        """Validate settings and build a connector. No network I/O is done.

        Raises:
            ConfigurationError: If the URL is missing or malformed, a timeout is
                negative, the proxy URL is malformed, the user agent is not ASCII,
                or TLS material is invalid.
        """
        base_url = _validate_settings(settings)
        connector = cls(settings, base_url)
        logger.debug("Built connector for %s", connector.base_url)
        return connector

    @staticmethod
    def _build_client_kwargs(settings: ConnectorSettings) -> dict[str, Any]:
        """Build kwargs for httpx.Client: timeouts, TLS context and proxy."""
        kwargs: dict[str, Any] = {
            "timeout": _build_timeout(settings),
            "verify": create_ssl_context(
                ciphers=settings.ciphers,
                ca_bundle=settings.ca_bundle,
                verify_ssl=settings.verify_ssl,
                cert=settings.cert,
                key=settings.key,
                key_password=settings.key_password,
            ),
            "follow_redirects": True,
            "trust_env": settings.trust_env,
        }
        if settings.proxy is not None:
            kwargs["proxy"] = settings.proxy
        return kwargs

    def __enter__(self) -> HttpConnector:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close pooled connections. The connector cannot be used afterwards."""
        self._client.close()

    @property
    def base_url(self) -> str:
        """Base URL with trailing slash, e.g., "https://localhost/sonarqube/"."""
        return str(self._base_url)

    @property
    def user_agent(self) -> str | None:
        return self._user_agent

    @property
    def settings(self) -> ConnectorSettings:
        return self._settings

    @property
    def http_client(self) -> httpx.Client:
        return self._client

    def prepare(self, request: Any) -> ResolvedRequest:
        """Resolve a descriptor into the request that call() would send.

        Raises:
            ArgumentError: If the descriptor is unsupported or malformed.
        """
        return build_request(
            request,
            self._base_url,
            credentials=self._credentials,
            proxy_credentials=self._proxy_credentials,
            user_agent=self._user_agent,
        )

    def call(self, request: Any) -> ConnectorResponse:
        """Send a GetRequest or PostRequest and return the response.

        Any HTTP status is returned as a response, including 4xx and 5xx.
        The body is not read; see ConnectorResponse for how it is consumed.

        Raises:
            ArgumentError: If the descriptor is unsupported or malformed.
            TransportError: If the request fails at the I/O level.
            ConnectorClosedError: If close() was called.
        """
        if self._client.is_closed:
            raise ConnectorClosedError(f"Connector to {self.base_url} is closed")
        resolved = self.prepare(request)
        return self._execute(resolved)

    def _execute(self, resolved: ResolvedRequest) -> ConnectorResponse:
        url = str(resolved.url)
        try:
            http_request = self._client.build_request(
                resolved.method,
                resolved.url,
                headers=resolved.headers,
                content=resolved.body,
            )
        except UnicodeEncodeError as e:
            raise ArgumentError(
                f"Encoding error: non-ASCII characters in request to {url}. "
                f"Character: {e.object[e.start:e.end]!r} at position {e.start}."
            ) from e

        logger.debug("%s %s", resolved.method, url)
        try:
            http_response = self._client.send(http_request, stream=True)
        except httpx.RequestError as e:
            logger.debug("%s %s failed: %s", resolved.method, url, e)
            raise TransportError(url, e) from e

        logger.debug("%s %s -> %d", resolved.method, url, http_response.status_code)
        return ConnectorResponse(http_response, request_url=url)


class HttpConnectorBuilder:
    """Immutable builder for HttpConnector. Every setter returns a new builder.

    Only the URL is mandatory. Settings are checked by build(), never by the
    setters.
    """

    def __init__(self, settings: ConnectorSettings | None = None) -> None:
        self._settings = settings or ConnectorSettings()

    def _with(self, **changes: Any) -> HttpConnectorBuilder:
        return HttpConnectorBuilder(self._settings.model_copy(update=changes))

    @property
    def settings(self) -> ConnectorSettings:
        return self._settings

    def url(self, url: str | None) -> HttpConnectorBuilder:
        """Mandatory HTTP server URL, e.g., "http://localhost:9000"."""
        return self._with(url=url)

    def user_agent(self, user_agent: str | None) -> HttpConnectorBuilder:
        return self._with(user_agent=user_agent)

    def credentials(self, login: str | None, password: str | None) -> HttpConnectorBuilder:
        """Optional login/password, for example "admin"/"admin"."""
        return self._with(login=login, password=password)

    def token(self, token: str | None) -> HttpConnectorBuilder:
        """Optional access token, for example "ABCDE". Alternative to credentials().

        The token is sent as the Basic login with an empty password.
        """
        return self._with(login=token, password=None)

    def connect_timeout_milliseconds(self, milliseconds: int) -> HttpConnectorBuilder:
        """Timeout for opening connections. Zero means infinite.

        Default value is DEFAULT_CONNECT_TIMEOUT_MILLISECONDS.
        """
        return self._with(connect_timeout_ms=milliseconds)

    def read_timeout_milliseconds(self, milliseconds: int) -> HttpConnectorBuilder:
        """Timeout for each read of response data. Zero means infinite.

        Default value is DEFAULT_READ_TIMEOUT_MILLISECONDS.
        """
        return self._with(read_timeout_ms=milliseconds)

    def proxy(self, proxy_url: str | None) -> HttpConnectorBuilder:
        """Explicit proxy, e.g., "http://proxy:3128". Overrides environment proxies."""
        return self._with(proxy=proxy_url)

    def proxy_credentials(
        self, proxy_login: str | None, proxy_password: str | None
    ) -> HttpConnectorBuilder:
        return self._with(proxy_login=proxy_login, proxy_password=proxy_password)

    def trust_env(self, trust: bool) -> HttpConnectorBuilder:
        """Whether proxy environment variables apply. Default True."""
        return self._with(trust_env=trust)

    def ciphers(self, ciphers: str | None) -> HttpConnectorBuilder:
        """OpenSSL cipher string for HTTPS connections."""
        return self._with(ciphers=ciphers)

    def ca_bundle(self, ca_bundle: str | None) -> HttpConnectorBuilder:
        return self._with(ca_bundle=ca_bundle)

    def verify_ssl(self, verify: bool) -> HttpConnectorBuilder:
        return self._with(verify_ssl=verify)

    def client_cert(
        self, cert: str | None, key: str | None, key_password: str | None = None
    ) -> HttpConnectorBuilder:
        """Client certificate and key for mTLS."""
        return self._with(cert=cert, key=key, key_password=key_password)

    def build(self) -> HttpConnector:
        """Build the connector.

        Raises:
            ConfigurationError: If the settings are invalid (see
                HttpConnector.from_settings()).
        """
        return HttpConnector.from_settings(self._settings)
