"""Data models for ws-connector.

Request descriptors and connector settings use Pydantic v2. Descriptors are
frozen: the ``with_*`` helpers return updated copies.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Annotated, Any, Literal, Self, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_serializer,
    field_validator,
    model_validator,
)

from ws_connector.errors import ArgumentError


DEFAULT_CONNECT_TIMEOUT_MILLISECONDS = 30_000
DEFAULT_READ_TIMEOUT_MILLISECONDS = 60_000


class MediaTypes:
    """Media types commonly accepted by web services."""

    JSON = "application/json"
    PROTOBUF = "application/x-protobuf"
    TXT = "text/plain"
    DEFAULT = "application/octet-stream"


def _param_value_to_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _expand_param(key: str, value: Any) -> list[tuple[str, str]]:
    """Expand one parameter into wire pairs. None is dropped, collections repeat the key."""
    if not key:
        raise ArgumentError("Parameter key must not be empty")
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return [(key, _param_value_to_string(v)) for v in value if v is not None]
    return [(key, _param_value_to_string(value))]


# =============================================================================
# Request Descriptors
# =============================================================================


class Part(BaseModel):
    """One named part of a multipart upload.

    Exactly one of ``content`` and ``file`` must be set. Files are read when
    the body is encoded, not when the part is created.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    media_type: str = Field(description="Content-Type of the part, e.g., text/plain")
    content: bytes | None = Field(default=None, description="In-memory part body")
    file: Path | None = Field(default=None, description="File whose bytes form the part body")

    @model_validator(mode="after")
    def check_content_exclusivity(self) -> Self:
        if (self.content is None) == (self.file is None):
            raise ValueError("exactly one of content and file must be set")
        return self

    @classmethod
    def of_bytes(cls, media_type: str, content: bytes | str) -> Part:
        if isinstance(content, str):
            content = content.encode("utf-8")
        return cls(media_type=media_type, content=content)

    @classmethod
    def of_file(cls, media_type: str, file: Path | str) -> Part:
        return cls(media_type=media_type, file=Path(file))

    def read(self) -> bytes:
        """Return the part body, reading the file if needed."""
        if self.file is not None:
            return self.file.read_bytes()
        return self.content or b""


class BaseRequest(BaseModel):
    """Fields shared by every request kind.

    Query parameters are an ordered sequence of pairs so that a key can be
    repeated. The path may start with "/"; leading separators are stripped
    before it is resolved against the base URL.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = Field(description="Path relative to the base URL, e.g., api/rules/search")
    params: tuple[tuple[str, str], ...] = Field(
        default=(), description="Query parameters in insertion order (keys may repeat)"
    )
    media_type: str = Field(default=MediaTypes.JSON, description="Accepted response media type")

    @field_validator("params", mode="before")
    @classmethod
    def normalize_params(cls, v: Any) -> Any:
        if isinstance(v, Mapping):
            v = list(v.items())
        if isinstance(v, Iterable) and not isinstance(v, (str, bytes)):
            pairs: list[tuple[str, str]] = []
            for item in v:
                key, value = item
                pairs.extend(_expand_param(key, value))
            return tuple(pairs)
        return v

    def with_param(self, key: str, value: Any) -> Self:
        """Return a copy with one more query parameter (None values are ignored)."""
        pairs = _expand_param(key, value)
        if not pairs:
            return self
        return self.model_copy(update={"params": self.params + tuple(pairs)})

    def with_params(self, params: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> Self:
        """Return a copy with several query parameters appended in order."""
        items = params.items() if isinstance(params, Mapping) else params
        pairs: list[tuple[str, str]] = []
        for key, value in items:
            pairs.extend(_expand_param(key, value))
        return self.model_copy(update={"params": self.params + tuple(pairs)})

    def with_media_type(self, media_type: str) -> Self:
        return self.model_copy(update={"media_type": media_type})

    def param_values(self, key: str) -> list[str]:
        """All values of a query parameter, in order."""
        return [v for k, v in self.params if k == key]


class GetRequest(BaseRequest):
    """A GET call. Sent without a body."""

    method: Literal["GET"] = "GET"


class PostRequest(BaseRequest):
    """A POST call. Sent as multipart/form-data when it has parts, else with an empty body."""

    method: Literal["POST"] = "POST"
    parts: Mapping[str, Part] = Field(
        default_factory=dict,
        validate_default=True,
        description="Field name -> Part (insertion ordered, read-only)",
    )

    @field_validator("parts", mode="after")
    @classmethod
    def freeze_parts(cls, v: Mapping[str, Part]) -> Mapping[str, Part]:
        return MappingProxyType(dict(v))

    @field_serializer("parts")
    def serialize_parts(self, v: Mapping[str, Part]) -> dict[str, Part]:
        return dict(v)

    def with_part(self, name: str, part: Part) -> PostRequest:
        """Return a copy with a part added, replacing any part of the same name."""
        if not name:
            raise ArgumentError("Part name must not be empty")
        parts = dict(self.parts)
        parts[name] = part
        return self.model_copy(update={"parts": MappingProxyType(parts)})


WsRequest = Annotated[Union[GetRequest, PostRequest], Field(discriminator="method")]

_ws_request_adapter: TypeAdapter[GetRequest | PostRequest] = TypeAdapter(WsRequest)


def parse_request(data: Mapping[str, Any]) -> GetRequest | PostRequest:
    """Build a descriptor from a plain mapping, dispatching on its ``method`` key."""
    try:
        return _ws_request_adapter.validate_python(data)
    except ValueError as e:
        raise ArgumentError(f"Invalid request descriptor: {e}") from e


# =============================================================================
# Connector Settings
# =============================================================================


class ConnectorSettings(BaseModel):
    """Everything needed to build an HttpConnector.

    Populated by HttpConnectorBuilder or loaded from YAML by
    config_loader.load_connector_settings(). Nothing here is validated
    against the network; build() checks the values.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str | None = Field(default=None, description="Server URL, e.g., https://localhost:9000")
    user_agent: str | None = Field(default=None, description="Optional User-Agent header")
    login: str | None = Field(default=None, description="Login, or access token when password is None")
    password: str | None = Field(default=None, description="Password (None for token auth)")
    proxy: str | None = Field(default=None, description="Proxy URL, e.g., http://proxy:3128")
    proxy_login: str | None = Field(default=None, description="Proxy login")
    proxy_password: str | None = Field(default=None, description="Proxy password")
    trust_env: bool = Field(
        default=True, description="Honor HTTP_PROXY/HTTPS_PROXY/NO_PROXY when no proxy is set"
    )
    connect_timeout_ms: int = Field(
        default=DEFAULT_CONNECT_TIMEOUT_MILLISECONDS, description="Connect timeout, 0 = infinite"
    )
    read_timeout_ms: int = Field(
        default=DEFAULT_READ_TIMEOUT_MILLISECONDS, description="Read timeout, 0 = infinite"
    )
    ciphers: str | None = Field(default=None, description="OpenSSL cipher string")
    ca_bundle: str | None = Field(default=None, description="Path to a CA bundle")
    verify_ssl: bool = Field(default=True, description="Verify server certificates")
    cert: str | None = Field(default=None, description="Client certificate (PEM) for mTLS")
    key: str | None = Field(default=None, description="Client private key (PEM) for mTLS")
    key_password: str | None = Field(default=None, description="Password of the client key")
