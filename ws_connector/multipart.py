"""Multipart Encoder - Builds multipart/form-data request bodies."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass

from ws_connector.models import Part

_CRLF = b"\r\n"


@dataclass(frozen=True)
class MultipartBody:
    """An encoded multipart/form-data body and its boundary."""

    content: bytes
    boundary: str

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"


def _new_boundary() -> str:
    return f"ws-connector-{uuid.uuid4().hex}"


def _choose_boundary(payloads: list[bytes]) -> str:
    """Pick a random boundary that does not occur in any payload."""
    while True:
        boundary = _new_boundary()
        marker = boundary.encode("ascii")
        if not any(marker in payload for payload in payloads):
            return boundary


def _quote_name(name: str) -> str:
    # Quotes and line breaks would end the quoted-string early
    return name.replace('"', "%22").replace("\r", "%0D").replace("\n", "%0A")


def encode_multipart(parts: Mapping[str, Part]) -> MultipartBody:
    """Encode parts as multipart/form-data, in insertion order.

    Each part carries ``Content-Disposition: form-data; name="<name>"`` and
    its own ``Content-Type``. File parts are read here.
    """
    named_payloads = [(name, part.media_type, part.read()) for name, part in parts.items()]
    boundary = _choose_boundary([payload for _, _, payload in named_payloads])
    delimiter = f"--{boundary}".encode("ascii")

    chunks: list[bytes] = []
    for name, media_type, payload in named_payloads:
        chunks.append(delimiter + _CRLF)
        chunks.append(f'Content-Disposition: form-data; name="{_quote_name(name)}"'.encode("utf-8") + _CRLF)
        chunks.append(f"Content-Type: {media_type}".encode("utf-8") + _CRLF)
        chunks.append(f"Content-Length: {len(payload)}".encode("ascii") + _CRLF)
        chunks.append(_CRLF)
        chunks.append(payload)
        chunks.append(_CRLF)
    chunks.append(delimiter + b"--" + _CRLF)

    return MultipartBody(content=b"".join(chunks), boundary=boundary)
