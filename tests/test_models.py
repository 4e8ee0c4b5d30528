"""Tests for request descriptors and connector settings models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from ws_connector.errors import ArgumentError
from ws_connector.models import (
    ConnectorSettings,
    GetRequest,
    MediaTypes,
    Part,
    PostRequest,
    parse_request,
)


class TestGetRequest:
    def test_defaults(self) -> None:
        request = GetRequest(path="api/rules/search")
        assert request.method == "GET"
        assert request.params == ()
        assert request.media_type == MediaTypes.JSON

    def test_with_param_returns_new_value(self) -> None:
        original = GetRequest(path="api/rules/search")
        updated = original.with_param("q", "xoo")

        assert original.params == ()
        assert updated.params == (("q", "xoo"),)

    def test_repeated_keys_are_kept_in_order(self) -> None:
        request = GetRequest(path="p").with_param("k", "v1").with_param("other", "x").with_param("k", "v2")
        assert request.params == (("k", "v1"), ("other", "x"), ("k", "v2"))
        assert request.param_values("k") == ["v1", "v2"]

    def test_none_value_is_ignored(self) -> None:
        request = GetRequest(path="p").with_param("k", None)
        assert request.params == ()

    def test_values_are_stringified(self) -> None:
        request = GetRequest(path="p").with_params({"ps": 100, "asc": True, "f": False})
        assert request.params == (("ps", "100"), ("asc", "true"), ("f", "false"))

    def test_collection_value_repeats_key(self) -> None:
        request = GetRequest(path="p").with_param("languages", ["java", "py"])
        assert request.params == (("languages", "java"), ("languages", "py"))

    def test_empty_key_rejected(self) -> None:
        with pytest.raises(ArgumentError):
            GetRequest(path="p").with_param("", "v")

    def test_params_accept_mapping_at_construction(self) -> None:
        request = GetRequest(path="p", params={"a": "1", "b": None})
        assert request.params == (("a", "1"),)

    def test_params_accept_pairs_at_construction(self) -> None:
        request = GetRequest(path="p", params=[("a", "1"), ("a", "2")])
        assert request.params == (("a", "1"), ("a", "2"))

    def test_with_media_type(self) -> None:
        request = GetRequest(path="p").with_media_type(MediaTypes.PROTOBUF)
        assert request.media_type == "application/x-protobuf"

    def test_frozen(self) -> None:
        request = GetRequest(path="p")
        with pytest.raises(ValidationError):
            request.path = "other"  # type: ignore[misc]


class TestPostRequest:
    def test_defaults(self) -> None:
        request = PostRequest(path="api/projects/create")
        assert request.method == "POST"
        assert request.parts == {}

    def test_with_part_preserves_insertion_order(self) -> None:
        request = (
            PostRequest(path="upload")
            .with_part("b", Part.of_bytes(MediaTypes.TXT, "second"))
            .with_part("a", Part.of_bytes(MediaTypes.TXT, "first"))
        )
        assert list(request.parts) == ["b", "a"]

    def test_with_part_does_not_mutate_original(self) -> None:
        original = PostRequest(path="upload")
        original.with_part("report", Part.of_bytes(MediaTypes.TXT, b"x"))
        assert original.parts == {}

    def test_parts_are_read_only(self) -> None:
        request = PostRequest(path="upload").with_part("a", Part.of_bytes(MediaTypes.TXT, "x"))
        with pytest.raises(TypeError):
            request.parts["b"] = Part.of_bytes(MediaTypes.TXT, "y")  # type: ignore[index]
        assert list(request.parts) == ["a"]

    def test_parts_given_at_construction_are_copied(self) -> None:
        parts = {"a": Part.of_bytes(MediaTypes.TXT, "x")}
        request = PostRequest(path="upload", parts=parts)
        parts["b"] = Part.of_bytes(MediaTypes.TXT, "y")
        assert list(request.parts) == ["a"]
        with pytest.raises(TypeError):
            request.parts["b"] = parts["b"]  # type: ignore[index]

    def test_parts_dump_as_dict(self) -> None:
        request = PostRequest(path="upload").with_part("a", Part.of_bytes(MediaTypes.TXT, "x"))
        assert request.model_dump()["parts"] == {"a": {"media_type": "text/plain", "content": b"x", "file": None}}

    def test_empty_part_name_rejected(self) -> None:
        with pytest.raises(ArgumentError):
            PostRequest(path="upload").with_part("", Part.of_bytes(MediaTypes.TXT, b"x"))

    def test_with_param_keeps_post_type(self) -> None:
        request = PostRequest(path="p").with_param("key", "v")
        assert isinstance(request, PostRequest)


class TestPart:
    def test_of_bytes_encodes_strings_as_utf8(self) -> None:
        part = Part.of_bytes(MediaTypes.TXT, "héllo")
        assert part.read() == "héllo".encode("utf-8")

    def test_of_file_reads_lazily(self, tmp_path: Path) -> None:
        report = tmp_path / "report.bin"
        part = Part.of_file(MediaTypes.DEFAULT, report)
        report.write_bytes(b"\x00\x01\x02")
        assert part.read() == b"\x00\x01\x02"

    def test_content_and_file_are_mutually_exclusive(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError, match="exactly one"):
            Part(media_type=MediaTypes.TXT, content=b"x", file=tmp_path / "f")

    def test_content_or_file_required(self) -> None:
        with pytest.raises(ValidationError, match="exactly one"):
            Part(media_type=MediaTypes.TXT)


class TestParseRequest:
    def test_get(self) -> None:
        request = parse_request({"method": "GET", "path": "api/issues/search", "params": [["k", "v"]]})
        assert isinstance(request, GetRequest)
        assert request.params == (("k", "v"),)

    def test_post_with_parts(self) -> None:
        request = parse_request({
            "method": "POST",
            "path": "api/upload",
            "parts": {"report": {"media_type": "text/plain", "content": b"data"}},
        })
        assert isinstance(request, PostRequest)
        assert request.parts["report"].read() == b"data"

    def test_unknown_method_rejected(self) -> None:
        with pytest.raises(ArgumentError, match="Invalid request descriptor"):
            parse_request({"method": "DELETE", "path": "x"})

    def test_extra_fields_rejected(self) -> None:
        with pytest.raises(ArgumentError):
            parse_request({"method": "GET", "path": "x", "body": "nope"})


class TestConnectorSettings:
    def test_defaults(self) -> None:
        settings = ConnectorSettings()
        assert settings.url is None
        assert settings.connect_timeout_ms == 30_000
        assert settings.read_timeout_ms == 60_000
        assert settings.verify_ssl is True
        assert settings.proxy is None

    def test_extra_fields_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ConnectorSettings.model_validate({"url": "http://x", "unknown": 1})
