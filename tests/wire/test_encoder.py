"""Tests for form, JSON and multipart request encoding."""

import io
import json
from dataclasses import dataclass
from enum import Enum
from urllib.parse import parse_qsl

import pytest

from edgeconfig.errors import EncodeError
from edgeconfig.wire.encoder import (
    FilePart,
    encode_form,
    encode_json,
    encode_multipart,
    encode_pairs,
    to_json_dict,
)
from edgeconfig.wire.fields import UNSET, Codec, Opt, field_table, wire_field


class Color(str, Enum):
    RED = "red"


@dataclass
class Nested:
    status: Opt[int] = wire_field("status")
    content: Opt[str] = wire_field("content")


@dataclass
class Sample:
    service_id: str = ""
    name: Opt[str] = wire_field("name")
    ttl: Opt[int] = wire_field("ttl")
    enabled: Opt[bool] = wire_field("enabled")
    write_only: Opt[bool] = wire_field("write_only", codec=Codec.COMPAT_BOOL)
    methods: Opt[list[str]] = wire_field("http_methods", codec=Codec.BRACKETS)
    color: Opt[Color] = wire_field("color")
    response: Opt[Nested] = wire_field("response")


@dataclass
class WithRequired:
    op: Opt[str] = wire_field("op", required=True)
    comment: Opt[str] = wire_field("comment")


@dataclass
class WithList:
    items: list[WithRequired] = wire_field("items", default_factory=list)


def decoded_form(value) -> list[tuple[str, str]]:
    return parse_qsl(encode_form(value).decode("ascii"), keep_blank_values=True)


class TestFieldTable:
    def test_path_identifiers_are_not_in_table(self):
        keys = [spec.key for spec in field_table(Sample)]
        assert "service_id" not in keys
        assert keys[0] == "name"

    def test_table_is_cached(self):
        assert field_table(Sample) is field_table(Sample)

    def test_rejects_non_dataclass(self):
        with pytest.raises(TypeError):
            field_table(int)


class TestEncodeForm:
    def test_unset_fields_are_omitted(self):
        assert encode_form(Sample(service_id="svc")) == b""

    def test_present_fields_in_declaration_order(self):
        pairs = decoded_form(Sample(ttl=300, name="test-cache-setting"))
        assert pairs == [("name", "test-cache-setting"), ("ttl", "300")]

    def test_zero_and_empty_values_are_emitted(self):
        pairs = decoded_form(Sample(name="", ttl=0))
        assert pairs == [("name", ""), ("ttl", "0")]

    def test_plain_bool_is_true_false(self):
        assert decoded_form(Sample(enabled=False)) == [("enabled", "false")]

    def test_compat_bool_false_is_zero_not_omitted(self):
        assert decoded_form(Sample(write_only=False)) == [("write_only", "0")]
        assert decoded_form(Sample(write_only=True)) == [("write_only", "1")]
        assert decoded_form(Sample()) == []

    def test_compat_bool_rejects_non_bool(self):
        with pytest.raises(EncodeError) as exc_info:
            encode_form(Sample(write_only=1))
        assert exc_info.value.field == "write_only"

    def test_brackets_repeat_key_in_order(self):
        body = encode_form(Sample(methods=["GET", "POST", "HEAD"]))
        assert body == b"http_methods%5B%5D=GET&http_methods%5B%5D=POST&http_methods%5B%5D=HEAD"

    def test_empty_bracket_list_emits_nothing(self):
        assert encode_form(Sample(methods=[])) == b""

    def test_brackets_reject_bare_string(self):
        with pytest.raises(EncodeError):
            encode_form(Sample(methods="GET"))

    def test_enum_uses_value(self):
        assert decoded_form(Sample(color=Color.RED)) == [("color", "red")]

    def test_nested_dataclass_uses_bracketed_keys(self):
        pairs = decoded_form(Sample(response=Nested(status=429, content="slow down")))
        assert pairs == [("response[status]", "429"), ("response[content]", "slow down")]

    def test_special_characters_are_url_encoded(self):
        assert encode_form(Sample(name="a b&c=d")) == b"name=a+b%26c%3Dd"

    def test_none_is_not_a_wire_value(self):
        with pytest.raises(EncodeError) as exc_info:
            encode_pairs(Sample(name=None))
        assert exc_info.value.field == "name"

    def test_required_unset_field_fails(self):
        with pytest.raises(EncodeError) as exc_info:
            encode_form(WithRequired(comment="x"))
        assert exc_info.value.field == "op"

    def test_unsupported_type_fails(self):
        with pytest.raises(EncodeError):
            encode_form(Sample(name=object()))


class TestEncodeJson:
    def test_omits_unset_and_keeps_types(self):
        body = json.loads(encode_json(Sample(name="store", ttl=0, enabled=False)))
        assert body == {"name": "store", "ttl": 0, "enabled": False}

    def test_compat_bool_and_brackets(self):
        body = to_json_dict(Sample(write_only=False, methods=["GET"]))
        assert body == {"write_only": "0", "http_methods": ["GET"]}

    def test_nested_list_of_inputs(self):
        value = WithList(items=[WithRequired(op="create", comment="c"), WithRequired(op="delete")])
        assert to_json_dict(value) == {
            "items": [{"op": "create", "comment": "c"}, {"op": "delete"}]
        }

    def test_default_factory_lists_are_independent(self):
        first, second = WithList(), WithList()
        first.items.append(WithRequired(op="create"))
        assert second.items == []

    def test_compact_output(self):
        assert encode_json(Sample(name="x")) == b'{"name":"x"}'


class TestEncodeMultipart:
    def test_path_file_is_closed_after_block(self, tmp_path):
        archive = tmp_path / "pkg.tar.gz"
        archive.write_bytes(b"archive-bytes")

        with encode_multipart(None, FilePart("package", path=archive)) as body:
            filename, stream, content_type = body.files["package"]
            assert filename == "pkg.tar.gz"
            assert stream.read() == b"archive-bytes"
            assert content_type == "application/octet-stream"
            assert body.data == {}

        assert stream.closed

    def test_path_file_is_closed_when_block_raises(self, tmp_path):
        archive = tmp_path / "pkg.tar.gz"
        archive.write_bytes(b"x")

        with pytest.raises(RuntimeError):
            with encode_multipart(None, FilePart("package", path=archive)) as body:
                stream = body.files["package"][1]
                raise RuntimeError("transmit failed")

        assert stream.closed

    def test_path_file_is_closed_when_fields_fail_to_encode(self, tmp_path, mocker):
        archive = tmp_path / "pkg.tar.gz"
        archive.write_bytes(b"x")
        real_open = open
        opened = []

        def tracking_open(*args, **kwargs):
            handle = real_open(*args, **kwargs)
            opened.append(handle)
            return handle

        mocker.patch("edgeconfig.wire.encoder.open", side_effect=tracking_open, create=True)

        with pytest.raises(EncodeError):
            with encode_multipart(WithRequired(), FilePart("package", path=archive)):
                pass

        assert opened and all(handle.closed for handle in opened)

    def test_caller_source_is_not_closed(self):
        source = io.BytesIO(b"in-memory")

        with encode_multipart(None, FilePart("package", source=source, filename="p.tgz")) as body:
            assert body.files["package"][0] == "p.tgz"

        assert not source.closed

    def test_fields_travel_as_form_data(self):
        value = Sample(name="n", methods=["GET", "PUT"])
        with encode_multipart(value, FilePart("package", source=b"raw")) as body:
            assert body.data == {"name": "n", "http_methods[]": ["GET", "PUT"]}
            assert body.files["package"][0] == "package"

    def test_missing_path_raises_os_error(self, tmp_path):
        with pytest.raises(OSError):
            with encode_multipart(None, FilePart("package", path=tmp_path / "missing.tgz")):
                pass

    def test_needs_exactly_one_source(self, tmp_path):
        with pytest.raises(EncodeError):
            with encode_multipart(None, FilePart("package")):
                pass
        with pytest.raises(EncodeError):
            with encode_multipart(None, FilePart("package", path=tmp_path / "a", source=b"b")):
                pass


def test_unset_is_falsy_singleton():
    import copy

    assert not UNSET
    assert copy.deepcopy(UNSET) is UNSET
    assert repr(UNSET) == "UNSET"
