"""Tests for pre-flight validation and HTTP error classification."""

import json

import httpx
import pytest

from edgeconfig.errors import (
    JSONAPI_MEDIA_TYPE,
    PROBLEM_MEDIA_TYPE,
    EdgeConfigError,
    FieldError,
    FieldKind,
    HTTPError,
    NotAcknowledgedError,
    TransportError,
    is_missing,
    require,
)
from edgeconfig.wire.fields import UNSET


class TestRequire:
    def test_first_missing_field_wins(self):
        with pytest.raises(FieldError) as exc_info:
            require(
                ("", FieldKind.SERVICE_ID),
                (0, FieldKind.SERVICE_VERSION),
                ("", FieldKind.NAME),
            )
        assert exc_info.value.kind is FieldKind.SERVICE_ID

    def test_order_is_service_id_version_then_name(self):
        with pytest.raises(FieldError) as exc_info:
            require(
                ("svc", FieldKind.SERVICE_ID),
                (0, FieldKind.SERVICE_VERSION),
                ("", FieldKind.NAME),
            )
        assert exc_info.value.kind is FieldKind.SERVICE_VERSION

        with pytest.raises(FieldError) as exc_info:
            require(
                ("svc", FieldKind.SERVICE_ID),
                (1, FieldKind.SERVICE_VERSION),
                ("", FieldKind.NAME),
            )
        assert exc_info.value.kind is FieldKind.NAME

    def test_all_present_passes(self):
        require(("svc", FieldKind.SERVICE_ID), (1, FieldKind.SERVICE_VERSION))

    @pytest.mark.parametrize("value", [None, UNSET, "", 0, [], {}, b""])
    def test_missing_values(self, value):
        assert is_missing(value)

    @pytest.mark.parametrize("value", ["x", 1, -1, False, True, ["a"], 0.0])
    def test_present_values(self, value):
        assert not is_missing(value)


class TestFieldError:
    def test_equality_by_kind_and_message(self):
        assert FieldError(FieldKind.NAME) == FieldError(FieldKind.NAME)
        assert FieldError(FieldKind.NAME) != FieldError(FieldKind.SERVICE_ID)
        assert FieldError(FieldKind.ENTRIES, "too many") != FieldError(FieldKind.ENTRIES)
        assert len({FieldError(FieldKind.NAME), FieldError(FieldKind.NAME)}) == 1

    def test_messages(self):
        assert str(FieldError(FieldKind.SERVICE_ID)) == "missing required field 'ServiceID'"
        assert str(FieldError(FieldKind.ENTRIES, "too many")) == "problem with field 'Entries': too many"

    def test_is_value_error(self):
        assert isinstance(FieldError(FieldKind.NAME), ValueError)
        assert isinstance(FieldError(FieldKind.NAME), EdgeConfigError)


def make_response(status_code: int, content: bytes, content_type: str = "application/json"):
    return httpx.Response(
        status_code,
        content=content,
        headers={"Content-Type": content_type},
        request=httpx.Request("GET", "https://api.test.invalid/service/x"),
    )


class TestHTTPError:
    def test_jsonapi_errors(self):
        payload = {
            "errors": [
                {"id": "e1", "title": "Bad", "detail": "first", "status": "400"},
                {"title": "Worse", "detail": "second", "code": "bad_thing"},
            ]
        }
        error = HTTPError.from_response(
            make_response(400, json.dumps(payload).encode(), JSONAPI_MEDIA_TYPE)
        )
        assert error.status_code == 400
        assert [e.detail for e in error.errors] == ["first", "second"]
        assert error.errors[1].code == "bad_thing"
        assert error.message == "Bad: first"

    def test_problem_detail(self):
        payload = {"title": "Conflict", "detail": "already there", "status": 409}
        error = HTTPError.from_response(
            make_response(409, json.dumps(payload).encode(), PROBLEM_MEDIA_TYPE + "; charset=utf-8")
        )
        assert error.status_code == 409
        assert error.errors[0].title == "Conflict"
        assert error.errors[0].status == "409"

    def test_legacy_msg_detail(self):
        error = HTTPError.from_response(
            make_response(400, b'{"msg": "Bad request", "detail": "Name is required"}')
        )
        assert error.errors[0].title == "Bad request"
        assert error.errors[0].detail == "Name is required"
        assert "400 - Bad Request:" in str(error)
        assert "Name is required" in str(error)

    def test_undecodable_body_is_kept_verbatim(self):
        error = HTTPError.from_response(make_response(502, b"Bad Gateway", "text/html"))
        assert error.errors[0].title == "Undefined error"
        assert error.errors[0].detail == "Bad Gateway"

    def test_empty_body_has_no_errors(self):
        error = HTTPError.from_response(make_response(500, b""))
        assert error.errors == []
        assert error.message is None

    def test_not_found(self):
        error = HTTPError.from_response(make_response(404, b'{"msg": "Record not found"}'))
        assert error.is_not_found
        assert isinstance(error, TransportError)
        assert str(error).startswith("404 - Not Found:")

    def test_unknown_status_code(self):
        error = HTTPError(599)
        assert str(error).startswith("599 - :")


def test_not_acknowledged_message():
    error = NotAcknowledgedError("error", "cannot delete")
    assert error.status == "error"
    assert "cannot delete" in str(error)
