"""Error taxonomy for API calls.

Three families, all rooted at :class:`EdgeConfigError`:

- pre-flight :class:`FieldError`, raised before any I/O when a required input
  is missing, one :class:`FieldKind` per field;
- post-flight :class:`TransportError` / :class:`HTTPError` for network
  failures and non-2xx responses, plus :class:`DecodeError` /
  :class:`EncodeError` for bodies that cannot be marshaled;
- :class:`NotAcknowledgedError` for 2xx responses whose status envelope is
  not ``ok``.
"""

import json
from enum import Enum
from http import HTTPStatus
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from edgeconfig.wire.fields import UNSET
from edgeconfig.wire.models import WireModel

JSONAPI_MEDIA_TYPE = "application/vnd.api+json"
PROBLEM_MEDIA_TYPE = "application/problem+json"


class EdgeConfigError(Exception):
    """Base class for every error raised by this package."""


class FieldKind(str, Enum):
    """Closed set of input fields that can fail pre-flight validation."""

    ACL_ID = "ACLID"
    CLIENT_KEY = "ClientKey"
    DICTIONARY_ID = "DictionaryID"
    ENTRIES = "Entries"
    ENTRY_ID = "EntryID"
    ERL_ID = "ERLID"
    ID = "ID"
    IP = "IP"
    KEY = "Key"
    KIND = "Kind"
    NAME = "Name"
    NEW_NAME = "NewName"
    PACKAGE = "Package"
    SERVICE_ID = "ServiceID"
    SERVICE_VERSION = "ServiceVersion"
    STORE_ID = "StoreID"
    OPTIONAL_FIELDS = "Name, Comment"


class FieldError(EdgeConfigError, ValueError):
    """A required input field is missing or invalid.

    Compared by kind and message, never by identity, so callers can write
    ``exc.kind is FieldKind.SERVICE_ID`` or ``exc == FieldError(FieldKind.NAME)``.
    """

    def __init__(self, kind: FieldKind, message: str | None = None) -> None:
        self.kind = kind
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.message:
            return f"problem with field '{self.kind.value}': {self.message}"
        return f"missing required field '{self.kind.value}'"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldError):
            return NotImplemented
        return (self.kind, self.message) == (other.kind, other.message)

    def __hash__(self) -> int:
        return hash((self.kind, self.message))


def is_missing(value: Any) -> bool:
    """Return True for the "not provided" values of required identifiers."""
    if value is None or value is UNSET:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, (str, bytes, list, tuple, dict, set)):
        return len(value) == 0
    if isinstance(value, int):
        return value == 0
    return False


def require(*checks: tuple[Any, FieldKind]) -> None:
    """Validate required fields in the given order.

    Raises the :class:`FieldError` of the first missing field; later checks
    are not inspected.
    """
    for value, kind in checks:
        if is_missing(value):
            raise FieldError(kind)


class EncodeError(EdgeConfigError, TypeError):
    """An input field could not be serialized."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(f"cannot encode field '{field}': {message}")


class DecodeError(EdgeConfigError):
    """A response body could not be decoded into its target type."""

    def __init__(self, field: str | None, message: str, *, target: str | None = None) -> None:
        self.field = field
        self.message = message
        self.target = target
        where = f" field '{field}'" if field else ""
        into = f" into {target}" if target else ""
        super().__init__(f"cannot decode{where}{into}: {message}")


class TransportError(EdgeConfigError):
    """The HTTP round trip failed.

    ``status_code`` is None when no response was received at all.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ErrorObject(WireModel):
    """A single error entry of a failed response."""

    code: str | None = None
    detail: str | None = None
    id: str | None = None
    meta: dict[str, Any] | None = None
    status: str | None = None
    title: str | None = None


class _JsonApiErrors(WireModel):
    errors: list[ErrorObject] = []


class _ProblemDetail(WireModel):
    detail: str | None = None
    status: int | None = None
    title: str | None = None
    type: str | None = None


class _LegacyError(WireModel):
    detail: str | None = None
    msg: str | None = None


class HTTPError(TransportError):
    """A non-2xx response.

    The raw status code is kept so a resource module can remap specific codes
    (for example 409) into its own error one layer up.
    """

    def __init__(self, status_code: int, errors: list[ErrorObject] | None = None) -> None:
        self.errors = list(errors or [])
        super().__init__(self._format(status_code, self.errors), status_code=status_code)

    @classmethod
    def from_response(cls, response: httpx.Response) -> "HTTPError":
        return cls(response.status_code, _decode_error_body(response))

    @property
    def message(self) -> str | None:
        """Best-effort one-line message from the first decoded error."""
        for error in self.errors:
            parts = [p for p in (error.title, error.detail) if p]
            if parts:
                return ": ".join(parts)
        return None

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @staticmethod
    def _format(status_code: int, errors: list[ErrorObject]) -> str:
        try:
            phrase = HTTPStatus(status_code).phrase
        except ValueError:
            phrase = ""
        lines = [f"{status_code} - {phrase}:"]
        for error in errors:
            lines.append("")
            for label, value in (
                ("ID", error.id),
                ("Title", error.title),
                ("Detail", error.detail),
                ("Code", error.code),
                ("Meta", error.meta),
            ):
                if value:
                    lines.append(f"    {label + ':':<7} {value}")
        return "\n".join(lines)


def _decode_error_body(response: httpx.Response) -> list[ErrorObject]:
    raw = response.content
    if not raw:
        return []

    content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
    try:
        payload = json.loads(raw)
        if content_type == JSONAPI_MEDIA_TYPE:
            return _JsonApiErrors.model_validate(payload).errors
        if content_type == PROBLEM_MEDIA_TYPE:
            problem = _ProblemDetail.model_validate(payload)
            return [
                ErrorObject(
                    title=problem.title,
                    detail=problem.detail,
                    status=str(problem.status) if problem.status is not None else None,
                )
            ]
        legacy = _LegacyError.model_validate(payload)
    except (ValueError, PydanticValidationError):
        # Undecodable body: keep it verbatim, it often says e.g. "Bad Gateway".
        return [ErrorObject(title="Undefined error", detail=response.text)]

    if legacy.msg is None and legacy.detail is None:
        return []
    return [ErrorObject(title=legacy.msg, detail=legacy.detail)]


class NotAcknowledgedError(EdgeConfigError):
    """A 2xx response whose status envelope does not say ``ok``."""

    def __init__(self, status: str | None, message: str | None = None) -> None:
        self.status = status
        self.message = message
        detail = f": {message}" if message else ""
        super().__init__(f"operation not acknowledged (status {status!r}){detail}")


class ManagedLoggingEnabledError(EdgeConfigError):
    """Managed logging was already enabled for the service."""

    def __init__(self) -> None:
        super().__init__("managed logging already enabled")
