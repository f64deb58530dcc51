"""Typed client for a CDN configuration API."""

__version__ = "0.1.0"

from edgeconfig.errors import (  # noqa: E402
    DecodeError,
    EdgeConfigError,
    EncodeError,
    FieldError,
    FieldKind,
    HTTPError,
    ManagedLoggingEnabledError,
    NotAcknowledgedError,
    TransportError,
)
from edgeconfig.http_client.client import ApiClient  # noqa: E402
from edgeconfig.http_client.options import RequestOptions  # noqa: E402
from edgeconfig.pagination import Cursor, CursorPaginator, PaginatorState  # noqa: E402
from edgeconfig.utils.paths import to_safe_url  # noqa: E402
from edgeconfig.wire.fields import UNSET, Codec, Opt, wire_field  # noqa: E402

__all__ = [
    "UNSET",
    "ApiClient",
    "Codec",
    "Cursor",
    "CursorPaginator",
    "DecodeError",
    "EdgeConfigError",
    "EncodeError",
    "FieldError",
    "FieldKind",
    "HTTPError",
    "ManagedLoggingEnabledError",
    "NotAcknowledgedError",
    "Opt",
    "PaginatorState",
    "RequestOptions",
    "TransportError",
    "to_safe_url",
    "wire_field",
]
