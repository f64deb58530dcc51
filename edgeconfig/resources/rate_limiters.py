"""Edge rate limiters.

Listing and creation are scoped to a service version; a limiter is then
addressed by id alone under ``/rate-limiters/{id}``.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum

from pydantic import Field

from edgeconfig.errors import FieldKind, require
from edgeconfig.http_client.client import ApiClient, check_status_envelope
from edgeconfig.utils.paths import to_safe_url
from edgeconfig.wire.decoder import decode, decode_list
from edgeconfig.wire.fields import Codec, Opt, wire_field
from edgeconfig.wire.models import Timestamp, WireModel


class ERLAction(str, Enum):
    LOG_ONLY = "log_only"
    RESPONSE = "response"
    RESPONSE_OBJECT = "response_object"


class ERLWindowSize(IntEnum):
    ONE_SECOND = 1
    TEN_SECONDS = 10
    ONE_MINUTE = 60


class ERLResponse(WireModel):
    content: str | None = None
    content_type: str | None = None
    status: int | None = None


class ERL(WireModel):
    # Plain str and int: the server may add actions or window sizes.
    action: str | None = None
    client_key: list[str] | None = None
    created_at: Timestamp = None
    deleted_at: Timestamp = None
    feature_revision: int | None = None
    http_methods: list[str] | None = None
    id: str | None = None
    # Logging endpoint kind, e.g. "syslog" or "s3".
    logger_type: str | None = None
    name: str | None = None
    penalty_box_duration: int | None = None
    response: ERLResponse | None = None
    response_object_name: str | None = None
    rps_limit: int | None = None
    service_id: str | None = None
    service_version: int | None = Field(None, alias="version")
    updated_at: Timestamp = None
    uri_dictionary_name: str | None = None
    window_size: int | None = None


@dataclass
class ERLResponseInput:
    """Synthetic response served while a client sits in the penalty box."""

    content: Opt[str] = wire_field("content")
    content_type: Opt[str] = wire_field("content_type")
    status: Opt[int] = wire_field("status")


def _version_path(service_id: str, service_version: int) -> str:
    return to_safe_url("service", service_id, "version", service_version, "rate-limiters")


@dataclass
class ListERLsInput:
    service_id: str = ""
    service_version: int = 0


def list_erls(client: ApiClient, params: ListERLsInput) -> list[ERL]:
    require(
        (params.service_id, FieldKind.SERVICE_ID),
        (params.service_version, FieldKind.SERVICE_VERSION),
    )
    response = client.get(_version_path(params.service_id, params.service_version))
    return sorted(decode_list(response.content, ERL), key=lambda erl: erl.name or "")


@dataclass
class CreateERLInput:
    service_id: str = ""
    service_version: int = 0
    action: Opt[ERLAction] = wire_field("action", required=True)
    client_key: Opt[list[str]] = wire_field("client_key", codec=Codec.BRACKETS, required=True)
    http_methods: Opt[list[str]] = wire_field("http_methods", codec=Codec.BRACKETS, required=True)
    name: Opt[str] = wire_field("name", required=True)
    penalty_box_duration: Opt[int] = wire_field("penalty_box_duration", required=True)
    response: Opt[ERLResponseInput] = wire_field("response")
    rps_limit: Opt[int] = wire_field("rps_limit", required=True)
    window_size: Opt[ERLWindowSize] = wire_field("window_size", required=True)


def create_erl(client: ApiClient, params: CreateERLInput) -> ERL:
    require(
        (params.service_id, FieldKind.SERVICE_ID),
        (params.service_version, FieldKind.SERVICE_VERSION),
    )
    response = client.post_form(_version_path(params.service_id, params.service_version), params)
    return decode(response.content, ERL)


@dataclass
class GetERLInput:
    erl_id: str = ""


def get_erl(client: ApiClient, params: GetERLInput) -> ERL:
    require((params.erl_id, FieldKind.ERL_ID))
    response = client.get(to_safe_url("rate-limiters", params.erl_id))
    return decode(response.content, ERL)


@dataclass
class UpdateERLInput:
    # Also sent in the body as ``id``.
    erl_id: Opt[str] = wire_field("id", required=True)
    action: Opt[ERLAction] = wire_field("action")
    client_key: Opt[list[str]] = wire_field("client_key", codec=Codec.BRACKETS)
    http_methods: Opt[list[str]] = wire_field("http_methods", codec=Codec.BRACKETS)
    name: Opt[str] = wire_field("name")
    penalty_box_duration: Opt[int] = wire_field("penalty_box_duration")
    response: Opt[ERLResponseInput] = wire_field("response")
    rps_limit: Opt[int] = wire_field("rps_limit")
    window_size: Opt[ERLWindowSize] = wire_field("window_size")


def update_erl(client: ApiClient, params: UpdateERLInput) -> ERL:
    require((params.erl_id, FieldKind.ERL_ID))
    response = client.put_form(to_safe_url("rate-limiters", params.erl_id), params)
    return decode(response.content, ERL)


@dataclass
class DeleteERLInput:
    erl_id: str = ""


def delete_erl(client: ApiClient, params: DeleteERLInput) -> None:
    require((params.erl_id, FieldKind.ERL_ID))
    response = client.delete(to_safe_url("rate-limiters", params.erl_id))
    check_status_envelope(response)
