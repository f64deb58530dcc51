"""Entries of an access control list."""

from dataclasses import dataclass
from enum import Enum

from pydantic import Field

from edgeconfig.errors import FieldError, FieldKind, require
from edgeconfig.http_client.client import ApiClient, check_status_envelope
from edgeconfig.http_client.options import RequestOptions
from edgeconfig.utils.paths import to_safe_url
from edgeconfig.wire.decoder import decode, decode_list
from edgeconfig.wire.fields import Codec, Opt, wire_field
from edgeconfig.wire.models import Timestamp, WireModel

# Upper bound on operations in one batch request.
BATCH_MODIFY_MAXIMUM_OPERATIONS = 1000
BATCH_MODIFY_MAX_EXCEEDED = "batch modify maximum operations exceeded"


class ACLEntry(WireModel):
    acl_id: str | None = None
    comment: str | None = None
    created_at: Timestamp = None
    deleted_at: Timestamp = None
    entry_id: str | None = Field(None, alias="id")
    ip: str | None = None
    negated: bool | None = None
    service_id: str | None = None
    subnet: int | None = None
    updated_at: Timestamp = None


class BatchOperation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    UPSERT = "upsert"
    DELETE = "delete"


def _entries_path(service_id: str, acl_id: str) -> str:
    return to_safe_url("service", service_id, "acl", acl_id, "entries")


def _entry_path(service_id: str, acl_id: str, entry_id: str) -> str:
    return to_safe_url("service", service_id, "acl", acl_id, "entry", entry_id)


@dataclass
class ListACLEntriesInput:
    service_id: str = ""
    acl_id: str = ""
    sort: str | None = None
    direction: str | None = None
    page: int | None = None
    per_page: int | None = None


def list_acl_entries(client: ApiClient, params: ListACLEntriesInput) -> list[ACLEntry]:
    """Fetch one page of entries, in the order the API returns them."""
    require(
        (params.acl_id, FieldKind.ACL_ID),
        (params.service_id, FieldKind.SERVICE_ID),
    )
    options = RequestOptions.create().with_params(
        sort=params.sort,
        direction=params.direction,
        page=params.page,
        per_page=params.per_page,
    )
    response = client.get(_entries_path(params.service_id, params.acl_id), options)
    return decode_list(response.content, ACLEntry)


@dataclass
class GetACLEntryInput:
    service_id: str = ""
    acl_id: str = ""
    entry_id: str = ""


def get_acl_entry(client: ApiClient, params: GetACLEntryInput) -> ACLEntry:
    require(
        (params.acl_id, FieldKind.ACL_ID),
        (params.entry_id, FieldKind.ID),
        (params.service_id, FieldKind.SERVICE_ID),
    )
    response = client.get(_entry_path(params.service_id, params.acl_id, params.entry_id))
    return decode(response.content, ACLEntry)


@dataclass
class CreateACLEntryInput:
    service_id: str = ""
    acl_id: str = ""
    comment: Opt[str] = wire_field("comment")
    ip: Opt[str] = wire_field("ip")
    negated: Opt[bool] = wire_field("negated", codec=Codec.COMPAT_BOOL)
    subnet: Opt[int] = wire_field("subnet")


def create_acl_entry(client: ApiClient, params: CreateACLEntryInput) -> ACLEntry:
    require(
        (params.acl_id, FieldKind.ACL_ID),
        (params.service_id, FieldKind.SERVICE_ID),
    )
    response = client.post_form(
        to_safe_url("service", params.service_id, "acl", params.acl_id, "entry"), params
    )
    return decode(response.content, ACLEntry)


@dataclass
class UpdateACLEntryInput:
    service_id: str = ""
    acl_id: str = ""
    entry_id: str = ""
    comment: Opt[str] = wire_field("comment")
    ip: Opt[str] = wire_field("ip")
    negated: Opt[bool] = wire_field("negated", codec=Codec.COMPAT_BOOL)
    subnet: Opt[int] = wire_field("subnet")


def update_acl_entry(client: ApiClient, params: UpdateACLEntryInput) -> ACLEntry:
    require(
        (params.acl_id, FieldKind.ACL_ID),
        (params.entry_id, FieldKind.ID),
        (params.service_id, FieldKind.SERVICE_ID),
    )
    response = client.patch_form(
        _entry_path(params.service_id, params.acl_id, params.entry_id), params
    )
    return decode(response.content, ACLEntry)


@dataclass
class DeleteACLEntryInput:
    service_id: str = ""
    acl_id: str = ""
    entry_id: str = ""


def delete_acl_entry(client: ApiClient, params: DeleteACLEntryInput) -> None:
    require(
        (params.acl_id, FieldKind.ACL_ID),
        (params.entry_id, FieldKind.ENTRY_ID),
        (params.service_id, FieldKind.SERVICE_ID),
    )
    response = client.delete(_entry_path(params.service_id, params.acl_id, params.entry_id))
    check_status_envelope(response)


@dataclass
class BatchACLEntry:
    operation: Opt[BatchOperation] = wire_field("op", required=True)
    comment: Opt[str] = wire_field("comment")
    entry_id: Opt[str] = wire_field("id")
    ip: Opt[str] = wire_field("ip")
    negated: Opt[bool] = wire_field("negated", codec=Codec.COMPAT_BOOL)
    subnet: Opt[int] = wire_field("subnet")


@dataclass
class BatchModifyACLEntriesInput:
    service_id: str = ""
    acl_id: str = ""
    entries: list[BatchACLEntry] = wire_field("entries", default_factory=list)


def batch_modify_acl_entries(client: ApiClient, params: BatchModifyACLEntriesInput) -> None:
    """Apply up to ``BATCH_MODIFY_MAXIMUM_OPERATIONS`` entry operations in one PATCH."""
    require(
        (params.acl_id, FieldKind.ACL_ID),
        (params.service_id, FieldKind.SERVICE_ID),
    )
    if len(params.entries) > BATCH_MODIFY_MAXIMUM_OPERATIONS:
        raise FieldError(FieldKind.ENTRIES, BATCH_MODIFY_MAX_EXCEEDED)
    response = client.patch_json(_entries_path(params.service_id, params.acl_id), params)
    check_status_envelope(response)
