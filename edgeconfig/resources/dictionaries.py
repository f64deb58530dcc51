"""Edge dictionaries attached to a service version."""

from dataclasses import dataclass

from pydantic import Field

from edgeconfig.errors import FieldKind, require
from edgeconfig.http_client.client import ApiClient
from edgeconfig.utils.paths import to_safe_url
from edgeconfig.wire.decoder import decode, decode_list
from edgeconfig.wire.fields import Codec, Opt, wire_field
from edgeconfig.wire.models import Timestamp, WireModel


class Dictionary(WireModel):
    created_at: Timestamp = None
    deleted_at: Timestamp = None
    id: str | None = None
    name: str | None = None
    service_id: str | None = None
    service_version: int | None = Field(None, alias="version")
    updated_at: Timestamp = None
    write_only: bool | None = None


def _path(service_id: str, service_version: int, *rest: str) -> str:
    return to_safe_url("service", service_id, "version", service_version, "dictionary", *rest)


def _require_version(service_id: str, service_version: int) -> None:
    require(
        (service_id, FieldKind.SERVICE_ID),
        (service_version, FieldKind.SERVICE_VERSION),
    )


@dataclass
class ListDictionariesInput:
    service_id: str = ""
    service_version: int = 0


def list_dictionaries(client: ApiClient, params: ListDictionariesInput) -> list[Dictionary]:
    _require_version(params.service_id, params.service_version)
    response = client.get(_path(params.service_id, params.service_version))
    return sorted(decode_list(response.content, Dictionary), key=lambda d: d.name or "")


@dataclass
class CreateDictionaryInput:
    service_id: str = ""
    service_version: int = 0
    name: Opt[str] = wire_field("name")
    write_only: Opt[bool] = wire_field("write_only", codec=Codec.COMPAT_BOOL)


def create_dictionary(client: ApiClient, params: CreateDictionaryInput) -> Dictionary:
    _require_version(params.service_id, params.service_version)
    response = client.post_form(_path(params.service_id, params.service_version), params)
    return decode(response.content, Dictionary)


@dataclass
class GetDictionaryInput:
    service_id: str = ""
    service_version: int = 0
    name: str = ""


def get_dictionary(client: ApiClient, params: GetDictionaryInput) -> Dictionary:
    _require_version(params.service_id, params.service_version)
    require((params.name, FieldKind.NAME))
    response = client.get(_path(params.service_id, params.service_version, params.name))
    return decode(response.content, Dictionary)


@dataclass
class UpdateDictionaryInput:
    service_id: str = ""
    service_version: int = 0
    name: str = ""
    new_name: Opt[str] = wire_field("name")
    write_only: Opt[bool] = wire_field("write_only", codec=Codec.COMPAT_BOOL)


def update_dictionary(client: ApiClient, params: UpdateDictionaryInput) -> Dictionary:
    _require_version(params.service_id, params.service_version)
    require((params.name, FieldKind.NAME))
    response = client.put_form(
        _path(params.service_id, params.service_version, params.name), params
    )
    return decode(response.content, Dictionary)


@dataclass
class DeleteDictionaryInput:
    service_id: str = ""
    service_version: int = 0
    name: str = ""


def delete_dictionary(client: ApiClient, params: DeleteDictionaryInput) -> None:
    """Delete a dictionary.

    This endpoint answers a bare 200 without a status envelope, so success is
    the 2xx alone.
    """
    _require_version(params.service_id, params.service_version)
    require((params.name, FieldKind.NAME))
    client.delete(_path(params.service_id, params.service_version, params.name))
