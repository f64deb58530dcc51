"""Cache settings of a service version."""

from dataclasses import dataclass
from enum import Enum

from pydantic import Field

from edgeconfig.core.logging import get_logger
from edgeconfig.errors import FieldKind, require
from edgeconfig.http_client.client import ApiClient, check_status_envelope
from edgeconfig.utils.paths import to_safe_url
from edgeconfig.wire.decoder import decode, decode_list
from edgeconfig.wire.fields import Opt, wire_field
from edgeconfig.wire.models import Timestamp, WireModel

logger = get_logger(__name__)


class CacheSettingAction(str, Enum):
    CACHE = "cache"
    PASS = "pass"
    RESTART = "restart"


class CacheSetting(WireModel):
    # Plain str so actions added server-side still decode.
    action: str | None = None
    cache_condition: str | None = None
    created_at: Timestamp = None
    deleted_at: Timestamp = None
    name: str | None = None
    service_id: str | None = None
    service_version: int | None = Field(None, alias="version")
    stale_ttl: int | None = None
    ttl: int | None = None
    updated_at: Timestamp = None


def by_name(setting: CacheSetting) -> str:
    return setting.name or ""


def _collection(service_id: str, service_version: int) -> str:
    return to_safe_url("service", service_id, "version", service_version, "cache_settings")


def _member(service_id: str, service_version: int, name: str) -> str:
    return to_safe_url("service", service_id, "version", service_version, "cache_settings", name)


@dataclass
class ListCacheSettingsInput:
    service_id: str = ""
    service_version: int = 0


def list_cache_settings(client: ApiClient, params: ListCacheSettingsInput) -> list[CacheSetting]:
    """List the cache settings of a version, sorted by name."""
    require(
        (params.service_id, FieldKind.SERVICE_ID),
        (params.service_version, FieldKind.SERVICE_VERSION),
    )
    response = client.get(_collection(params.service_id, params.service_version))
    return sorted(decode_list(response.content, CacheSetting), key=by_name)


@dataclass
class CreateCacheSettingInput:
    service_id: str = ""
    service_version: int = 0
    action: Opt[CacheSettingAction] = wire_field("action")
    cache_condition: Opt[str] = wire_field("cache_condition")
    name: Opt[str] = wire_field("name")
    stale_ttl: Opt[int] = wire_field("stale_ttl")
    ttl: Opt[int] = wire_field("ttl")


def create_cache_setting(client: ApiClient, params: CreateCacheSettingInput) -> CacheSetting:
    require(
        (params.service_id, FieldKind.SERVICE_ID),
        (params.service_version, FieldKind.SERVICE_VERSION),
    )
    response = client.post_form(_collection(params.service_id, params.service_version), params)
    return decode(response.content, CacheSetting)


@dataclass
class GetCacheSettingInput:
    service_id: str = ""
    service_version: int = 0
    name: str = ""


def get_cache_setting(client: ApiClient, params: GetCacheSettingInput) -> CacheSetting:
    require(
        (params.service_id, FieldKind.SERVICE_ID),
        (params.service_version, FieldKind.SERVICE_VERSION),
        (params.name, FieldKind.NAME),
    )
    response = client.get(_member(params.service_id, params.service_version, params.name))
    return decode(response.content, CacheSetting)


@dataclass
class UpdateCacheSettingInput:
    service_id: str = ""
    service_version: int = 0
    # Current name; the path identifier.
    name: str = ""
    action: Opt[CacheSettingAction] = wire_field("action")
    cache_condition: Opt[str] = wire_field("cache_condition")
    new_name: Opt[str] = wire_field("name")
    stale_ttl: Opt[int] = wire_field("stale_ttl")
    ttl: Opt[int] = wire_field("ttl")


def update_cache_setting(client: ApiClient, params: UpdateCacheSettingInput) -> CacheSetting:
    require(
        (params.service_id, FieldKind.SERVICE_ID),
        (params.service_version, FieldKind.SERVICE_VERSION),
        (params.name, FieldKind.NAME),
    )
    response = client.put_form(
        _member(params.service_id, params.service_version, params.name), params
    )
    return decode(response.content, CacheSetting)


@dataclass
class DeleteCacheSettingInput:
    service_id: str = ""
    service_version: int = 0
    name: str = ""


def delete_cache_setting(client: ApiClient, params: DeleteCacheSettingInput) -> None:
    require(
        (params.service_id, FieldKind.SERVICE_ID),
        (params.service_version, FieldKind.SERVICE_VERSION),
        (params.name, FieldKind.NAME),
    )
    response = client.delete(_member(params.service_id, params.service_version, params.name))
    check_status_envelope(response)
    logger.info("Deleted cache setting %s", params.name, extra={"operation": "delete_cache_setting"})
