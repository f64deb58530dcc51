"""KV stores and their keys.

Stores live in a flat account-wide collection under ``/resources/stores/kv``
rather than under a service version. Both the store listing and the key
listing are cursor-paginated.
"""

from dataclasses import dataclass
from enum import Enum

import httpx
from pydantic import Field

from edgeconfig.core.logging import get_logger
from edgeconfig.errors import FieldKind, HTTPError, require
from edgeconfig.http_client.client import ApiClient
from edgeconfig.http_client.options import RequestOptions
from edgeconfig.pagination import CursorPaginator
from edgeconfig.utils.paths import to_safe_url
from edgeconfig.wire.decoder import decode
from edgeconfig.wire.fields import Opt, wire_field
from edgeconfig.wire.models import Timestamp, WireModel

logger = get_logger(__name__)

STORES_PATH = to_safe_url("resources", "stores", "kv")


class KVStore(WireModel):
    created_at: Timestamp = None
    name: str | None = None
    store_id: str | None = Field(None, alias="id")
    updated_at: Timestamp = None


class Consistency(str, Enum):
    EVENTUAL = "eventual"
    STRONG = "strong"


def _store_path(store_id: str, *rest: str) -> str:
    return to_safe_url("resources", "stores", "kv", store_id, *rest)


def _expect_no_content(response: httpx.Response) -> None:
    # Deletes answer 204; any other 2xx means the request was not applied as asked.
    if response.status_code != httpx.codes.NO_CONTENT:
        raise HTTPError.from_response(response)


@dataclass
class CreateKVStoreInput:
    name: Opt[str] = wire_field("name", required=True)
    # Sent as a query parameter, never in the body.
    location: str | None = None


def create_kv_store(client: ApiClient, params: CreateKVStoreInput) -> KVStore:
    require((params.name, FieldKind.NAME))
    options = RequestOptions.create().with_params(location=params.location or None)
    response = client.post_json(STORES_PATH, params, options)
    return decode(response.content, KVStore)


@dataclass
class ListKVStoresInput:
    limit: int | None = None
    name: str | None = None


def list_kv_stores(client: ApiClient, params: ListKVStoresInput | None = None) -> CursorPaginator[KVStore]:
    """Paginator over every store of the account."""
    params = params or ListKVStoresInput()
    filters = {"name": params.name} if params.name else None
    return CursorPaginator(client, STORES_PATH, KVStore, limit=params.limit, params=filters)


@dataclass
class GetKVStoreInput:
    store_id: str = ""


def get_kv_store(client: ApiClient, params: GetKVStoreInput) -> KVStore:
    require((params.store_id, FieldKind.STORE_ID))
    response = client.get(_store_path(params.store_id))
    return decode(response.content, KVStore)


@dataclass
class DeleteKVStoreInput:
    store_id: str = ""


def delete_kv_store(client: ApiClient, params: DeleteKVStoreInput) -> None:
    require((params.store_id, FieldKind.STORE_ID))
    _expect_no_content(client.delete(_store_path(params.store_id)))


@dataclass
class ListKVStoreKeysInput:
    store_id: str = ""
    consistency: Consistency = Consistency.STRONG
    limit: int | None = None
    prefix: str | None = None


def list_kv_store_keys(client: ApiClient, params: ListKVStoreKeysInput) -> CursorPaginator[str]:
    """Paginator over the key names of one store."""
    require((params.store_id, FieldKind.STORE_ID))
    filters = {"consistency": params.consistency.value}
    if params.prefix:
        filters["prefix"] = params.prefix
    return CursorPaginator(
        client, _store_path(params.store_id, "keys"), str, limit=params.limit, params=filters
    )


@dataclass
class GetKVStoreKeyInput:
    store_id: str = ""
    key: str = ""


def get_kv_store_key(client: ApiClient, params: GetKVStoreKeyInput) -> str:
    """Return the raw value stored under a key."""
    require(
        (params.store_id, FieldKind.STORE_ID),
        (params.key, FieldKind.KEY),
    )
    response = client.get(_store_path(params.store_id, "keys", params.key))
    return response.text


@dataclass
class InsertKVStoreKeyInput:
    store_id: str = ""
    key: str = ""
    value: bytes | str = b""
    add: bool = False
    append: bool = False
    prepend: bool = False
    background_fetch: bool = False
    if_generation_match: int | None = None
    metadata: str | None = None
    time_to_live_sec: int | None = None


def insert_kv_store_key(client: ApiClient, params: InsertKVStoreKeyInput) -> None:
    require(
        (params.store_id, FieldKind.STORE_ID),
        (params.key, FieldKind.KEY),
    )
    options = RequestOptions.create()
    for flag in ("add", "append", "prepend", "background_fetch"):
        if getattr(params, flag):
            options.params[flag] = "true"
    if params.if_generation_match:
        options.headers["if-generation-match"] = str(params.if_generation_match)
    if params.metadata is not None:
        options.headers["metadata"] = params.metadata
    if params.time_to_live_sec:
        options.headers["time_to_live_sec"] = str(params.time_to_live_sec)
    value = params.value
    options.body = value.encode("utf-8") if isinstance(value, str) else value

    client.put(_store_path(params.store_id, "keys", params.key), options)
    logger.debug("Inserted key %s into store %s", params.key, params.store_id)


@dataclass
class DeleteKVStoreKeyInput:
    store_id: str = ""
    key: str = ""
    force: bool = False
    if_generation_match: int | None = None


def delete_kv_store_key(client: ApiClient, params: DeleteKVStoreKeyInput) -> None:
    require(
        (params.store_id, FieldKind.STORE_ID),
        (params.key, FieldKind.KEY),
    )
    options = RequestOptions.create()
    if params.force:
        options.params["force"] = "true"
    if params.if_generation_match:
        options.headers["if-generation-match"] = str(params.if_generation_match)
    _expect_no_content(client.delete(_store_path(params.store_id, "keys", params.key), options))
