"""Tests for KV store operations."""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from edgeconfig.errors import FieldError, FieldKind, HTTPError
from edgeconfig.pagination import PaginatorState
from edgeconfig.resources.kv_stores import (
    Consistency,
    CreateKVStoreInput,
    DeleteKVStoreInput,
    DeleteKVStoreKeyInput,
    GetKVStoreInput,
    GetKVStoreKeyInput,
    InsertKVStoreKeyInput,
    ListKVStoreKeysInput,
    ListKVStoresInput,
    create_kv_store,
    delete_kv_store,
    delete_kv_store_key,
    get_kv_store,
    get_kv_store_key,
    insert_kv_store_key,
    list_kv_store_keys,
    list_kv_stores,
)


def query(request):
    return parse_qs(request.url.query.decode())


class TestStores:
    def test_create_sends_json_and_location(self, api_client, handler, respond):
        handler.queue(respond(200, {"id": "st1", "name": "config", "created_at": "2024-02-03T04:05:06Z"}))

        store = create_kv_store(api_client, CreateKVStoreInput(name="config", location="US"))

        request = handler.last
        assert request.method == "POST"
        assert request.url.path == "/resources/stores/kv"
        assert query(request) == {"location": ["US"]}
        assert json.loads(request.content) == {"name": "config"}
        assert store.store_id == "st1"

    def test_create_without_location(self, api_client, handler, respond):
        handler.queue(respond(200, {"id": "st1", "name": "config"}))

        create_kv_store(api_client, CreateKVStoreInput(name="config"))

        assert handler.last.url.query == b""

    def test_create_requires_name(self, api_client, handler):
        with pytest.raises(FieldError) as exc_info:
            create_kv_store(api_client, CreateKVStoreInput())
        assert exc_info.value.kind is FieldKind.NAME
        assert handler.requests == []

    def test_list_stores_paginates(self, api_client, handler, respond):
        handler.queue(
            respond(200, {"data": [{"id": "a", "name": "one"}], "meta": {"next_cursor": "n1", "limit": "1"}}),
            respond(200, {"data": [{"id": "b", "name": "two"}], "meta": {"limit": "1"}}),
        )

        paginator = list_kv_stores(api_client, ListKVStoresInput(limit=1))
        stores = paginator.collect()

        assert [s.store_id for s in stores] == ["a", "b"]
        assert query(handler.requests[1]) == {"cursor": ["n1"], "limit": ["1"]}
        assert paginator.state is PaginatorState.EXHAUSTED

    def test_get_and_delete(self, api_client, handler, respond):
        handler.queue(respond(200, {"id": "st 1", "name": "config"}), httpx.Response(204))

        get_kv_store(api_client, GetKVStoreInput(store_id="st 1"))
        assert handler.last.url.raw_path == b"/resources/stores/kv/st%201"

        delete_kv_store(api_client, DeleteKVStoreInput(store_id="st 1"))
        assert handler.last.method == "DELETE"

    def test_delete_requires_no_content(self, api_client, handler, respond):
        handler.queue(respond(200, {"status": "ok"}))

        with pytest.raises(HTTPError) as exc_info:
            delete_kv_store(api_client, DeleteKVStoreInput(store_id="st1"))

        assert exc_info.value.status_code == 200

    def test_store_id_required(self, api_client):
        with pytest.raises(FieldError) as exc_info:
            get_kv_store(api_client, GetKVStoreInput())
        assert exc_info.value.kind is FieldKind.STORE_ID


class TestKeys:
    def test_list_keys_with_prefix_and_consistency(self, api_client, handler, respond):
        handler.queue(respond(200, {"data": ["app/a", "app/b"], "meta": {}}))

        paginator = list_kv_store_keys(
            api_client,
            ListKVStoreKeysInput(store_id="st1", prefix="app/", consistency=Consistency.EVENTUAL),
        )

        assert paginator.next() is True
        assert paginator.items() == ["app/a", "app/b"]
        assert handler.last.url.path == "/resources/stores/kv/st1/keys"
        assert query(handler.last) == {"consistency": ["eventual"], "prefix": ["app/"]}

    def test_list_keys_defaults_to_strong(self, api_client, handler, respond):
        handler.queue(respond(200, {"data": [], "meta": {}}))

        list_kv_store_keys(api_client, ListKVStoreKeysInput(store_id="st1")).collect()

        assert query(handler.last) == {"consistency": ["strong"]}

    def test_list_keys_requires_store(self, api_client):
        with pytest.raises(FieldError):
            list_kv_store_keys(api_client, ListKVStoreKeysInput())

    def test_get_key_returns_raw_value(self, api_client, handler):
        handler.queue(httpx.Response(200, text="hello world"))

        value = get_kv_store_key(api_client, GetKVStoreKeyInput(store_id="st1", key="greeting/en"))

        assert value == "hello world"
        assert handler.last.url.raw_path == b"/resources/stores/kv/st1/keys/greeting%2Fen"

    def test_get_key_order(self, api_client):
        with pytest.raises(FieldError) as exc_info:
            get_kv_store_key(api_client, GetKVStoreKeyInput(store_id="st1"))
        assert exc_info.value.kind is FieldKind.KEY

    def test_insert_key(self, api_client, handler):
        handler.queue(httpx.Response(200))

        insert_kv_store_key(
            api_client,
            InsertKVStoreKeyInput(
                store_id="st1",
                key="k",
                value="v1",
                append=True,
                metadata="m",
                time_to_live_sec=60,
                if_generation_match=7,
            ),
        )

        request = handler.last
        assert request.method == "PUT"
        assert request.content == b"v1"
        assert query(request) == {"append": ["true"]}
        assert request.headers["metadata"] == "m"
        assert request.headers["time_to_live_sec"] == "60"
        assert request.headers["if-generation-match"] == "7"

    def test_insert_bytes_value(self, api_client, handler):
        handler.queue(httpx.Response(200))

        insert_kv_store_key(api_client, InsertKVStoreKeyInput(store_id="st1", key="k", value=b"\x00\x01"))

        assert handler.last.content == b"\x00\x01"
        assert handler.last.url.query == b""

    def test_delete_key(self, api_client, handler):
        handler.queue(httpx.Response(204))

        delete_kv_store_key(api_client, DeleteKVStoreKeyInput(store_id="st1", key="k", force=True))

        assert query(handler.last) == {"force": ["true"]}

    def test_delete_key_unexpected_status(self, api_client, handler):
        handler.queue(httpx.Response(202))

        with pytest.raises(HTTPError):
            delete_kv_store_key(api_client, DeleteKVStoreKeyInput(store_id="st1", key="k"))
