"""Cursor-based pagination for listing endpoints.

Listing responses look like::

    {"data": [...], "meta": {"next_cursor": "g2gC...", "limit": 100}}

A missing or empty ``next_cursor`` marks the last page. The number of items on
a page says nothing about whether more pages follow.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

from edgeconfig.core.logging import get_logger
from edgeconfig.errors import EdgeConfigError
from edgeconfig.http_client.client import ApiClient
from edgeconfig.http_client.options import RequestOptions
from edgeconfig.wire.decoder import decode_value, load_json

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class Cursor:
    """Continuation token and page size, advanced in place by the paginator."""

    token: str = ""
    limit: int | None = None

    def as_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.token:
            params["cursor"] = self.token
        if self.limit:
            params["limit"] = str(self.limit)
        return params


class PageMeta(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    next_cursor: str | None = None
    limit: int | None = None


class Page(BaseModel, Generic[T]):
    """One decoded listing page."""

    model_config = ConfigDict(extra="ignore")

    data: list[T] | None = None
    meta: PageMeta | None = None


class PaginatorState(str, Enum):
    READY = "ready"
    EXHAUSTED = "exhausted"
    ERRORED = "errored"


class CursorPaginator(Generic[T]):
    """Walk a cursor-paginated listing one page per :meth:`next` call.

    Not safe for concurrent use; one consumer per instance. Abandon it at any
    point by simply not calling :meth:`next` again.

    Usage:
        paginator = CursorPaginator(client, "/resources/stores/kv", KVStore, limit=50)
        while paginator.next():
            for store in paginator.items():
                ...
        if paginator.err():
            raise paginator.err()
    """

    def __init__(
        self,
        client: ApiClient,
        path: str,
        item_type: type[T] | Any,
        *,
        limit: int | None = None,
        params: dict[str, str] | None = None,
    ) -> None:
        self._client = client
        self._path = path
        self._item_type = item_type
        self._params = dict(params or {})
        self.cursor = Cursor(limit=limit)
        self.state = PaginatorState.READY
        self.pages_fetched = 0
        self._items: list[T] = []
        self._err: Exception | None = None

    def next(self) -> bool:
        """Fetch the next page.

        Returns:
            True when a page was fetched and is available via :meth:`items`;
            False once the listing is exhausted or an error was recorded.
        """
        if self.state is not PaginatorState.READY:
            self._items = []
            return False

        options = RequestOptions.create()
        options.params.update(self._params)
        options.params.update(self.cursor.as_params())

        try:
            response = self._client.get(self._path, options)
            page = decode_value(load_json(response.content), Page[self._item_type])
        except EdgeConfigError as exc:
            logger.warning(
                "Pagination of %s stopped after %d page(s): %s",
                self._path,
                self.pages_fetched,
                exc,
                extra={"operation": "paginate", "context_data": {"path": self._path}},
            )
            self._err = exc
            self._items = []
            self.state = PaginatorState.ERRORED
            return False

        self.pages_fetched += 1
        self._items = list(page.data or [])
        next_cursor = page.meta.next_cursor if page.meta else None
        if next_cursor:
            self.cursor.token = next_cursor
        else:
            self.state = PaginatorState.EXHAUSTED
        return True

    def items(self) -> list[T]:
        """Items of the most recently fetched page only."""
        return self._items

    def err(self) -> Exception | None:
        """The error that stopped pagination, if any. Sticky."""
        return self._err

    def iter_items(self) -> Iterator[T]:
        """Yield items across all remaining pages, raising a recorded error at the end."""
        while self.next():
            yield from self._items
        if self._err is not None:
            raise self._err

    def collect(self) -> list[T]:
        """Drain every remaining page into one list."""
        return list(self.iter_items())
