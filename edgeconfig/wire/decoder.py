"""Decode JSON response bodies into typed outputs."""

import json
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from edgeconfig.errors import DecodeError

T = TypeVar("T")


@lru_cache(maxsize=None)
def _adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def _target_name(target: Any) -> str:
    return getattr(target, "__name__", None) or repr(target)


def _field_path(loc: tuple[int | str, ...]) -> str | None:
    if not loc:
        return None
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def load_json(body: bytes | str) -> Any:
    """Parse a raw body, raising :class:`DecodeError` on malformed JSON."""
    try:
        return json.loads(body)
    except ValueError as exc:
        raise DecodeError(None, f"malformed JSON body: {exc}") from exc


def decode_value(data: Any, target: type[T] | Any) -> T:
    """Convert already-parsed JSON data into ``target``.

    All-or-nothing: the first value that cannot be coerced aborts the decode
    with a :class:`DecodeError` naming its dotted path; nothing partial is
    returned.
    """
    try:
        return _adapter(target).validate_python(data)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        raise DecodeError(
            _field_path(tuple(first["loc"])),
            first["msg"],
            target=_target_name(target),
        ) from exc


def decode(body: bytes | str, target: type[T]) -> T:
    """Decode a JSON object body into a :class:`~edgeconfig.wire.models.WireModel`."""
    return decode_value(load_json(body), target)


def decode_list(body: bytes | str, item: type[T]) -> list[T]:
    """Decode a JSON array body into a list of ``item``.

    A ``null`` body decodes to an empty list.
    """
    data = load_json(body)
    if data is None:
        return []
    return decode_value(data, list[item])
