"""Encode typed inputs into request bodies.

Three targets share the descriptor table from :mod:`edgeconfig.wire.fields`:
url-encoded form, JSON, and multipart form with one file part.
"""

import dataclasses
import json
import os
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import IO, Any
from urllib.parse import urlencode

from edgeconfig.core.logging import get_logger
from edgeconfig.errors import EncodeError
from edgeconfig.wire.fields import UNSET, Codec, WireField, field_table

logger = get_logger(__name__)

FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"
JSON_MEDIA_TYPE = "application/json"


def _scalar_text(value: Any, name: str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return _scalar_text(value.value, name)
    if isinstance(value, (str, int, float)):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    raise EncodeError(name, f"unsupported type {type(value).__name__}")


def _compat_bool(value: Any, name: str) -> str:
    if not isinstance(value, bool):
        raise EncodeError(name, f"compat-bool expects bool, got {type(value).__name__}")
    return "1" if value else "0"


def _string_sequence(value: Any, name: str) -> list[str]:
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise EncodeError(name, f"bracketed field expects a list of strings, got {type(value).__name__}")
    for item in value:
        if not isinstance(item, str):
            raise EncodeError(name, f"bracketed field item {item!r} is not a string")
    return list(value)


def _present_fields(value: Any) -> Iterator[tuple[WireField, Any]]:
    """Yield (descriptor, value) for fields that go on the wire."""
    for spec in field_table(type(value)):
        raw = getattr(value, spec.attr)
        if raw is UNSET:
            if spec.required:
                raise EncodeError(spec.key, "required field is unset")
            continue
        yield spec, raw


def encode_pairs(value: Any, *, prefix: str | None = None) -> list[tuple[str, str]]:
    """Flatten an input into ordered form pairs.

    Unset optionals are omitted; everything else is emitted, explicit zero
    values included. Nested dataclasses become ``key[sub]=...``.
    """
    pairs: list[tuple[str, str]] = []
    for spec, raw in _present_fields(value):
        key = f"{prefix}[{spec.key}]" if prefix else spec.key
        if spec.codec is Codec.COMPAT_BOOL:
            pairs.append((key, _compat_bool(raw, key)))
        elif spec.codec is Codec.BRACKETS:
            pairs.extend((f"{key}[]", item) for item in _string_sequence(raw, key))
        elif dataclasses.is_dataclass(raw) and not isinstance(raw, type):
            pairs.extend(encode_pairs(raw, prefix=key))
        elif raw is None:
            raise EncodeError(key, "None is not a wire value; leave the field UNSET to omit it")
        else:
            pairs.append((key, _scalar_text(raw, key)))
    return pairs


def encode_form(value: Any) -> bytes:
    """Encode an input as ``application/x-www-form-urlencoded``."""
    return urlencode(encode_pairs(value)).encode("ascii")


def _json_value(raw: Any, spec: WireField, name: str) -> Any:
    if spec.codec is Codec.COMPAT_BOOL:
        return _compat_bool(raw, name)
    if spec.codec is Codec.BRACKETS:
        return _string_sequence(raw, name)
    return _plain_json(raw, name)


def _plain_json(raw: Any, name: str) -> Any:
    if raw is None or isinstance(raw, (bool, int, float, str)):
        return raw
    if isinstance(raw, Enum):
        return raw.value
    if isinstance(raw, (datetime, date)):
        return raw.isoformat()
    if dataclasses.is_dataclass(raw) and not isinstance(raw, type):
        return to_json_dict(raw, prefix=name)
    if isinstance(raw, (list, tuple)):
        return [_plain_json(item, f"{name}[{i}]") for i, item in enumerate(raw)]
    if isinstance(raw, dict):
        return {str(k): _plain_json(v, f"{name}.{k}") for k, v in raw.items()}
    raise EncodeError(name, f"unsupported type {type(raw).__name__}")


def to_json_dict(value: Any, *, prefix: str | None = None) -> dict[str, Any]:
    """Build the JSON object for an input, in declaration order."""
    out: dict[str, Any] = {}
    for spec, raw in _present_fields(value):
        name = f"{prefix}.{spec.key}" if prefix else spec.key
        out[spec.key] = _json_value(raw, spec, name)
    return out


def encode_json(value: Any) -> bytes:
    """Encode an input as a JSON body."""
    return json.dumps(to_json_dict(value), separators=(",", ":")).encode("utf-8")


@dataclass
class FilePart:
    """The file section of a multipart upload.

    Exactly one of ``path`` (opened and closed by the encoder) or ``source``
    (owned by the caller, never closed here) must be given.
    """

    field_name: str
    path: str | os.PathLike | None = None
    source: IO[bytes] | bytes | None = None
    filename: str | None = None
    content_type: str = "application/octet-stream"

    def resolved_filename(self) -> str:
        if self.filename:
            return self.filename
        if self.path is not None:
            return os.path.basename(os.fspath(self.path))
        return self.field_name


@dataclass
class MultipartBody:
    """Form fields and file tuple ready to hand to ``httpx``."""

    data: dict[str, str | list[str]]
    files: dict[str, tuple[str, IO[bytes] | bytes, str]]


def _multipart_data(pairs: list[tuple[str, str]]) -> dict[str, str | list[str]]:
    data: dict[str, str | list[str]] = {}
    for key, text in pairs:
        existing = data.get(key)
        if existing is None:
            data[key] = text
        elif isinstance(existing, list):
            existing.append(text)
        else:
            data[key] = [existing, text]
    return data


@contextmanager
def encode_multipart(value: Any | None, part: FilePart) -> Iterator[MultipartBody]:
    """Build a multipart body for the duration of a ``with`` block.

    A file opened from ``part.path`` is released when the block exits,
    whether the encode, the transmit or the caller fails.
    """
    if (part.path is None) == (part.source is None):
        raise EncodeError(part.field_name, "file part needs exactly one of path or source")

    with ExitStack() as stack:
        if part.path is not None:
            path = os.path.normpath(os.fspath(part.path))
            stream: IO[bytes] | bytes = stack.enter_context(open(path, "rb"))
            logger.debug("Opened %s for multipart upload", path)
        else:
            stream = part.source

        data = _multipart_data(encode_pairs(value)) if value is not None else {}
        files = {part.field_name: (part.resolved_filename(), stream, part.content_type)}
        yield MultipartBody(data=data, files=files)
