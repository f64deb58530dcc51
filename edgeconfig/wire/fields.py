"""Wire-encoding metadata for typed request inputs.

Inputs are dataclasses. Every field that goes on the wire is declared with
:func:`wire_field`, which records the external key and codec in the field's
metadata and defaults the value to :data:`UNSET`. The per-type descriptor
table is built once by :func:`field_table` and reused by every encode.
"""

import dataclasses
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, TypeVar

_WIRE_METADATA_KEY = "wire"

T = TypeVar("T")


class UnsetType:
    """Type of :data:`UNSET`, the "not provided" marker for optional inputs."""

    _instance: "UnsetType | None" = None

    def __new__(cls) -> "UnsetType":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "UnsetType":
        return self

    def __deepcopy__(self, memo: dict) -> "UnsetType":
        return self

    def __reduce__(self) -> str:
        return "UNSET"


UNSET = UnsetType()

# Annotation helper: ``ttl: Opt[int] = wire_field("ttl")``.
Opt = T | UnsetType


class Codec(str, Enum):
    PLAIN = "plain"
    # Legacy boolean spelled "1" / "0" on the wire.
    COMPAT_BOOL = "compat_bool"
    # Sequence of strings sent as repeated ``key[]=value`` pairs.
    BRACKETS = "brackets"


@dataclass(frozen=True)
class WireField:
    attr: str
    key: str
    codec: Codec
    required: bool


def wire_field(
    key: str,
    *,
    codec: Codec = Codec.PLAIN,
    required: bool = False,
    default: Any = UNSET,
    default_factory: Callable[[], Any] | None = None,
) -> Any:
    """Declare a dataclass field that is encoded into the request body.

    Args:
        key: External key name.
        codec: How the value is serialized.
        required: Always emitted; encoding fails while it is still UNSET.
        default: Default value, UNSET unless given.
        default_factory: Builds a mutable default (e.g. ``list``); wins over ``default``.
    """
    metadata = {_WIRE_METADATA_KEY: {"key": key, "codec": codec, "required": required}}
    if default_factory is not None:
        return dataclasses.field(default_factory=default_factory, metadata=metadata)
    return dataclasses.field(default=default, metadata=metadata)


@lru_cache(maxsize=None)
def field_table(cls: type) -> tuple[WireField, ...]:
    """Return the wire descriptors of a dataclass type in declaration order.

    Fields without wire metadata (path identifiers, query-only options) are
    not part of the table and never reach the body.
    """
    if not dataclasses.is_dataclass(cls):
        raise TypeError(f"{cls.__name__} is not a dataclass input type")

    table = []
    for f in dataclasses.fields(cls):
        spec = f.metadata.get(_WIRE_METADATA_KEY)
        if spec is None:
            continue
        table.append(
            WireField(attr=f.name, key=spec["key"], codec=spec["codec"], required=spec["required"])
        )
    return tuple(table)
