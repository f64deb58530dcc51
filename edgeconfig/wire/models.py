"""Base types for decoded API responses."""

import re
from datetime import datetime
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field

# Date-time layouts returned by the API. RFC3339 first; some older endpoints
# (dictionary info) still use a bare "YYYY-MM-DD HH:MM:SS".
TIMESTAMP_FORMATS = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%d %H:%M:%S",
)
_FRACTION = re.compile(r"\.\d+")


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a wire timestamp against the accepted formats.

    ``None`` and ``""`` mean absent. Anything else that matches no format
    raises ``ValueError``, which fails the surrounding decode.
    """
    if value is None or isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValueError(f"expected a date-time string, got {type(value).__name__}")
    if value == "":
        return None
    # %f takes at most microseconds; the API may send nanoseconds.
    normalized = _FRACTION.sub(lambda m: m.group(0)[:7], value)
    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(normalized, fmt)
        except ValueError:
            continue
    raise ValueError(f"unable to parse time string: {value!r}")


Timestamp = Annotated[datetime | None, BeforeValidator(parse_timestamp)]


class WireModel(BaseModel):
    """Base for every typed API output.

    Fields are declared optional with a ``None`` default so a key missing from
    the response stays unset instead of taking a zero value. Unknown keys are
    ignored so newer servers never break older clients.
    """

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        coerce_numbers_to_str=True,
        frozen=True,
    )


class StatusEnvelope(WireModel):
    """``{"status": "ok"}`` style body returned by mutate and delete endpoints."""

    status: str | None = None
    message: str | None = Field(None, validation_alias=AliasChoices("msg", "message"))

    @property
    def ok(self) -> bool:
        return self.status == "ok"
