"""Platform-managed log streams of a service."""

from dataclasses import dataclass
from enum import IntEnum

import httpx

from edgeconfig.core.logging import get_logger
from edgeconfig.errors import FieldError, FieldKind, HTTPError, ManagedLoggingEnabledError, require
from edgeconfig.http_client.client import ApiClient
from edgeconfig.utils.paths import to_safe_url
from edgeconfig.wire.decoder import decode
from edgeconfig.wire.models import WireModel

logger = get_logger(__name__)


class ManagedLoggingKind(IntEnum):
    UNSET = 0
    INSTANCE_OUTPUT = 1


_STREAM_SEGMENTS = {
    ManagedLoggingKind.INSTANCE_OUTPUT: "instance_output",
}


class ManagedLogging(WireModel):
    service_id: str | None = None


def _stream_path(service_id: str, kind: ManagedLoggingKind) -> str:
    require(
        (service_id, FieldKind.SERVICE_ID),
        (kind, FieldKind.KIND),
    )
    segment = _STREAM_SEGMENTS.get(kind)
    if segment is None:
        raise FieldError(FieldKind.KIND, "not implemented")
    return to_safe_url("service", service_id, "log_stream", "managed", segment)


@dataclass
class CreateManagedLoggingInput:
    service_id: str = ""
    kind: ManagedLoggingKind = ManagedLoggingKind.UNSET


def create_managed_logging(client: ApiClient, params: CreateManagedLoggingInput) -> ManagedLogging:
    """Enable a managed log stream.

    Raises:
        ManagedLoggingEnabledError: The stream is already enabled (409).
    """
    path = _stream_path(params.service_id, params.kind)
    try:
        response = client.post(path)
    except HTTPError as exc:
        if exc.status_code == httpx.codes.CONFLICT:
            logger.info(
                "Managed logging already enabled for %s",
                params.service_id,
                extra={"operation": "create_managed_logging"},
            )
            raise ManagedLoggingEnabledError() from exc
        raise
    return decode(response.content, ManagedLogging)


@dataclass
class DeleteManagedLoggingInput:
    service_id: str = ""
    kind: ManagedLoggingKind = ManagedLoggingKind.UNSET


def delete_managed_logging(client: ApiClient, params: DeleteManagedLoggingInput) -> None:
    client.delete(_stream_path(params.service_id, params.kind))
