"""Compute packages bound to a service version."""

import os
from dataclasses import dataclass
from typing import IO

from pydantic import Field

from edgeconfig.errors import FieldError, FieldKind, require
from edgeconfig.http_client.client import ApiClient
from edgeconfig.utils.paths import to_safe_url
from edgeconfig.wire.decoder import decode
from edgeconfig.wire.encoder import FilePart
from edgeconfig.wire.models import Timestamp, WireModel

PACKAGE_FIELD = "package"
# Upload filename used when the package comes from memory.
DEFAULT_PACKAGE_FILENAME = "package.tar.gz"
PACKAGE_CONTENT_TYPE = "application/gzip"


class PackageMetadata(WireModel):
    authors: list[str] | None = None
    description: str | None = None
    files_hash: str | None = None
    hashsum: str | None = None
    language: str | None = None
    name: str | None = None
    size: int | None = None


class Package(WireModel):
    created_at: Timestamp = None
    deleted_at: Timestamp = None
    id: str | None = None
    metadata: PackageMetadata | None = None
    service_id: str | None = None
    service_version: int | None = Field(None, alias="version")
    updated_at: Timestamp = None


def package_path(service_id: str, service_version: int) -> str:
    require(
        (service_id, FieldKind.SERVICE_ID),
        (service_version, FieldKind.SERVICE_VERSION),
    )
    return to_safe_url("service", service_id, "version", service_version, "package")


@dataclass
class GetPackageInput:
    service_id: str = ""
    service_version: int = 0


def get_package(client: ApiClient, params: GetPackageInput) -> Package:
    response = client.get(package_path(params.service_id, params.service_version))
    return decode(response.content, Package)


@dataclass
class UpdatePackageInput:
    service_id: str = ""
    service_version: int = 0
    # One of the two: a file on disk, or the archive bytes / an open binary stream.
    package_path: str | os.PathLike | None = None
    package_content: bytes | IO[bytes] | None = None


def update_package(client: ApiClient, params: UpdatePackageInput) -> Package:
    """Upload a package archive.

    A file opened from ``package_path`` is closed once the upload finishes or
    fails. A stream passed as ``package_content`` stays open; the caller owns it.
    """
    path = package_path(params.service_id, params.service_version)
    if params.package_path is not None:
        part = FilePart(PACKAGE_FIELD, path=params.package_path, content_type=PACKAGE_CONTENT_TYPE)
    elif params.package_content:
        part = FilePart(
            PACKAGE_FIELD,
            source=params.package_content,
            filename=DEFAULT_PACKAGE_FILENAME,
            content_type=PACKAGE_CONTENT_TYPE,
        )
    else:
        raise FieldError(FieldKind.PACKAGE, "missing package file path or content")

    response = client.put_form_file(path, part)
    return decode(response.content, Package)
