"""
mavenrepo Repository
Introductory remarks: This module is part of the mavenrepo codebase.

Read-side redirects: map a bucket request path to the external blob store
URL that actually serves the bytes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from .errors import (BlobStoreError, BlobStoreUnavailableError,
                     looks_like_transient_cloud_failure)

DEFAULT_BLOB_URL_TEMPLATE = "https://storage.googleapis.com/repository-data{path}"


@dataclass(frozen=True)
class DownloadLink:
    """Redirect target for a bucket GET."""

    path: str
    url: str
    expires_in: int | None = None


class BlobLocator(Protocol):
    """Interface implemented by redirect strategies."""

    def url_for(self, request_path: str) -> DownloadLink:
        """Return the external URL serving ``request_path``."""


class TemplateBlobLocator:
    """Substitute the request path into a fixed URL template."""

    def __init__(self, template: str = DEFAULT_BLOB_URL_TEMPLATE) -> None:
        if "{path}" not in template:
            raise ValueError("Blob URL template must contain '{path}'")
        self._template = template

    def url_for(self, request_path: str) -> DownloadLink:
        path = request_path if request_path.startswith("/") else f"/{request_path}"
        return DownloadLink(path=path, url=self._template.format(path=path))


class S3BlobLocator:
    """Presign GET URLs for objects mirrored into an S3 bucket."""

    def __init__(
        self,
        bucket: str,
        *,
        object_prefix: str = "",
        expires_in: int = 900,
        client: Any | None = None,
    ) -> None:
        if not bucket:
            raise ValueError("bucket name must be provided")
        self._bucket = bucket
        self._object_prefix = object_prefix.strip("/")
        self._expires_in = expires_in
        if client is None:
            import boto3

            region = os.environ.get("ARTIFACT_STORAGE_REGION") or os.environ.get(
                "AWS_REGION"
            )
            client_kwargs: dict[str, Any] = {}
            if region:
                client_kwargs["region_name"] = region
            endpoint_override = os.environ.get("ARTIFACT_STORAGE_ENDPOINT")
            if endpoint_override:
                client_kwargs["endpoint_url"] = endpoint_override
            client = boto3.client("s3", **client_kwargs)
        self._s3 = client

    def _object_key(self, request_path: str) -> str:
        prefix = f"{self._object_prefix}/" if self._object_prefix else ""
        return f"{prefix}{request_path.lstrip('/')}"

    def url_for(self, request_path: str) -> DownloadLink:
        key = self._object_key(request_path)
        try:
            url = self._s3.generate_presigned_url(
                "get_object",
                Params={"Bucket": self._bucket, "Key": key},
                ExpiresIn=self._expires_in,
            )
        except (ClientError, BotoCoreError) as exc:
            if looks_like_transient_cloud_failure(exc):
                raise BlobStoreUnavailableError(
                    f"S3 temporarily unavailable: {exc}"
                ) from exc
            raise BlobStoreError(
                f"Failed to generate download URL: {exc}"
            ) from exc
        return DownloadLink(path=request_path, url=url, expires_in=self._expires_in)


def build_blob_locator(
    template: str,
    *,
    s3_bucket: str | None = None,
    s3_prefix: str = "",
) -> BlobLocator:
    """Presigned S3 links when a bucket is configured, else the template."""

    if s3_bucket:
        return S3BlobLocator(s3_bucket, object_prefix=s3_prefix)
    return TemplateBlobLocator(template)
