"""
mavenrepo Repository
Introductory remarks: This module is part of the mavenrepo codebase.

Tests for download redirect targets.
"""

from __future__ import annotations

from typing import Any, Dict

import pytest
from botocore.exceptions import ClientError

from mavenrepo.storage import blob_links
from mavenrepo.storage.blob_links import (DEFAULT_BLOB_URL_TEMPLATE,
                                          S3BlobLocator, TemplateBlobLocator,
                                          build_blob_locator)
from mavenrepo.storage.errors import BlobStoreError, BlobStoreUnavailableError


class FakeS3Client:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[Dict[str, Any]] = []

    def generate_presigned_url(self, operation: str, *, Params, ExpiresIn):
        self.calls.append({"operation": operation, **Params, "ExpiresIn": ExpiresIn})
        if self.error is not None:
            raise self.error
        return f"https://s3.example/{Params['Bucket']}/{Params['Key']}?sig=1"


def test_default_template_points_at_repository_data() -> None:
    link = TemplateBlobLocator().url_for("/public/com/example/lib/1.0/lib-1.0.jar")

    assert link.url == (
        "https://storage.googleapis.com/repository-data"
        "/public/com/example/lib/1.0/lib-1.0.jar"
    )
    assert link.expires_in is None


def test_template_adds_leading_slash() -> None:
    locator = TemplateBlobLocator("https://cdn.example{path}")
    assert locator.url_for("native/x.zip").url == "https://cdn.example/native/x.zip"


def test_template_requires_path_placeholder() -> None:
    with pytest.raises(ValueError):
        TemplateBlobLocator("https://cdn.example/")


def test_s3_locator_presigns_prefixed_keys() -> None:
    client = FakeS3Client()
    locator = S3BlobLocator(
        "artifacts", object_prefix="/mirror/", expires_in=60, client=client
    )

    link = locator.url_for("/public/a.jar")

    assert link.url == "https://s3.example/artifacts/mirror/public/a.jar?sig=1"
    assert link.expires_in == 60
    assert client.calls == [
        {
            "operation": "get_object",
            "Bucket": "artifacts",
            "Key": "mirror/public/a.jar",
            "ExpiresIn": 60,
        }
    ]


@pytest.mark.parametrize(
    ("code", "expected"),
    [("SlowDown", BlobStoreUnavailableError), ("AccessDenied", BlobStoreError)],
)
def test_s3_locator_maps_errors(code: str, expected: type) -> None:
    error = ClientError({"Error": {"Code": code, "Message": code}}, "GetObject")
    locator = S3BlobLocator("artifacts", client=FakeS3Client(error))

    with pytest.raises(expected) as excinfo:
        locator.url_for("/public/a.jar")
    if expected is BlobStoreError:
        assert not isinstance(excinfo.value, BlobStoreUnavailableError)


def test_build_blob_locator_prefers_s3(monkeypatch: pytest.MonkeyPatch) -> None:
    created: list[Dict[str, Any]] = []

    def fake_s3_locator(bucket: str, **kwargs: Any) -> str:
        created.append({"bucket": bucket, **kwargs})
        return "s3-locator"

    monkeypatch.setattr(blob_links, "S3BlobLocator", fake_s3_locator)

    assert build_blob_locator(DEFAULT_BLOB_URL_TEMPLATE, s3_bucket="b", s3_prefix="p") == "s3-locator"
    assert created == [{"bucket": "b", "object_prefix": "p"}]
    assert isinstance(build_blob_locator(DEFAULT_BLOB_URL_TEMPLATE), TemplateBlobLocator)
