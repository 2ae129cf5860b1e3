"""
mavenrepo Repository
Introductory remarks: This module is part of the mavenrepo codebase.

Shared fixtures: an in-memory catalog seeded with one publisher.
"""

from __future__ import annotations

import base64
from pathlib import Path

import pytest

from mavenrepo.storage.memory import InMemoryCatalogStore
from mavenrepo.utils.auth import save_authority

PUBLISHER = "alice"
PUBLISHER_PASSWORD = "correct horse battery staple"
PUBLISHER_PREFIXES = ("/public/com/example/", "/gradle-plugins/", "/build-cache/")

VERSION_INDEX = b"""<?xml version="1.0" encoding="UTF-8"?>
<metadata>
  <groupId>com.example</groupId>
  <artifactId>lib</artifactId>
  <versioning>
    <latest>1.1</latest>
    <release>1.0</release>
    <versions>
      <version>1.0</version>
      <version>1.1</version>
    </versions>
    <lastUpdated>20240101000000</lastUpdated>
  </versioning>
</metadata>
"""

PROJECT_DESCRIPTOR = b"""<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <groupId>com.example</groupId>
  <artifactId>lib</artifactId>
  <version>1.1</version>
  <developers>
    <developer>
      <name>Ann</name>
    </developer>
  </developers>
</project>
"""


@pytest.fixture(autouse=True)
def _quiet_runtime_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    _quiet_runtime_env: Function description.
    :param monkeypatch:
    :returns:
    """

    monkeypatch.setenv("LOG_LEVEL", "0")
    monkeypatch.delenv("LOG_FILE", raising=False)
    monkeypatch.delenv("CATALOG_TABLE", raising=False)
    monkeypatch.delenv("ARTIFACT_STORAGE_BUCKET", raising=False)
    monkeypatch.delenv("MAVENREPO_DEVELOPMENT", raising=False)


@pytest.fixture()
def store() -> InMemoryCatalogStore:
    """Catalog store with the default publisher registered."""
    catalog = InMemoryCatalogStore()
    save_authority(catalog, PUBLISHER, PUBLISHER_PASSWORD, PUBLISHER_PREFIXES)
    return catalog


@pytest.fixture()
def data_path(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


def basic_auth(username: str = PUBLISHER, password: str = PUBLISHER_PASSWORD) -> dict:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode()
    return {"Authorization": f"Basic {token}"}


@pytest.fixture()
def make_auth():
    """Build a Basic ``Authorization`` header for arbitrary credentials."""
    return basic_auth


@pytest.fixture()
def auth_headers() -> dict:
    return basic_auth()


@pytest.fixture()
def version_index() -> bytes:
    return VERSION_INDEX


@pytest.fixture()
def project_descriptor() -> bytes:
    return PROJECT_DESCRIPTOR
