"""

mavenrepo Repository
Introductory remarks: This module is part of the mavenrepo codebase.

"""
from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest

from mavenrepo.config import Settings
from mavenrepo.webapp import create_app


@pytest.fixture()
def web_app(store, data_path: Path) -> Generator:
    """Provide a configured Flask application backed by an in-memory catalog."""
    app = create_app(
        {
            "TESTING": True,
            "SETTINGS": Settings(
                data_path=data_path, public_url="https://maven.example"
            ),
            "CATALOG_STORE": store,
        }
    )
    yield app


@pytest.fixture()
def client(web_app):
    """Flask test client fixture."""
    return web_app.test_client()


@pytest.fixture()
def dev_client(store, data_path: Path):
    """Client for an app that serves bucket files itself."""
    app = create_app(
        {
            "TESTING": True,
            "SETTINGS": Settings(data_path=data_path, development=True),
            "CATALOG_STORE": store,
        }
    )
    return app.test_client()
