"""Flask application factory and shared setup for the repository server."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from flask import Flask, current_app, jsonify

from mavenrepo.catalog.writer import CatalogWriter
from mavenrepo.config import Settings, load_settings
from mavenrepo.logging_config import configure_logging
from mavenrepo.storage.blob_links import BlobLocator, build_blob_locator
from mavenrepo.storage.bucket import LocalBucket
from mavenrepo.storage.catalog_store import CatalogStore
from mavenrepo.storage.memory import InMemoryCatalogStore

_LOGGER = logging.getLogger(__name__)


def create_app(config: Dict[str, Any] | None = None) -> Flask:
    """
    Create and configure the Flask application.

    ``config`` may carry ready-made collaborators (``SETTINGS``,
    ``CATALOG_STORE``, ``BLOB_LOCATOR``) or ``SETTINGS_OVERRIDES`` applied on
    top of the environment. The catalog store is built once here and shared
    by every request.
    """

    configure_logging()
    config = dict(config or {})

    app = Flask(__name__)
    app.config.setdefault("JSON_SORT_KEYS", False)
    app.config.update(config)

    settings = app.config.get("SETTINGS")
    if not isinstance(settings, Settings):
        settings = load_settings(app.config.get("SETTINGS_OVERRIDES"))
        app.config["SETTINGS"] = settings

    if app.config.get("CATALOG_STORE") is None:
        app.config["CATALOG_STORE"] = build_catalog_store(settings)
    if app.config.get("BLOB_LOCATOR") is None:
        app.config["BLOB_LOCATOR"] = build_blob_locator(
            settings.blob_url_template,
            s3_bucket=settings.blob_bucket,
            s3_prefix=settings.blob_prefix,
        )
    app.config["CATALOG_WRITER"] = CatalogWriter(app.config["CATALOG_STORE"])
    app.config["BUCKETS"] = {
        repo.name: LocalBucket(
            repo.name,
            settings.repository_root(repo.name),
            maven_shaped=repo.maven_shaped,
        )
        for repo in settings.repositories
    }

    from .api import api_bp
    from .buckets import create_bucket_blueprint
    from .spec_api import spec_bp

    app.register_blueprint(spec_bp)
    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(create_bucket_blueprint(app.config["BUCKETS"]))

    @app.errorhandler(404)
    def not_found(_error: Exception):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(_error: Exception):
        return jsonify({"error": "Method not allowed"}), 405

    _LOGGER.info(
        "Repository server ready: data=%s development=%s repositories=%s",
        settings.data_path,
        settings.development,
        ", ".join(app.config["BUCKETS"]),
    )
    return app


def build_catalog_store(settings: Settings) -> CatalogStore:
    """DynamoDB when ``CATALOG_TABLE`` is configured, in-memory otherwise."""

    if settings.catalog_table:
        from mavenrepo.storage.dynamodb import DynamoDBCatalogStore

        return DynamoDBCatalogStore(settings.catalog_table)
    _LOGGER.warning("CATALOG_TABLE unset; using a process-local catalog store")
    return InMemoryCatalogStore()


def get_settings(app: Flask | None = None) -> Settings:
    ctx_app = app or current_app
    settings = ctx_app.config.get("SETTINGS")
    if not isinstance(settings, Settings):
        raise RuntimeError("SETTINGS config must be a Settings instance")
    return settings


def get_store(app: Flask | None = None) -> CatalogStore:
    """Retrieve the shared catalog store. Accepts an optional app override."""
    ctx_app = app or current_app
    store = ctx_app.config.get("CATALOG_STORE")
    if store is None:
        raise RuntimeError("CATALOG_STORE is not configured")
    return store


def get_writer(app: Flask | None = None) -> CatalogWriter:
    ctx_app = app or current_app
    return ctx_app.config["CATALOG_WRITER"]


def get_buckets(app: Flask | None = None) -> Mapping[str, LocalBucket]:
    ctx_app = app or current_app
    return ctx_app.config["BUCKETS"]


def get_blob_locator(app: Flask | None = None) -> BlobLocator:
    ctx_app = app or current_app
    return ctx_app.config["BLOB_LOCATOR"]
