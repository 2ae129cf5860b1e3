"""REST API blueprint exposing repository and catalog browsing endpoints."""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from mavenrepo.catalog import queries
from mavenrepo.config import RepositoryConfig
from mavenrepo.models.catalog import repository_url
from mavenrepo.utils.request_logging import log_request

from . import get_settings, get_store

_LOGGER = logging.getLogger(__name__)
_ONE_DAY = 24 * 60 * 60

api_bp = Blueprint("api", __name__)


def _json_error(message: str, status: int = 400):
    return jsonify({"error": message}), status


def _cached(payload, status: int = 200):
    response = jsonify(payload)
    response.headers["Cache-Control"] = f"public, max-age={_ONE_DAY}"
    return response, status


def _page_arg(default: int) -> int:
    raw = request.args.get("page")
    if raw is None:
        return default
    return int(raw)


def _lookup_repository(name: str) -> RepositoryConfig | None:
    return get_settings().repository(name)


@api_bp.before_request
def _log() -> None:
    log_request(_LOGGER, request)


@api_bp.get("/health")
def healthcheck():
    """Simple readiness probe used by tests or deployment."""
    return jsonify({"status": "ok"}), 200


@api_bp.get("/repos")
def list_repositories():
    """Configured repositories with the snippet consumers need."""
    settings = get_settings()
    return _cached(
        [
            {
                "name": repo.name,
                "url": repository_url(settings.public_url, repo.name),
                "mavenShaped": repo.maven_shaped,
                "defaultConfiguration": repo.default_configuration,
            }
            for repo in settings.repositories
        ]
    )


@api_bp.get("/repos/<repository>/heads")
def list_heads(repository: str):
    """HeadRefs of one repository, twenty per zero-based page."""
    repo = _lookup_repository(repository)
    if repo is None or not repo.maven_shaped:
        return _json_error(f"Unknown repository '{repository}'.", 404)
    try:
        heads = queries.list_head_refs(get_store(), repository, page=_page_arg(0))
    except ValueError as exc:
        return _json_error(f"Invalid page: {exc}")
    base_url = get_settings().public_url
    return _cached([head.to_payload(base_url) for head in heads])


@api_bp.get("/repos/<repository>/<group_id>/<artifact_id>")
def artifact_versions(repository: str, group_id: str, artifact_id: str):
    """Versions of one artifact; ``page`` is one-based here."""
    if _lookup_repository(repository) is None:
        return _json_error(f"Unknown repository '{repository}'.", 404)
    try:
        page = _page_arg(1)
        specs = queries.list_spec_refs(
            get_store(),
            page=page - 1,
            repository=repository,
            group_id=group_id,
            artifact_id=artifact_id,
        )
    except ValueError as exc:
        return _json_error(f"Invalid page: {exc}")
    if not specs:
        return _json_error(f"'{group_id}:{artifact_id}' is not cataloged.", 404)

    store = get_store()
    base_url = get_settings().public_url
    head = queries.get_head_ref(store, repository, group_id, artifact_id)
    return _cached(
        {
            "repository": repository,
            "groupId": group_id,
            "artifactId": artifact_id,
            "page": page,
            "count": queries.count_spec_refs(
                store, repository, group_id, artifact_id
            ),
            "head": head.to_payload(base_url) if head else None,
            "specs": [spec.to_payload(base_url) for spec in specs],
        }
    )


@api_bp.get("/repos/<repository>/<group_id>/<artifact_id>/<version>")
def artifact_version(
    repository: str, group_id: str, artifact_id: str, version: str
):
    """A single SpecRef with its publisher metadata."""
    if _lookup_repository(repository) is None:
        return _json_error(f"Unknown repository '{repository}'.", 404)
    spec = queries.get_spec_ref(
        get_store(), repository, group_id, artifact_id, version
    )
    if spec is None:
        return _json_error(
            f"'{group_id}:{artifact_id}:{version}' is not cataloged.", 404
        )
    return _cached(spec.to_payload(get_settings().public_url))
