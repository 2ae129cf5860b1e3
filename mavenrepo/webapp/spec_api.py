"""Read-only SpecRef API consumed by build tooling."""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from mavenrepo.catalog import queries
from mavenrepo.utils.request_logging import log_request

from . import get_settings, get_store

_LOGGER = logging.getLogger(__name__)
_ONE_DAY = 24 * 60 * 60

spec_bp = Blueprint("spec", __name__)


def _json_error(message: str, status: int = 400):
    return jsonify({"error": message}), status


@spec_bp.before_request
def _log() -> None:
    log_request(_LOGGER, request)


@spec_bp.get("/spec")
def list_specs():
    """Page through SpecRefs, twenty at a time (``page`` is zero-based)."""
    try:
        page = int(request.args.get("page", "0"))
    except ValueError:
        return _json_error("page must be an integer.")
    repository = request.args.get("repository") or None
    if repository is not None and get_settings().repository(repository) is None:
        return _json_error(f"Unknown repository '{repository}'.", 404)

    try:
        specs = queries.list_spec_refs(
            get_store(),
            page=page,
            repository=repository,
            group_id=request.args.get("groupId") or None,
            artifact_id=request.args.get("artifactId") or None,
        )
    except ValueError as exc:
        return _json_error(str(exc))

    base_url = get_settings().public_url
    response = jsonify([spec.to_payload(base_url) for spec in specs])
    response.headers["Cache-Control"] = f"public, max-age={_ONE_DAY}"
    return response, 200


@spec_bp.get("/spec/<repository>/<full_spec>")
def get_spec(repository: str, full_spec: str):
    """Fetch one SpecRef by ``group:artifact:version``."""
    if get_settings().repository(repository) is None:
        return _json_error(f"Unknown repository '{repository}'.", 404)
    try:
        group_id, artifact_id, version = queries.parse_spec_coordinate(full_spec)
    except ValueError as exc:
        return _json_error(str(exc))

    spec = queries.get_spec_ref(
        get_store(), repository, group_id, artifact_id, version
    )
    if spec is None:
        return _json_error(f"'{full_spec}' is not cataloged.", 404)
    return jsonify(spec.to_payload(get_settings().public_url)), 200
