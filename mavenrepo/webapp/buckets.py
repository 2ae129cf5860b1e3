"""
mavenrepo Repository
Introductory remarks: This module is part of the mavenrepo codebase.

Bucket routes: ``PUT``/``GET /<repository>/<path>``.

Order of checks on a write: traversal segments (every bucket route),
credentials, path-prefix authorization, resolved-path containment. Only
then are bytes written. Cataloging or build-cache tracking happens after
the write and can never fail the upload.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Mapping

from flask import Blueprint, jsonify, redirect, request, send_file

from mavenrepo.catalog.ingest import catalog_uploaded_descriptor
from mavenrepo.errors import (AuthenticationFailure, AuthorizationFailure,
                              PathSafetyViolation)
from mavenrepo.storage.blob_links import DownloadLink
from mavenrepo.storage.bucket import (BucketWrite, LocalBucket,
                                      check_traversal, descriptor_kind)
from mavenrepo.storage.build_cache import record_access
from mavenrepo.storage.errors import (BlobNotFoundError, BlobStoreError,
                                      BlobStoreUnavailableError,
                                      CatalogStoreError)
from mavenrepo.utils.auth import (PUBLISH_REALM, require_path_authorized,
                                  require_principal)
from mavenrepo.utils.request_logging import log_request

from . import (get_blob_locator, get_buckets, get_settings, get_store,
               get_writer)

_LOGGER = logging.getLogger(__name__)


def _json_error(message: str, status: HTTPStatus):
    return jsonify({"error": message}), status.value


def create_bucket_blueprint(buckets: Mapping[str, LocalBucket]) -> Blueprint:
    """Blueprint with one ``/<name>/<path>`` rule per configured bucket."""

    bucket_bp = Blueprint("buckets", __name__)

    @bucket_bp.before_request
    def reject_traversal():
        log_request(_LOGGER, request)
        try:
            check_traversal(request.path)
        except PathSafetyViolation as error:
            _LOGGER.warning("Rejected traversal attempt: %s", request.path)
            return _json_error(str(error), HTTPStatus.FORBIDDEN)
        return None

    for name in buckets:
        bucket_bp.add_url_rule(
            f"/{name}/<path:subpath>",
            endpoint=f"bucket_{name}",
            view_func=bucket_object,
            defaults={"repository": name},
            methods=["GET", "PUT"],
        )
    return bucket_bp


def bucket_object(repository: str, subpath: str):
    bucket = get_buckets()[repository]
    if request.method == "PUT":
        return _put(bucket, subpath)
    return _get(bucket, subpath)


def _put(bucket: LocalBucket, subpath: str):
    credentials = request.authorization
    if credentials is None or (credentials.type or "").lower() != "basic":
        response = jsonify({"error": "Authentication required"})
        response.status_code = HTTPStatus.UNAUTHORIZED.value
        response.headers["WWW-Authenticate"] = (
            f'Basic realm="{PUBLISH_REALM}", charset="UTF-8"'
        )
        return response

    try:
        principal = require_principal(
            get_store(), credentials.username, credentials.password
        )
        require_path_authorized(principal, request.path)
        result = bucket.write(subpath, request.stream)
    except (AuthenticationFailure, AuthorizationFailure, PathSafetyViolation) as error:
        return _json_error(str(error), HTTPStatus.FORBIDDEN)
    except BlobStoreError as error:
        return _json_error(str(error), HTTPStatus.CONFLICT)

    if bucket.maven_shaped:
        _catalog(result)
    else:
        _track_build_cache_access(result)

    status = HTTPStatus.CREATED if result.created else HTTPStatus.OK
    return (
        jsonify(
            {
                "repository": result.repository,
                "path": result.relative_path,
                "bytes": result.bytes_written,
            }
        ),
        status.value,
    )


def _catalog(result: BucketWrite) -> None:
    kind = descriptor_kind(result.relative_path)
    if kind is None:
        return
    catalog_uploaded_descriptor(get_writer(), result.repository, result.path, kind)


def _track_build_cache_access(result: BucketWrite) -> None:
    try:
        record_access(get_store(), result.repository, result.relative_path)
    except CatalogStoreError as error:
        _LOGGER.error(
            "Could not record build-cache access for %s: %s",
            result.relative_path,
            error,
        )


def _get(bucket: LocalBucket, subpath: str):
    if get_settings().development:
        try:
            return send_file(bucket.locate(subpath))
        except PathSafetyViolation as error:
            return _json_error(str(error), HTTPStatus.FORBIDDEN)
        except BlobNotFoundError as error:
            return _json_error(str(error), HTTPStatus.NOT_FOUND)

    try:
        link = get_blob_locator().url_for(request.path)
    except BlobStoreUnavailableError as error:
        _LOGGER.warning("Blob store temporarily unavailable: %s", error)
        return _json_error(
            "Storage temporarily unavailable; please retry",
            HTTPStatus.SERVICE_UNAVAILABLE,
        )
    except BlobStoreError as error:
        _LOGGER.exception("Blob store error: %s", error)
        return _json_error(
            "Unable to generate a download link", HTTPStatus.BAD_GATEWAY
        )
    return _redirect_response(link)


def _redirect_response(link: DownloadLink):
    response = redirect(link.url, code=HTTPStatus.FOUND.value)
    if link.expires_in:
        response.headers["Cache-Control"] = f"max-age={link.expires_in}"
    return response
