"""
mavenrepo Repository
Introductory remarks: This module is part of the mavenrepo codebase.

Publish authorization gate: HTTP Basic credentials checked against stored
PublishAuthority records.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
from typing import Iterable, Optional

from mavenrepo.errors import AuthenticationFailure, AuthorizationFailure
from mavenrepo.models.publish import PublishAuthority, PublishPrincipal
from mavenrepo.storage.catalog_store import (CatalogEntity, CatalogKey,
                                             CatalogStore)

_LOGGER = logging.getLogger(__name__)

PUBLISH_AUTHORITY_KIND = "PublishAuthority"
PUBLISH_REALM = "mavenrepo.publishing"


def password_digest(password: str) -> bytes:
    return hashlib.sha256(password.encode("utf-8")).digest()


def encode_password(password: str) -> str:
    """Base64 SHA-256 digest, the form stored in ``PublishAuthority.key``."""
    return base64.b64encode(password_digest(password)).decode("ascii")


def authority_key(username: str) -> CatalogKey:
    return CatalogKey(PUBLISH_AUTHORITY_KIND, username)


def load_authority(store: CatalogStore, username: str) -> Optional[PublishAuthority]:
    entity = store.get(authority_key(username))
    if entity is None:
        return None
    return PublishAuthority(
        name=username,
        key=str(entity.properties.get("key") or ""),
        authority=tuple(entity.properties.get("authority") or ()),
    )


def save_authority(
    store: CatalogStore,
    username: str,
    password: str,
    prefixes: Iterable[str],
) -> PublishAuthority:
    """Create or replace a publisher record (administrative use)."""

    authority = PublishAuthority(
        name=username,
        key=encode_password(password),
        authority=tuple(prefixes),
    )
    store.put(
        CatalogEntity(
            key=authority_key(username),
            properties={"key": authority.key, "authority": list(authority.authority)},
        )
    )
    return authority


def authenticate(
    store: CatalogStore, username: str | None, password: str | None
) -> Optional[PublishPrincipal]:
    """
    Return a principal for valid credentials and ``None`` otherwise.

    Never raises for bad credentials; callers translate ``None`` to a
    denial.
    """

    if not username or password is None:
        return None
    authority = load_authority(store, username)
    if authority is None:
        _LOGGER.warning("Publish authentication failed for unknown user=%s", username)
        return None
    try:
        stored = base64.b64decode(authority.key, validate=True)
    except (binascii.Error, ValueError):
        _LOGGER.error("Publish authority for user=%s has a corrupt key", username)
        return None
    if not hmac.compare_digest(stored, password_digest(password)):
        _LOGGER.warning(
            "Publish authentication failed for user=%s due to bad password",
            username,
        )
        return None
    return PublishPrincipal(username=username, authority=authority.authority)


def require_path_authorized(principal: PublishPrincipal, path: str) -> None:
    """Raise ``AuthorizationFailure`` unless a prefix of ``principal`` covers ``path``."""

    if not principal.permits(path):
        _LOGGER.warning(
            "User=%s is not authorized to publish to %s", principal.username, path
        )
        raise AuthorizationFailure(
            f"User '{principal.username}' may not publish to '{path}'"
        )


def require_principal(
    store: CatalogStore, username: str | None, password: str | None
) -> PublishPrincipal:
    """Like ``authenticate`` but raises ``AuthenticationFailure`` on denial."""

    principal = authenticate(store, username, password)
    if principal is None:
        raise AuthenticationFailure(
            f"Invalid credentials for user '{username or ''}'"
        )
    return principal
