"""
mavenrepo Repository
Introductory remarks: This module is part of the mavenrepo codebase.

Transactional upsert of HeadRef/SpecRef entities from cataloging events.

Every ingestion runs in exactly one catalog transaction: the HeadRef and
SpecRef writes for all events of a descriptor commit together or not at
all. Merging keeps stored fields the new document does not mention;
latest/release pointers are owned by the version index and are replaced
(including with null) whenever a version index is ingested.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence

from mavenrepo.errors import CatalogTransactionFailure
from mavenrepo.models.catalog import CatalogEvent
from mavenrepo.storage.catalog_store import (CatalogEntity, CatalogKey,
                                             CatalogStore, CatalogTransaction)

_LOGGER = logging.getLogger(__name__)

HEAD_REF_KIND = "HeadRef"
SPEC_REF_KIND = "SpecRef"


def head_key(repository: str, group_id: str, artifact_id: str) -> CatalogKey:
    return CatalogKey(HEAD_REF_KIND, f"{group_id}:{artifact_id}", repository)


def spec_key(
    repository: str, group_id: str, artifact_id: str, version: str
) -> CatalogKey:
    return CatalogKey(
        SPEC_REF_KIND,
        f"{group_id}:{artifact_id}:{version}",
        repository,
        parent=head_key(repository, group_id, artifact_id),
    )


@dataclass(frozen=True)
class IngestResult:
    """Summary of one committed ingestion."""

    repository: str
    observed: int
    updated: int


class CatalogWriter:
    """Turns cataloging events into one atomic catalog commit."""

    def __init__(self, store: CatalogStore) -> None:
        self._store = store

    def ingest(
        self, repository: str, events: Sequence[CatalogEvent]
    ) -> IngestResult:
        """
        Merge ``events`` into the catalog of ``repository``.

        Raises ``CatalogTransactionFailure`` after rolling back when any
        staging step or the commit fails; nothing is written in that case.
        """

        if not events:
            return IngestResult(repository=repository, observed=0, updated=0)

        coordinates = tuple(event.coordinate for event in events)
        txn = self._store.transaction()
        with txn:
            try:
                for event in events:
                    _LOGGER.debug("Cataloging artifact %s", event.coordinate)
                    self._stage(txn, repository, event)
                updated = len(txn.staged)
                txn.commit()
            except Exception as exc:  # noqa: BLE001
                txn.rollback()
                raise CatalogTransactionFailure(
                    f"Cataloging {', '.join(coordinates)} in '{repository}' "
                    f"failed: {exc}",
                    coordinates=coordinates,
                ) from exc
        return IngestResult(
            repository=repository, observed=len(events), updated=updated
        )

    def _stage(
        self, txn: CatalogTransaction, repository: str, event: CatalogEvent
    ) -> None:
        identity = {
            "groupId": event.group_id,
            "artifactId": event.artifact_id,
            "repository": repository,
            "isPlugin": event.is_plugin,
        }

        key = head_key(repository, event.group_id, event.artifact_id)
        existing_head = txn.get(key)
        head_updates = dict(event.pointer_properties())
        if _describes_head(existing_head, event):
            head_updates.update(event.extended_properties())
        head = merge_properties(existing_head, identity, head_updates)
        _stage_if_changed(txn, existing_head, CatalogEntity(key, head))

        key = spec_key(repository, event.group_id, event.artifact_id, event.version)
        existing_spec = txn.get(key)
        spec_updates = dict(event.pointer_properties())
        spec_updates.update(event.extended_properties())
        spec = merge_properties(
            existing_spec, dict(identity, version=event.version), spec_updates
        )
        _stage_if_changed(txn, existing_spec, CatalogEntity(key, spec))


def merge_properties(
    existing: Optional[CatalogEntity],
    identity: Mapping[str, Any],
    updates: Mapping[str, Any],
) -> Dict[str, Any]:
    """
    Overlay ``updates`` on the stored properties.

    Fields missing from ``updates`` keep their stored value. A brand-new
    record starts with null latest/release pointers.
    """

    merged: Dict[str, Any] = dict(existing.properties) if existing else {}
    merged.update(identity)
    merged.setdefault("latest", None)
    merged.setdefault("release", None)
    merged.update(updates)
    return merged


def _describes_head(existing: Optional[CatalogEntity], event: CatalogEvent) -> bool:
    """Project metadata reaches the HeadRef only from its release version."""
    if event.carries_pointers:
        return False
    if existing is None:
        return True
    return existing.properties.get("release") == event.version


def _stage_if_changed(
    txn: CatalogTransaction,
    existing: Optional[CatalogEntity],
    entity: CatalogEntity,
) -> None:
    if existing is not None and dict(existing.properties) == entity.properties:
        return
    _LOGGER.debug(
        "Writing %s: %s, latest = %s, release = %s",
        entity.key.kind,
        entity.key.name,
        entity.properties.get("latest"),
        entity.properties.get("release"),
    )
    txn.put(entity)
