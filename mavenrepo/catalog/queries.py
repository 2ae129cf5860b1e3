"""Read-only projections over the catalog store."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from mavenrepo.models.catalog import HeadRef, SpecRef
from mavenrepo.storage.catalog_store import CatalogStore

from .writer import HEAD_REF_KIND, SPEC_REF_KIND, head_key, spec_key

PAGE_SIZE = 20


def _filters(group_id: Optional[str], artifact_id: Optional[str]) -> Dict[str, Any]:
    filters: Dict[str, Any] = {}
    if group_id:
        filters["groupId"] = group_id
    if artifact_id:
        filters["artifactId"] = artifact_id
    return filters


def list_spec_refs(
    store: CatalogStore,
    *,
    page: int = 0,
    repository: Optional[str] = None,
    group_id: Optional[str] = None,
    artifact_id: Optional[str] = None,
) -> List[SpecRef]:
    """Zero-based page of SpecRefs; ``repository=None`` spans every repository."""
    if page < 0:
        raise ValueError("page must be non-negative")
    entities = store.query(
        SPEC_REF_KIND,
        namespace=repository,
        filters=_filters(group_id, artifact_id),
        offset=page * PAGE_SIZE,
        limit=PAGE_SIZE,
    )
    return [SpecRef.from_entity(entity.properties) for entity in entities]


def count_spec_refs(
    store: CatalogStore,
    repository: str,
    group_id: str,
    artifact_id: str,
) -> int:
    return store.count(
        SPEC_REF_KIND,
        namespace=repository,
        filters=_filters(group_id, artifact_id),
    )


def get_spec_ref(
    store: CatalogStore,
    repository: str,
    group_id: str,
    artifact_id: str,
    version: str,
) -> Optional[SpecRef]:
    entity = store.get(spec_key(repository, group_id, artifact_id, version))
    return None if entity is None else SpecRef.from_entity(entity.properties)


def list_head_refs(
    store: CatalogStore, repository: str, *, page: int = 0
) -> List[HeadRef]:
    if page < 0:
        raise ValueError("page must be non-negative")
    entities = store.query(
        HEAD_REF_KIND,
        namespace=repository,
        offset=page * PAGE_SIZE,
        limit=PAGE_SIZE,
    )
    return [HeadRef.from_entity(entity.properties) for entity in entities]


def get_head_ref(
    store: CatalogStore, repository: str, group_id: str, artifact_id: str
) -> Optional[HeadRef]:
    entity = store.get(head_key(repository, group_id, artifact_id))
    return None if entity is None else HeadRef.from_entity(entity.properties)


def latest_release_version(
    store: CatalogStore, repository: str, coordinate: str
) -> Optional[str]:
    """Latest release of ``group:artifact`` or ``None`` when unknown."""
    group_id, sep, artifact_id = coordinate.partition(":")
    if not sep or not group_id or not artifact_id:
        raise ValueError(f"'{coordinate}' is not a group:artifact coordinate")
    head = get_head_ref(store, repository, group_id, artifact_id)
    return None if head is None else head.latest_release_version


def parse_spec_coordinate(coordinate: str) -> tuple[str, str, str]:
    """Split ``group:artifact:version``."""
    parts = coordinate.split(":")
    if len(parts) != 3 or not all(parts):
        raise ValueError(
            f"'{coordinate}' is not a group:artifact:version coordinate"
        )
    return parts[0], parts[1], parts[2]
