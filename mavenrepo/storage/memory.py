"""In-memory catalog store for development and tests."""

from __future__ import annotations

import copy
import threading
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .catalog_store import (DEFAULT_NAMESPACE, CatalogEntity, CatalogKey,
                            CatalogStore, CatalogTransaction, matches_filters,
                            put_entity, validate_window)
from .errors import OrphanEntityError, TransactionConflict


class InMemoryCatalogTransaction(CatalogTransaction):
    """Optimistic transaction over an ``InMemoryCatalogStore``."""

    def __init__(self, store: "InMemoryCatalogStore") -> None:
        super().__init__()
        self._store = store

    def _read(self, key: CatalogKey) -> tuple[Optional[CatalogEntity], Any]:
        return self._store._snapshot(key)

    def _apply(
        self,
        writes: Sequence[CatalogEntity],
        reads: Mapping[CatalogKey, Any],
    ) -> None:
        self._store._apply(writes, reads)


class InMemoryCatalogStore(CatalogStore):
    """Dictionary-backed catalog store with versioned entities."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entities: Dict[CatalogKey, tuple[CatalogEntity, int]] = {}

    def get(self, key: CatalogKey) -> Optional[CatalogEntity]:
        entity, _ = self._snapshot(key)
        return entity

    def put(self, entity: CatalogEntity) -> None:
        put_entity(self, entity)

    def transaction(self) -> InMemoryCatalogTransaction:
        return InMemoryCatalogTransaction(self)

    def query(
        self,
        kind: str,
        *,
        namespace: Optional[str] = DEFAULT_NAMESPACE,
        filters: Optional[Mapping[str, Any]] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[CatalogEntity]:
        validate_window(offset, limit)
        matched = self._matching(kind, namespace, filters)
        end = None if limit is None else offset + limit
        return matched[offset:end]

    def count(
        self,
        kind: str,
        *,
        namespace: Optional[str] = DEFAULT_NAMESPACE,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> int:
        return len(self._matching(kind, namespace, filters))

    def reset(self) -> None:
        with self._lock:
            self._entities.clear()

    def _matching(
        self,
        kind: str,
        namespace: Optional[str],
        filters: Optional[Mapping[str, Any]],
    ) -> List[CatalogEntity]:
        with self._lock:
            entities = [entity for entity, _ in self._entities.values()]
        matched = [
            entity
            for entity in entities
            if entity.key.kind == kind
            and (namespace is None or entity.key.namespace == namespace)
            and matches_filters(entity.properties, filters)
        ]
        matched.sort(key=lambda e: (e.key.namespace, e.key.name))
        return [copy.deepcopy(entity) for entity in matched]

    def _snapshot(self, key: CatalogKey) -> tuple[Optional[CatalogEntity], int]:
        with self._lock:
            stored = self._entities.get(key)
        if stored is None:
            return None, 0
        entity, version = stored
        return copy.deepcopy(entity), version

    def _apply(
        self,
        writes: Sequence[CatalogEntity],
        reads: Mapping[CatalogKey, Any],
    ) -> None:
        with self._lock:
            for key, version in reads.items():
                current = self._entities.get(key)
                current_version = current[1] if current is not None else 0
                if current_version != version:
                    raise TransactionConflict(
                        f"{key} changed since it was read "
                        f"(read v{version}, now v{current_version})"
                    )
            staged_keys = {entity.key for entity in writes}
            for entity in writes:
                parent = entity.key.parent
                if (
                    parent is not None
                    and parent not in staged_keys
                    and parent not in self._entities
                ):
                    raise OrphanEntityError(
                        f"Parent {parent} of {entity.key} does not exist"
                    )
            # Validation done; from here on every write lands.
            for entity in writes:
                previous = self._entities.get(entity.key)
                version = previous[1] + 1 if previous is not None else 1
                self._entities[entity.key] = (copy.deepcopy(entity), version)
