"""
mavenrepo Repository
Introductory remarks: This module is part of the mavenrepo codebase.

Catalog store contract: ancestor-keyed entities and all-or-nothing
transactions.

A transaction follows a 3-stage API:
  (1) Begin: ``store.transaction()`` opens an empty transaction
  (2) Stage: ``get`` records what was read, ``put`` stages a write
  (3) Commit: every staged write is applied together, or none is

Backends detect conflicting concurrent commits optimistically: a commit
fails with ``TransactionConflict`` when an entity read inside the
transaction changed before the commit landed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence

from .errors import OrphanEntityError, TransactionClosedError

_LOGGER = logging.getLogger(__name__)

DEFAULT_NAMESPACE = ""


@dataclass(frozen=True)
class CatalogKey:
    """
    Key of a catalog entity.

    ``parent`` models the ancestor relationship: a child key always lives in
    its parent's namespace and commits only when the parent exists.
    """

    kind: str
    name: str
    namespace: str = DEFAULT_NAMESPACE
    parent: Optional["CatalogKey"] = None

    def __post_init__(self) -> None:
        if not self.kind or not self.name:
            raise ValueError("Catalog keys require a kind and a name")
        if self.parent is not None and self.parent.namespace != self.namespace:
            raise ValueError("Child keys must share their parent's namespace")

    @property
    def path(self) -> tuple[tuple[str, str], ...]:
        """(kind, name) pairs from the root ancestor down to this key."""
        own = ((self.kind, self.name),)
        if self.parent is None:
            return own
        return self.parent.path + own

    @property
    def root(self) -> "CatalogKey":
        return self if self.parent is None else self.parent.root

    def __str__(self) -> str:
        path = "/".join(f"{kind}:{name}" for kind, name in self.path)
        return f"{self.namespace or '<default>'}/{path}"


@dataclass(frozen=True)
class CatalogEntity:
    """A keyed bag of properties."""

    key: CatalogKey
    properties: Mapping[str, Any] = field(default_factory=dict)


class CatalogTransaction:
    """Base transaction: tracks reads and staged writes for one commit."""

    def __init__(self) -> None:
        self._staged: Dict[CatalogKey, CatalogEntity] = {}
        self._reads: Dict[CatalogKey, Any] = {}
        self._state = "open"

    @property
    def is_open(self) -> bool:
        return self._state == "open"

    @property
    def staged(self) -> Sequence[CatalogEntity]:
        return tuple(self._staged.values())

    def get(self, key: CatalogKey) -> Optional[CatalogEntity]:
        """Return the staged or stored entity, recording the read version."""
        self._require_open()
        if key in self._staged:
            return self._staged[key]
        entity, version = self._read(key)
        self._reads.setdefault(key, version)
        return entity

    def put(self, entity: CatalogEntity) -> None:
        """Stage ``entity``; its parent must be staged or already stored."""
        self._require_open()
        parent = entity.key.parent
        if parent is not None and self.get(parent) is None:
            raise OrphanEntityError(
                f"Cannot stage {entity.key} without parent {parent}"
            )
        self._staged[entity.key] = entity

    def commit(self) -> None:
        self._require_open()
        try:
            if self._staged:
                self._apply(tuple(self._staged.values()), dict(self._reads))
        except Exception:
            self._discard("rolled back")
            raise
        self._discard("committed")

    def rollback(self) -> None:
        if self.is_open:
            _LOGGER.debug("Rolling back %d staged writes", len(self._staged))
        self._discard("rolled back")

    def __enter__(self) -> "CatalogTransaction":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # Leaving the block without commit() discards the staged writes.
        if self.is_open:
            self.rollback()

    def _discard(self, state: str) -> None:
        self._staged.clear()
        self._reads.clear()
        self._state = state

    def _require_open(self) -> None:
        if not self.is_open:
            raise TransactionClosedError(f"Transaction already {self._state}")

    def _read(self, key: CatalogKey) -> tuple[Optional[CatalogEntity], Any]:
        """Return the stored entity and an opaque version token."""
        raise NotImplementedError

    def _apply(
        self,
        writes: Sequence[CatalogEntity],
        reads: Mapping[CatalogKey, Any],
    ) -> None:
        """Atomically apply ``writes`` if every version in ``reads`` holds."""
        raise NotImplementedError


class CatalogStore(Protocol):
    """Persistence contract for catalog entities."""

    def get(self, key: CatalogKey) -> Optional[CatalogEntity]:
        """Return the entity or ``None``."""

    def put(self, entity: CatalogEntity) -> None:
        """Write a single entity in its own transaction."""

    def transaction(self) -> CatalogTransaction:
        """Open a new transaction."""

    def query(
        self,
        kind: str,
        *,
        namespace: Optional[str] = DEFAULT_NAMESPACE,
        filters: Optional[Mapping[str, Any]] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[CatalogEntity]:
        """
        List entities of ``kind`` whose properties equal every filter.

        ``namespace=None`` spans all namespaces. Results are ordered by
        namespace then key name so offset pagination is stable.
        """

    def count(
        self,
        kind: str,
        *,
        namespace: Optional[str] = DEFAULT_NAMESPACE,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> int:
        """Count entities matching the same criteria as ``query``."""


def put_entity(store: CatalogStore, entity: CatalogEntity) -> None:
    """Single-entity write shared by the backends."""

    with store.transaction() as txn:
        txn.get(entity.key)
        txn.put(entity)
        txn.commit()


def matches_filters(
    properties: Mapping[str, Any], filters: Optional[Mapping[str, Any]]
) -> bool:
    if not filters:
        return True
    return all(
        name in properties and properties[name] == value
        for name, value in filters.items()
    )


def validate_window(offset: int, limit: Optional[int]) -> None:
    if offset < 0 or (limit is not None and limit < 0):
        raise ValueError("offset and limit must be non-negative")
