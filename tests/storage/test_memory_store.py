from __future__ import annotations

import pytest

from mavenrepo.storage.catalog_store import CatalogEntity, CatalogKey
from mavenrepo.storage.errors import (OrphanEntityError,
                                      TransactionClosedError,
                                      TransactionConflict)
from mavenrepo.storage.memory import InMemoryCatalogStore


def _head(name: str = "g:a", namespace: str = "public") -> CatalogKey:
    return CatalogKey("HeadRef", name, namespace)


def _spec(version: str, head: CatalogKey | None = None) -> CatalogKey:
    head = head or _head()
    return CatalogKey("SpecRef", f"{head.name}:{version}", head.namespace, head)


def test_put_and_get_round_trip_is_isolated_from_caller_mutation() -> None:
    store = InMemoryCatalogStore()
    properties = {"groupId": "g", "tags": ["x"]}
    store.put(CatalogEntity(_head(), properties))
    properties["tags"].append("y")

    stored = store.get(_head())
    assert stored is not None
    assert stored.properties == {"groupId": "g", "tags": ["x"]}
    assert store.get(_head("missing")) is None


def test_transaction_commits_all_staged_writes_together() -> None:
    store = InMemoryCatalogStore()
    with store.transaction() as txn:
        txn.put(CatalogEntity(_head(), {"groupId": "g"}))
        txn.put(CatalogEntity(_spec("1.0"), {"version": "1.0"}))
        assert store.get(_head()) is None
        txn.commit()

    assert store.get(_head()) is not None
    assert store.get(_spec("1.0")) is not None


def test_leaving_block_without_commit_discards_writes() -> None:
    store = InMemoryCatalogStore()
    with store.transaction() as txn:
        txn.put(CatalogEntity(_head(), {"groupId": "g"}))

    assert store.get(_head()) is None
    with pytest.raises(TransactionClosedError):
        txn.put(CatalogEntity(_head(), {}))


def test_exception_inside_block_rolls_back() -> None:
    store = InMemoryCatalogStore()
    with pytest.raises(RuntimeError, match="boom"):
        with store.transaction() as txn:
            txn.put(CatalogEntity(_head(), {"groupId": "g"}))
            raise RuntimeError("boom")
    assert store.get(_head()) is None


def test_child_without_parent_is_rejected() -> None:
    store = InMemoryCatalogStore()
    txn = store.transaction()
    with pytest.raises(OrphanEntityError):
        txn.put(CatalogEntity(_spec("1.0"), {"version": "1.0"}))


def test_child_of_stored_parent_may_be_staged_alone() -> None:
    store = InMemoryCatalogStore()
    store.put(CatalogEntity(_head(), {"groupId": "g"}))
    store.put(CatalogEntity(_spec("1.0"), {"version": "1.0"}))
    assert store.get(_spec("1.0")).properties == {"version": "1.0"}


def test_concurrent_commit_on_read_entity_conflicts() -> None:
    store = InMemoryCatalogStore()
    store.put(CatalogEntity(_head(), {"latest": "1.0"}))

    first = store.transaction()
    second = store.transaction()
    first.get(_head())
    second.get(_head())
    first.put(CatalogEntity(_head(), {"latest": "1.1"}))
    second.put(CatalogEntity(_head(), {"latest": "2.0"}))

    first.commit()
    with pytest.raises(TransactionConflict):
        second.commit()

    assert store.get(_head()).properties == {"latest": "1.1"}
    assert not second.is_open


def test_conflict_leaves_no_partial_writes() -> None:
    store = InMemoryCatalogStore()
    store.put(CatalogEntity(_head(), {"latest": "1.0"}))

    txn = store.transaction()
    txn.get(_head())
    txn.put(CatalogEntity(_head(), {"latest": "1.1"}))
    txn.put(CatalogEntity(_spec("1.1"), {"version": "1.1"}))
    store.put(CatalogEntity(_head(), {"latest": "9.9"}))

    with pytest.raises(TransactionConflict):
        txn.commit()
    assert store.get(_spec("1.1")) is None
    assert store.get(_head()).properties == {"latest": "9.9"}


def test_query_filters_orders_and_paginates() -> None:
    store = InMemoryCatalogStore()
    for group, artifact, namespace in (
        ("b", "x", "public"),
        ("a", "x", "public"),
        ("a", "y", "public"),
        ("a", "x", "native"),
    ):
        store.put(
            CatalogEntity(
                _head(f"{group}:{artifact}", namespace),
                {"groupId": group, "artifactId": artifact},
            )
        )

    names = [e.key.name for e in store.query("HeadRef", namespace="public")]
    assert names == ["a:x", "a:y", "b:x"]

    filtered = store.query("HeadRef", namespace="public", filters={"groupId": "a"})
    assert [e.key.name for e in filtered] == ["a:x", "a:y"]

    page = store.query("HeadRef", namespace="public", offset=1, limit=1)
    assert [e.key.name for e in page] == ["a:y"]

    everywhere = store.query("HeadRef", namespace=None, filters={"artifactId": "x"})
    assert [(e.key.namespace, e.key.name) for e in everywhere] == [
        ("native", "a:x"),
        ("public", "a:x"),
        ("public", "b:x"),
    ]
    assert store.count("HeadRef", namespace="public") == 3
    assert store.count("SpecRef", namespace="public") == 0

    with pytest.raises(ValueError, match="non-negative"):
        store.query("HeadRef", offset=-1)


def test_child_keys_must_share_parent_namespace() -> None:
    with pytest.raises(ValueError, match="namespace"):
        CatalogKey("SpecRef", "g:a:1", "native", parent=_head())
