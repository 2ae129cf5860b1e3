"""
mavenrepo Repository
Introductory remarks: This module is part of the mavenrepo codebase.

Catalog writer: upsert, merge and all-or-nothing behaviour.
"""

from __future__ import annotations

import pytest

from mavenrepo.catalog.descriptors import (parse_project_descriptor,
                                           parse_version_index)
from mavenrepo.catalog.writer import (HEAD_REF_KIND, SPEC_REF_KIND,
                                      CatalogWriter, head_key, merge_properties,
                                      spec_key)
from mavenrepo.errors import CatalogTransactionFailure
from mavenrepo.models.catalog import CatalogEvent, Person
from mavenrepo.storage.catalog_store import CatalogEntity
from mavenrepo.storage.memory import (InMemoryCatalogStore,
                                      InMemoryCatalogTransaction)


def _snapshot(store: InMemoryCatalogStore) -> dict:
    entities = store.query(HEAD_REF_KIND, namespace=None) + store.query(
        SPEC_REF_KIND, namespace=None
    )
    return {str(entity.key): dict(entity.properties) for entity in entities}


@pytest.fixture()
def writer(store: InMemoryCatalogStore) -> CatalogWriter:
    return CatalogWriter(store)


def test_version_index_creates_head_and_every_version(
    store, writer, version_index
) -> None:
    result = writer.ingest("public", parse_version_index(version_index))

    assert result.observed == 2
    assert result.updated == 3

    head = store.get(head_key("public", "com.example", "lib"))
    assert head is not None
    assert head.properties["latest"] == "1.1"
    assert head.properties["release"] == "1.0"
    assert head.properties["isPlugin"] is False

    for version in ("1.0", "1.1"):
        spec = store.get(spec_key("public", "com.example", "lib", version))
        assert spec is not None
        assert spec.key.parent == head.key
        assert spec.properties["version"] == version
        assert spec.properties["latest"] == "1.1"
        assert spec.properties["release"] == "1.0"


def test_project_descriptor_only_touches_its_own_version(
    store, writer, version_index, project_descriptor
) -> None:
    writer.ingest("public", parse_version_index(version_index))
    before = _snapshot(store)

    result = writer.ingest("public", [parse_project_descriptor(project_descriptor)])
    after = _snapshot(store)

    assert result.updated == 1
    changed = {key for key in after if after[key] != before.get(key)}
    assert changed == {str(spec_key("public", "com.example", "lib", "1.1"))}

    spec = after[str(spec_key("public", "com.example", "lib", "1.1"))]
    assert spec["developers"] == [{"name": "Ann"}]
    assert "organization" not in spec
    assert spec["latest"] == "1.1"
    assert spec["release"] == "1.0"


def test_fields_missing_from_a_later_descriptor_are_preserved(store, writer) -> None:
    writer.ingest(
        "public",
        [CatalogEvent("com.example", "lib", "2.0", description="A")],
    )
    writer.ingest(
        "public",
        [CatalogEvent("com.example", "lib", "2.0", developers=[Person(name="Dev1")])],
    )

    spec = store.get(spec_key("public", "com.example", "lib", "2.0"))
    assert spec.properties["description"] == "A"
    assert spec.properties["developers"] == [{"name": "Dev1"}]


def test_pointers_are_replaced_including_with_null(store, writer) -> None:
    writer.ingest(
        "public",
        [CatalogEvent("com.example", "lib", "1.0", latest="1.0", release="1.0")],
    )
    writer.ingest(
        "public",
        [CatalogEvent("com.example", "lib", "1.0", latest="1.1-SNAPSHOT", release=None)],
    )

    head = store.get(head_key("public", "com.example", "lib"))
    assert head.properties["latest"] == "1.1-SNAPSHOT"
    assert head.properties["release"] is None


def test_project_descriptor_does_not_clear_pointers(store, writer) -> None:
    writer.ingest(
        "public",
        [CatalogEvent("com.example", "lib", "1.0", latest="1.0", release="1.0")],
    )
    writer.ingest("public", [CatalogEvent("com.example", "lib", "1.0", name="Lib")])

    head = store.get(head_key("public", "com.example", "lib"))
    assert head.properties["latest"] == "1.0"
    assert head.properties["release"] == "1.0"
    # The release version's descriptor describes the artifact as a whole.
    assert head.properties["name"] == "Lib"


def test_non_release_descriptor_leaves_head_metadata_alone(store, writer) -> None:
    writer.ingest(
        "public",
        [
            CatalogEvent("com.example", "lib", v, latest="2.0", release="1.0")
            for v in ("1.0", "2.0")
        ],
    )
    writer.ingest("public", [CatalogEvent("com.example", "lib", "2.0", name="Next")])

    head = store.get(head_key("public", "com.example", "lib"))
    assert "name" not in head.properties
    spec = store.get(spec_key("public", "com.example", "lib", "2.0"))
    assert spec.properties["name"] == "Next"


def test_descriptor_for_unknown_artifact_seeds_the_head(store, writer) -> None:
    writer.ingest("public", [CatalogEvent("com.example", "new", "0.1", name="New")])

    head = store.get(head_key("public", "com.example", "new"))
    assert head.properties["name"] == "New"
    assert head.properties["latest"] is None
    assert head.properties["release"] is None


def test_reingesting_the_same_events_changes_nothing(
    store, writer, version_index
) -> None:
    writer.ingest("public", parse_version_index(version_index))
    before = _snapshot(store)

    result = writer.ingest("public", parse_version_index(version_index))

    assert result.updated == 0
    assert _snapshot(store) == before


def test_plugin_markers_are_flagged(store, writer) -> None:
    writer.ingest(
        "gradle-plugins",
        [
            CatalogEvent(
                "com.example.greet",
                "com.example.greet.gradle.plugin",
                "1.0",
                latest="1.0",
                release="1.0",
            )
        ],
    )

    head = store.get(
        head_key("gradle-plugins", "com.example.greet", "com.example.greet.gradle.plugin")
    )
    assert head.properties["isPlugin"] is True


def test_repositories_are_catalogued_separately(store, writer, version_index) -> None:
    writer.ingest("public", parse_version_index(version_index))

    assert store.get(head_key("native", "com.example", "lib")) is None
    assert store.count(SPEC_REF_KIND, namespace="public") == 2


def test_failure_between_head_and_spec_writes_nothing(
    store, writer, monkeypatch
) -> None:
    original_put = InMemoryCatalogTransaction.put

    def failing_put(self, entity: CatalogEntity) -> None:
        if entity.key.kind == SPEC_REF_KIND:
            raise RuntimeError("injected failure")
        original_put(self, entity)

    monkeypatch.setattr(InMemoryCatalogTransaction, "put", failing_put)

    with pytest.raises(CatalogTransactionFailure) as excinfo:
        writer.ingest(
            "public",
            [CatalogEvent("com.example", "lib", "1.0", latest="1.0", release="1.0")],
        )

    assert excinfo.value.coordinates == ("com.example:lib:1.0",)
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert store.get(head_key("public", "com.example", "lib")) is None
    assert store.get(spec_key("public", "com.example", "lib", "1.0")) is None


def test_commit_failure_is_reported_with_coordinates(
    store, writer, monkeypatch, version_index
) -> None:
    def failing_apply(self, writes, reads) -> None:
        raise RuntimeError("backend down")

    monkeypatch.setattr(InMemoryCatalogTransaction, "_apply", failing_apply)

    with pytest.raises(CatalogTransactionFailure) as excinfo:
        writer.ingest("public", parse_version_index(version_index))

    assert excinfo.value.coordinates == (
        "com.example:lib:1.0",
        "com.example:lib:1.1",
    )
    assert _snapshot(store) == {}


def test_no_events_is_a_no_op(writer) -> None:
    result = writer.ingest("public", [])
    assert (result.observed, result.updated) == (0, 0)


def test_merge_properties_starts_new_records_with_null_pointers() -> None:
    merged = merge_properties(None, {"groupId": "g"}, {"name": "N"})
    assert merged == {"groupId": "g", "latest": None, "release": None, "name": "N"}
