"""
mavenrepo Repository
Introductory remarks: This module is part of the mavenrepo codebase.

Parsers for the two descriptor documents that feed the catalog:

* version index (``maven-metadata.xml``): one event per listed version,
  each carrying the document's latest/release pointers;
* project descriptor (``*.pom``): one event carrying publisher metadata.

Fields missing from the document come back as ``NOT_PROVIDED`` so the
writer can leave stored values alone. XML namespaces are ignored.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from mavenrepo.errors import DescriptorParseIncomplete
from mavenrepo.models.catalog import (NOT_PROVIDED, CatalogEvent,
                                      Organization, Person, Scm)
from mavenrepo.storage.bucket import DescriptorKind

_LOGGER = logging.getLogger(__name__)

Source = Union[Path, str, bytes]


class MalformedDescriptor(DescriptorParseIncomplete):
    """Raised when a descriptor is not well-formed XML."""


def parse_descriptor(kind: DescriptorKind, source: Source) -> List[CatalogEvent]:
    """Dispatch to the parser for ``kind``."""

    if kind is DescriptorKind.VERSION_INDEX:
        return parse_version_index(source)
    return [parse_project_descriptor(source)]


def parse_version_index(source: Source) -> List[CatalogEvent]:
    root = _load(source)
    group_id = _required_text(root, "groupId")
    artifact_id = _required_text(root, "artifactId")

    versioning = _child(root, "versioning")
    if versioning is None:
        _LOGGER.debug("No <versioning> in index for %s:%s", group_id, artifact_id)
        return []
    latest = _text(_child(versioning, "latest")) or None
    release = _text(_child(versioning, "release")) or None
    versions = _child(versioning, "versions")
    if versions is None:
        return []

    events: List[CatalogEvent] = []
    seen: set[str] = set()
    for element in _children(versions, "version"):
        version = _text(element)
        if not version or version in seen:
            continue
        seen.add(version)
        events.append(
            CatalogEvent(
                group_id=group_id,
                artifact_id=artifact_id,
                version=version,
                latest=latest,
                release=release,
            )
        )
    return events


def parse_project_descriptor(source: Source) -> CatalogEvent:
    root = _load(source)
    parent = _child(root, "parent")

    group_id = _text(_child(root, "groupId")) or _text(_child(parent, "groupId"))
    if not group_id:
        raise DescriptorParseIncomplete(
            "Project descriptor is missing <groupId>", field="groupId"
        )
    artifact_id = _required_text(root, "artifactId")
    version = _text(_child(root, "version")) or _text(_child(parent, "version"))
    if not version:
        raise DescriptorParseIncomplete(
            "Project descriptor is missing <version>", field="version"
        )

    return CatalogEvent(
        group_id=group_id,
        artifact_id=artifact_id,
        version=version,
        name=_optional_text(root, "name"),
        description=_optional_text(root, "description"),
        url=_optional_text(root, "url"),
        developers=_people(root, "developers", "developer"),
        contributors=_people(root, "contributors", "contributor"),
        organization=_organization(root),
        scm=_scm(root),
    )


def _load(source: Source) -> ET.Element:
    try:
        if isinstance(source, bytes):
            return ET.fromstring(source)
        return ET.parse(str(source)).getroot()
    except ET.ParseError as exc:
        raise MalformedDescriptor(f"Descriptor is not well-formed: {exc}") from exc


def _local(tag: Any) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _children(element: Optional[ET.Element], name: str) -> Iterable[ET.Element]:
    if element is None:
        return []
    return [child for child in element if _local(child.tag) == name]


def _child(element: Optional[ET.Element], name: str) -> Optional[ET.Element]:
    for child in _children(element, name):
        return child
    return None


def _text(element: Optional[ET.Element]) -> str:
    if element is None or element.text is None:
        return ""
    return element.text.strip()


def _required_text(element: ET.Element, name: str) -> str:
    value = _text(_child(element, name))
    if not value:
        raise DescriptorParseIncomplete(
            f"Descriptor is missing <{name}>", field=name
        )
    return value


def _optional_text(element: ET.Element, name: str) -> Any:
    child = _child(element, name)
    if child is None:
        return NOT_PROVIDED
    return _text(child)


def _people(root: ET.Element, container: str, entry: str) -> Any:
    block = _child(root, container)
    if block is None:
        return NOT_PROVIDED
    people: List[Person] = []
    for element in _children(block, entry):
        name = _text(_child(element, "name"))
        if not name:
            _LOGGER.debug("Dropping <%s> without a name", entry)
            continue
        people.append(
            Person(
                name=name,
                id=_text(_child(element, "id")) or None,
                email=_text(_child(element, "email")) or None,
                url=_text(_child(element, "url")) or None,
                organization=_text(_child(element, "organization")) or None,
                roles=tuple(
                    role
                    for role in (
                        _text(r) for r in _children(_child(element, "roles"), "role")
                    )
                    if role
                ),
            )
        )
    return people


def _organization(root: ET.Element) -> Any:
    element = _child(root, "organization")
    if element is None:
        return NOT_PROVIDED
    return Organization(
        name=_text(_child(element, "name")) or None,
        url=_text(_child(element, "url")) or None,
    )


def _scm(root: ET.Element) -> Any:
    element = _child(root, "scm")
    if element is None:
        return NOT_PROVIDED
    return Scm(
        url=_text(_child(element, "url")) or None,
        connection=_text(_child(element, "connection")) or None,
        developer_connection=_text(_child(element, "developerConnection")) or None,
        tag=_text(_child(element, "tag")) or None,
    )
