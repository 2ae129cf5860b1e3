"""
mavenrepo Repository
Introductory remarks: This module is part of the mavenrepo codebase.

Catalog domain models: cataloging events and HeadRef/SpecRef projections.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

GRADLE_PLUGIN_SUFFIX = ".gradle.plugin"


class _NotProvided:
    """Marker for a descriptor field that was absent from the document."""

    _instance: Optional["_NotProvided"] = None

    def __new__(cls) -> "_NotProvided":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_PROVIDED"

    def __reduce__(self) -> str:
        return "NOT_PROVIDED"


NOT_PROVIDED = _NotProvided()


@dataclass(frozen=True)
class Person:
    """A developer or contributor block from a project descriptor."""

    name: str
    id: Optional[str] = None
    email: Optional[str] = None
    url: Optional[str] = None
    organization: Optional[str] = None
    roles: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Person name cannot be empty")

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name}
        for key in ("id", "email", "url", "organization"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        if self.roles:
            payload["roles"] = list(self.roles)
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Person":
        return cls(
            name=payload["name"],
            id=payload.get("id"),
            email=payload.get("email"),
            url=payload.get("url"),
            organization=payload.get("organization"),
            roles=tuple(payload.get("roles") or ()),
        )


@dataclass(frozen=True)
class Organization:
    """Publishing organization."""

    name: Optional[str] = None
    url: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in (("name", self.name), ("url", self.url))
            if value is not None
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Organization":
        return cls(name=payload.get("name"), url=payload.get("url"))


@dataclass(frozen=True)
class Scm:
    """Source-control reference."""

    url: Optional[str] = None
    connection: Optional[str] = None
    developer_connection: Optional[str] = None
    tag: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        payload = {
            "url": self.url,
            "connection": self.connection,
            "developerConnection": self.developer_connection,
            "tag": self.tag,
        }
        return {key: value for key, value in payload.items() if value is not None}

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Scm":
        return cls(
            url=payload.get("url"),
            connection=payload.get("connection"),
            developer_connection=payload.get("developerConnection"),
            tag=payload.get("tag"),
        )


Pointer = Union[Optional[str], _NotProvided]

# Entity property names for accumulated (non-pointer) metadata.
EXTENDED_PROPERTIES = (
    "name",
    "description",
    "url",
    "developers",
    "contributors",
    "organization",
    "scm",
)


@dataclass(frozen=True)
class CatalogEvent:
    """
    One cataloging request for a single group/artifact/version.

    Every optional attribute defaults to ``NOT_PROVIDED`` so the writer can
    tell "absent from the document" apart from an explicit value.
    """

    group_id: str
    artifact_id: str
    version: str
    latest: Pointer = NOT_PROVIDED
    release: Pointer = NOT_PROVIDED
    name: Any = NOT_PROVIDED
    description: Any = NOT_PROVIDED
    url: Any = NOT_PROVIDED
    developers: Any = NOT_PROVIDED
    contributors: Any = NOT_PROVIDED
    organization: Any = NOT_PROVIDED
    scm: Any = NOT_PROVIDED

    def __post_init__(self) -> None:
        for attr in ("group_id", "artifact_id", "version"):
            if not getattr(self, attr):
                raise ValueError(f"Catalog event requires '{attr}'")

    @property
    def coordinate(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"

    @property
    def carries_pointers(self) -> bool:
        """True for events derived from a version-index descriptor."""
        return self.latest is not NOT_PROVIDED or self.release is not NOT_PROVIDED

    @property
    def is_plugin(self) -> bool:
        return is_plugin_marker(self.group_id, self.artifact_id)

    def pointer_properties(self) -> dict[str, Optional[str]]:
        """Pointer fields as entity properties; missing pointers become null."""
        if not self.carries_pointers:
            return {}
        return {
            "latest": None if self.latest is NOT_PROVIDED else self.latest,
            "release": None if self.release is NOT_PROVIDED else self.release,
        }

    def extended_properties(self) -> dict[str, Any]:
        """Provided metadata fields encoded as entity properties."""
        properties: dict[str, Any] = {}
        for prop in EXTENDED_PROPERTIES:
            value = getattr(self, prop)
            if value is NOT_PROVIDED:
                continue
            properties[prop] = _encode_property(value)
        return properties


def is_plugin_marker(group_id: str, artifact_id: str) -> bool:
    """Gradle plugin marker artifacts are named ``<id>:<id>.gradle.plugin``."""
    return artifact_id == f"{group_id}{GRADLE_PLUGIN_SUFFIX}"


def _encode_property(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_encode_property(item) for item in value]
    if isinstance(value, (Person, Organization, Scm)):
        return value.to_payload()
    return value


@dataclass(frozen=True)
class HeadRef:
    """Latest-known pointers for one group/artifact pair."""

    group_id: str
    artifact_id: str
    repository: str
    latest_version: Optional[str] = None
    latest_release_version: Optional[str] = None
    is_plugin: bool = False
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def fully_qualified_name(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"

    @property
    def developers(self) -> list[Person]:
        return [Person.from_payload(p) for p in self.metadata.get("developers") or []]

    @property
    def contributors(self) -> list[Person]:
        return [
            Person.from_payload(p) for p in self.metadata.get("contributors") or []
        ]

    @property
    def organization(self) -> Optional[Organization]:
        raw = self.metadata.get("organization")
        return Organization.from_payload(raw) if raw else None

    @property
    def scm(self) -> Optional[Scm]:
        raw = self.metadata.get("scm")
        return Scm.from_payload(raw) if raw else None

    def to_payload(self, base_url: str) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "groupId": self.group_id,
            "artifactId": self.artifact_id,
            "repository": self.repository,
            "latestVersion": self.latest_version,
            "latestReleaseVersion": self.latest_release_version,
            "isPlugin": self.is_plugin,
            "fullyQualifiedName": self.fully_qualified_name,
            "repositoryUrl": repository_url(base_url, self.repository),
        }
        payload.update(dict(self.metadata))
        return payload

    @classmethod
    def from_entity(cls, properties: Mapping[str, Any]) -> "HeadRef":
        return cls(
            group_id=properties["groupId"],
            artifact_id=properties["artifactId"],
            repository=properties["repository"],
            latest_version=properties.get("latest"),
            latest_release_version=properties.get("release"),
            is_plugin=bool(properties.get("isPlugin", False)),
            metadata=_metadata_from_entity(properties),
        )


@dataclass(frozen=True)
class SpecRef(HeadRef):
    """Catalog record for one specific group/artifact/version."""

    version: str = ""

    @property
    def fully_qualified_name(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"

    def to_payload(self, base_url: str) -> dict[str, Any]:
        payload = super().to_payload(base_url)
        payload["version"] = self.version
        return payload

    @classmethod
    def from_entity(cls, properties: Mapping[str, Any]) -> "SpecRef":
        return cls(
            group_id=properties["groupId"],
            artifact_id=properties["artifactId"],
            version=properties["version"],
            repository=properties["repository"],
            latest_version=properties.get("latest"),
            latest_release_version=properties.get("release"),
            is_plugin=bool(properties.get("isPlugin", False)),
            metadata=_metadata_from_entity(properties),
        )


def _metadata_from_entity(properties: Mapping[str, Any]) -> dict[str, Any]:
    return {
        prop: properties[prop] for prop in EXTENDED_PROPERTIES if prop in properties
    }


def repository_url(base_url: str, repository: str) -> str:
    """Public URL consumers add to their build to resolve from ``repository``."""
    return f"{base_url.rstrip('/')}/{repository}/"
