"""
mavenrepo Repository
Introductory remarks: This module is part of the mavenrepo codebase.

Local bucket storage: path safety checks and idempotent file writes under a
repository root.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePath, PurePosixPath
from typing import BinaryIO, Optional, Union

from mavenrepo.errors import PathSafetyViolation

from .errors import BlobNotFoundError, BlobStoreError

_LOGGER = logging.getLogger(__name__)

VERSION_INDEX_FILENAME = "maven-metadata.xml"
PROJECT_DESCRIPTOR_SUFFIX = ".pom"
# Directories named like ``<name>_<debug|release>_<platform>`` hold native
# variants whose descriptors must not be cataloged.
VARIANT_DIRECTORY = re.compile(r"([^_]+)_(debug|release)_([^_]+)")

_CHUNK_SIZE = 64 * 1024


class DescriptorKind(str, Enum):
    """Descriptor documents that trigger cataloging."""

    VERSION_INDEX = "version-index"
    PROJECT = "project"


def check_traversal(path: str) -> None:
    """Reject any path with a ``..`` segment."""
    segments = re.split(r"[/\\]", path)
    if any(segment == ".." for segment in segments):
        raise PathSafetyViolation(f"Path '{path}' contains a traversal segment")


def descriptor_kind(relative_path: Union[str, PurePath]) -> Optional[DescriptorKind]:
    """
    Classify an upload by its bucket-relative path; ``None`` when not a
    descriptor or when any directory on the path is a variant directory.
    """
    path = PurePosixPath(str(relative_path).replace("\\", "/").lstrip("/"))
    if any(VARIANT_DIRECTORY.fullmatch(part) for part in path.parent.parts):
        return None
    if path.name == VERSION_INDEX_FILENAME:
        return DescriptorKind.VERSION_INDEX
    if path.name.endswith(PROJECT_DESCRIPTOR_SUFFIX) and len(path.name) > len(
        PROJECT_DESCRIPTOR_SUFFIX
    ):
        return DescriptorKind.PROJECT
    return None


@dataclass(frozen=True)
class BucketWrite:
    """Outcome of persisting one upload."""

    repository: str
    relative_path: str
    path: Path
    created: bool
    bytes_written: int


class LocalBucket:
    """A named repository rooted at a local directory."""

    def __init__(self, name: str, root: Path, *, maven_shaped: bool = True) -> None:
        if not name:
            raise ValueError("bucket name must be provided")
        self.name = name
        self.maven_shaped = maven_shaped
        self._root = root.absolute()

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, relative_path: str) -> Path:
        """
        Join ``relative_path`` onto the root and prove the result stays inside.

        Symlinks are resolved before the containment check so a link that
        points outside the root is rejected as well.
        """

        check_traversal(relative_path)
        root = self._root.resolve()
        candidate = (root / relative_path.lstrip("/")).resolve()
        if candidate == root or not candidate.is_relative_to(root):
            raise PathSafetyViolation(
                f"Path '{relative_path}' resolves outside repository '{self.name}'"
            )
        return candidate

    def write(self, relative_path: str, stream: BinaryIO) -> BucketWrite:
        """Persist ``stream`` at ``relative_path``, replacing any existing file."""

        target = self.resolve(relative_path)
        if target.is_dir():
            raise BlobStoreError(f"'{relative_path}' is a directory")
        created = not target.exists()

        bytes_written = 0
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("wb") as sink:
                while True:
                    chunk = stream.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    sink.write(chunk)
                    bytes_written += len(chunk)
        except (FileExistsError, NotADirectoryError) as exc:
            raise BlobStoreError(
                f"'{relative_path}' lies under an existing file"
            ) from exc

        _LOGGER.info(
            "Stored %s/%s (%d bytes, %s)",
            self.name,
            relative_path,
            bytes_written,
            "created" if created else "overwritten",
        )
        return BucketWrite(
            repository=self.name,
            relative_path=relative_path,
            path=target,
            created=created,
            bytes_written=bytes_written,
        )

    def locate(self, relative_path: str) -> Path:
        """Return the stored file for ``relative_path`` or raise."""

        target = self.resolve(relative_path)
        if not target.is_file():
            raise BlobNotFoundError(
                f"'{relative_path}' not found in repository '{self.name}'"
            )
        return target
