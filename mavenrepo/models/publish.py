"""
mavenrepo Repository
Introductory remarks: This module is part of the mavenrepo codebase.

Publisher identity models.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PublishAuthority:
    """Stored publisher record: password digest plus permitted path prefixes."""

    name: str
    key: str
    authority: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Publish authority name cannot be empty")


@dataclass(frozen=True)
class PublishPrincipal:
    """The authenticated identity for a single publish request."""

    username: str
    authority: tuple[str, ...] = ()

    def permits(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.authority)
