"""Domain model package exports."""

from .catalog import (NOT_PROVIDED, CatalogEvent, HeadRef, Organization,
                      Person, Scm, SpecRef, is_plugin_marker, repository_url)
from .publish import PublishAuthority, PublishPrincipal

__all__ = [
    "NOT_PROVIDED",
    "CatalogEvent",
    "HeadRef",
    "SpecRef",
    "Person",
    "Organization",
    "Scm",
    "PublishAuthority",
    "PublishPrincipal",
    "is_plugin_marker",
    "repository_url",
]
