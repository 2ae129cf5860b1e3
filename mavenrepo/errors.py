"""
mavenrepo Repository
Introductory remarks: This module is part of the mavenrepo codebase.

Request-level failures raised by the publish and ingest pipeline.
"""

from __future__ import annotations

from typing import Optional


class PublishError(RuntimeError):
    """Base class for failures raised while handling a publish."""


class AuthenticationFailure(PublishError):
    """Raised when credentials are missing, unknown or do not match."""


class AuthorizationFailure(PublishError):
    """Raised when a principal may not write to the requested path."""


class PathSafetyViolation(PublishError):
    """Raised when a request path escapes its repository root."""


class DescriptorParseIncomplete(PublishError):
    """Raised when an uploaded descriptor lacks a required field."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class CatalogTransactionFailure(PublishError):
    """Raised when a catalog ingestion transaction is rolled back."""

    def __init__(self, message: str, *, coordinates: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.coordinates = coordinates
