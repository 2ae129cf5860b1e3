"""Common storage errors used across catalog and blob adapters."""

from __future__ import annotations


class RepositoryError(RuntimeError):
    """Base class for storage layer failures."""


class CatalogStoreError(RepositoryError):
    """Raised when the catalog store rejects or fails an operation."""


class CatalogStoreUnavailableError(CatalogStoreError):
    """Raised when the catalog store is temporarily unavailable."""


class TransactionConflict(CatalogStoreError):
    """Raised when a concurrent commit invalidated a transaction's reads."""


class TransactionClosedError(CatalogStoreError):
    """Raised when a committed or rolled back transaction is reused."""


class OrphanEntityError(CatalogStoreError):
    """Raised when a child entity is staged without its parent."""


class BlobStoreError(RepositoryError):
    """Raised when binary storage fails."""


class BlobNotFoundError(BlobStoreError):
    """Raised when a requested blob cannot be located."""


class BlobStoreUnavailableError(BlobStoreError):
    """Raised when blob storage is temporarily unavailable (e.g. S3 outage)."""


def looks_like_transient_cloud_failure(exc: Exception) -> bool:
    """Classify boto errors that are worth reporting as 'unavailable'."""

    code = None
    response = getattr(exc, "response", None)
    if isinstance(response, dict):
        error = response.get("Error")
        if isinstance(error, dict):
            code = error.get("Code")
    if isinstance(code, str) and code:
        if code in {
            "SlowDown",
            "Throttling",
            "ThrottlingException",
            "ProvisionedThroughputExceededException",
            "RequestLimitExceeded",
            "RequestTimeout",
            "RequestTimeoutException",
            "ServiceUnavailable",
            "InternalError",
            "InternalServerError",
            "503",
        }:
            return True
    name = exc.__class__.__name__
    if name in {
        "EndpointConnectionError",
        "ConnectTimeoutError",
        "ReadTimeoutError",
        "ConnectionClosedError",
    }:
        return True
    message = str(exc).lower()
    return any(
        token in message
        for token in (
            "timed out",
            "timeout",
            "temporarily unavailable",
            "service unavailable",
            "connection reset",
            "connection refused",
            "endpoint connection error",
        )
    )


def error_code(exc: Exception) -> str | None:
    """Return the AWS error code carried by a botocore ``ClientError``."""

    response = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return None
    error = response.get("Error")
    if not isinstance(error, dict):
        return None
    code = error.get("Code")
    return code if isinstance(code, str) else None
