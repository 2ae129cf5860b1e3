"""Storage layer abstractions and adapters."""

from .catalog_store import (CatalogEntity, CatalogKey, CatalogStore,
                            CatalogTransaction)
from .errors import (BlobNotFoundError, BlobStoreError,
                     BlobStoreUnavailableError, CatalogStoreError,
                     CatalogStoreUnavailableError, OrphanEntityError,
                     RepositoryError, TransactionClosedError,
                     TransactionConflict)
from .memory import InMemoryCatalogStore, InMemoryCatalogTransaction

__all__ = [
    "CatalogEntity",
    "CatalogKey",
    "CatalogStore",
    "CatalogTransaction",
    "InMemoryCatalogStore",
    "InMemoryCatalogTransaction",
    "RepositoryError",
    "CatalogStoreError",
    "CatalogStoreUnavailableError",
    "TransactionConflict",
    "TransactionClosedError",
    "OrphanEntityError",
    "BlobStoreError",
    "BlobNotFoundError",
    "BlobStoreUnavailableError",
]
