"""Best-effort cataloging of descriptors that were just uploaded."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from mavenrepo.errors import (CatalogTransactionFailure,
                              DescriptorParseIncomplete)
from mavenrepo.storage.bucket import DescriptorKind

from .descriptors import parse_descriptor
from .writer import CatalogWriter, IngestResult

_LOGGER = logging.getLogger(__name__)


def catalog_uploaded_descriptor(
    writer: CatalogWriter,
    repository: str,
    path: Path,
    kind: DescriptorKind,
) -> Optional[IngestResult]:
    """
    Parse ``path`` and merge it into the catalog.

    The upload has already succeeded by the time this runs, so every
    failure is logged and absorbed; ``None`` means nothing was cataloged.
    """

    try:
        events = parse_descriptor(kind, path)
    except DescriptorParseIncomplete as exc:
        _LOGGER.warning(
            "Skipping %s descriptor %s in '%s': %s",
            kind.value,
            path.name,
            repository,
            exc,
        )
        return None
    except OSError as exc:
        _LOGGER.error("Could not read descriptor %s: %s", path, exc)
        return None

    try:
        result = writer.ingest(repository, events)
    except CatalogTransactionFailure as exc:
        _LOGGER.error(
            "Catalog transaction rolled back for %s in '%s': %s",
            ", ".join(exc.coordinates),
            repository,
            exc.__cause__ or exc,
        )
        return None

    if events:
        first = events[0]
        _LOGGER.info(
            "Observed %d, updated %d entities of %s:%s in '%s'",
            result.observed,
            result.updated,
            first.group_id,
            first.artifact_id,
            repository,
        )
    return result
