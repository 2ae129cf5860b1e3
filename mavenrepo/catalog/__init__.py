"""Descriptor parsing, catalog writes and catalog projections."""

from .descriptors import (MalformedDescriptor, parse_descriptor,
                          parse_project_descriptor, parse_version_index)
from .ingest import catalog_uploaded_descriptor
from .writer import (HEAD_REF_KIND, SPEC_REF_KIND, CatalogWriter,
                     IngestResult, head_key, spec_key)

__all__ = [
    "HEAD_REF_KIND",
    "SPEC_REF_KIND",
    "CatalogWriter",
    "IngestResult",
    "MalformedDescriptor",
    "catalog_uploaded_descriptor",
    "head_key",
    "parse_descriptor",
    "parse_project_descriptor",
    "parse_version_index",
    "spec_key",
]
