"""
Catalog module for agents.md documents.

This module provides functionality for:
- Parsing YAML front matter from markdown files
- Validating metadata against the document schema
- Storing documents and indexing them by category, tag, author and date
- Ingesting, removing and searching through one facade
  (catalog.service, imported separately: it depends on the retrieval package)

Metadata format (at the top of each document):
    ---
    name: "React + TypeScript"
    description: "Conventions for a Vite React app"
    category: "Frontend Framework"
    author: "someone"
    authorUrl: "https://github.com/someone"   # optional
    tags: ["react", "typescript"]
    lastUpdated: "2024-05-01"
    ---
    # Markdown body

Usage:
    from catalog import DirectorySource
    from catalog.service import CatalogService

    service = CatalogService()
    report = service.ingest_source(DirectorySource(Path("examples")))

    doc = service.get("react/agents")
    result = service.search({"tags": ["react", "typescript"], "sort": "name"})
    service.remove("react/agents")
"""

from .errors import (
    CatalogError,
    IndexConsistencyError,
    InvalidFilterError,
    NotFoundError,
    ParseError,
    ValidationError,
    Violation,
)
from .metadata_parser import (
    load_front_matter,
    parse_document,
    serialize_front_matter,
    split_front_matter,
)
from .schema import Metadata, validate_metadata
from .document import Document, document_id_for
from .store import DocumentStore
from .index import IndexManager
from .settings import CatalogSettings
from .sources import DirectorySource, DocumentSource, MemorySource

__all__ = [
    "CatalogError",
    "IndexConsistencyError",
    "InvalidFilterError",
    "NotFoundError",
    "ParseError",
    "ValidationError",
    "Violation",
    "load_front_matter",
    "parse_document",
    "serialize_front_matter",
    "split_front_matter",
    "Metadata",
    "validate_metadata",
    "Document",
    "document_id_for",
    "DocumentStore",
    "IndexManager",
    "CatalogSettings",
    "DirectorySource",
    "DocumentSource",
    "MemorySource",
]

__version__ = "1.0.0"
