"""
Catalog service facade.

Sequences parse -> validate -> store -> index on ingestion and exposes the
query surface. This is the only component that drives the others.

Parsing and validation run outside the lock; the store write and the index
update run as one exclusive critical section, and reads share the lock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from retrieval.filters import SearchFilter
from retrieval.query_engine import QueryEngine, SearchResult

from .document import Document, document_id_for
from .errors import CatalogError, NotFoundError, ParseError, ValidationError
from .index import IndexManager
from .locking import ReadWriteLock
from .metadata_parser import parse_document
from .schema import validate_metadata
from .settings import CatalogSettings
from .sources import DocumentSource
from .store import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class IngestReport:
    """Outcome of a bulk ingestion."""
    ingested: List[str] = field(default_factory=list)
    failures: Dict[str, CatalogError] = field(default_factory=dict)
    removed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ingested": list(self.ingested),
            "removed": list(self.removed),
            "failures": {ref: error.to_dict() for ref, error in self.failures.items()},
        }


class CatalogService:
    """Owns a document store and its indexes for one catalog lifetime."""

    def __init__(
        self,
        settings: Optional[CatalogSettings] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        """Initialize catalog service.

        Args:
            settings: Catalog settings (default: built-in defaults)
            clock: Returns "today" for the future-date check (default: date.today)
        """
        self.settings = settings or CatalogSettings()
        self._clock = clock or date.today
        self._store = DocumentStore()
        self._index = IndexManager()
        self._engine = QueryEngine(self._store, self._index, page_size=self.settings.page_size)
        self._lock = ReadWriteLock()

    def prepare(self, source_ref: str, raw_text: str, doc_id: Optional[str] = None) -> Document:
        """Parse and validate one source unit without touching the catalog.

        Raises:
            ParseError: If the front matter is missing or malformed
            ValidationError: With every metadata violation
        """
        resolved_id = document_id_for(doc_id if doc_id is not None else source_ref)
        raw, body = parse_document(raw_text, source_ref)
        metadata = validate_metadata(
            raw,
            today=self._clock(),
            future_tolerance_days=self.settings.future_tolerance_days,
            source_ref=source_ref,
        )
        return Document(id=resolved_id, metadata=metadata, body=body, source_ref=source_ref)

    def ingest(self, source_ref: str, raw_text: str, doc_id: Optional[str] = None) -> str:
        """Ingest one document, replacing any document with the same id.

        Args:
            source_ref: Where the text came from; the id derives from it
            raw_text: Full document text (front matter + body)
            doc_id: Explicit slug overriding the derived id

        Returns:
            The document id

        Raises:
            ParseError: If the front matter is missing or malformed
            ValidationError: With every metadata violation; nothing is stored
        """
        try:
            document = self.prepare(source_ref, raw_text, doc_id)
        except (ParseError, ValidationError) as exc:
            logger.warning("Rejected %s: %s", source_ref, exc)
            raise

        with self._lock.write():
            previous = self._store.put(document)
            self._index.reindex(previous, document)

        logger.info("%s %s from %s", "Replaced" if previous else "Ingested", document.id, source_ref)
        return document.id

    def _resolve(self, doc_id: str) -> str:
        """Normalize an id or source reference the way ingest does."""
        try:
            return document_id_for(doc_id)
        except ParseError:
            raise NotFoundError(doc_id) from None

    def remove(self, doc_id: str) -> Document:
        """Evict a document by id or by the source reference it was ingested from.

        Raises:
            NotFoundError: If the id is unknown
        """
        doc_id = self._resolve(doc_id)
        with self._lock.write():
            removed = self._store.remove(doc_id)
            if removed is not None:
                self._index.reindex(removed, None)

        if removed is None:
            raise NotFoundError(doc_id)
        logger.info("Removed %s", doc_id)
        return removed

    def get(self, doc_id: str) -> Document:
        """Return a stored document by id or source reference.

        Raises:
            NotFoundError: If the id is unknown
        """
        doc_id = self._resolve(doc_id)
        with self._lock.read():
            document = self._store.get(doc_id)
        if document is None:
            raise NotFoundError(doc_id)
        return document

    def search(self, search_filter: Union[SearchFilter, Mapping[str, Any], None] = None) -> SearchResult:
        """Run a search (see retrieval.filters for options).

        Raises:
            InvalidFilterError: If the filter is malformed
        """
        with self._lock.read():
            return self._engine.query(search_filter)

    def ingest_source(self, source: DocumentSource) -> IngestReport:
        """Ingest every unit a source yields; failures are collected, not raised."""
        report = IngestReport()
        claimed: Dict[str, str] = {}
        for source_ref in source.refs():
            self._ingest_unit(source, source_ref, report, claimed)

        logger.info(
            "Ingested %d document(s), %d failed", len(report.ingested), len(report.failures)
        )
        return report

    def sync(self, source: DocumentSource) -> IngestReport:
        """Make the catalog mirror a source.

        Ingests every unit and evicts documents whose source unit is gone.
        A unit that now fails validation keeps its previous valid version.
        """
        report = IngestReport()
        refs = source.refs()
        claimed: Dict[str, str] = {}
        for source_ref in refs:
            self._ingest_unit(source, source_ref, report, claimed)

        present = set(refs)
        with self._lock.read():
            stale = sorted(doc.id for doc in self._store.list() if doc.source_ref not in present)
        for doc_id in stale:
            try:
                self.remove(doc_id)
            except NotFoundError:
                # Removed concurrently
                continue
            report.removed.append(doc_id)

        logger.info(
            "Synced: %d ingested, %d removed, %d failed",
            len(report.ingested), len(report.removed), len(report.failures),
        )
        return report

    def _ingest_unit(
        self,
        source: DocumentSource,
        source_ref: str,
        report: IngestReport,
        claimed: Dict[str, str],
    ) -> None:
        """Ingest one unit of a bulk run, recording any failure in the report.

        ``claimed`` maps ids to the source reference that took them earlier in
        the run; a later unit deriving the same id is rejected.
        """
        try:
            doc_id = document_id_for(source_ref)
        except ParseError as exc:
            report.failures[source_ref] = exc
            return

        owner = claimed.setdefault(doc_id, source_ref)
        if owner != source_ref:
            logger.warning("Rejected %s: id %s is already taken by %s", source_ref, doc_id, owner)
            report.failures[source_ref] = ParseError(
                f"document id '{doc_id}' is already taken by {owner}", source_ref
            )
            return

        try:
            raw_text = source.read(source_ref)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read %s: %s", source_ref, exc)
            report.failures[source_ref] = ParseError(f"unreadable source: {exc}", source_ref)
            return

        try:
            report.ingested.append(self.ingest(source_ref, raw_text))
        except (ParseError, ValidationError) as exc:
            report.failures[source_ref] = exc

    def stats(self) -> Dict[str, Any]:
        """Document totals and counts per index key."""
        with self._lock.read():
            return {
                "total_documents": len(self._store),
                "by_category": self._index.facet("category"),
                "by_author": self._index.facet("author"),
                "by_tag": self._index.facet("tag"),
                "by_month": self._index.facet("month"),
            }

    def check(self) -> None:
        """Audit index consistency against the store.

        Raises:
            IndexConsistencyError: If any index drifted
        """
        with self._lock.read():
            self._index.check(self._store.list())

    def __contains__(self, doc_id: object) -> bool:
        if not isinstance(doc_id, str):
            return False
        try:
            doc_id = document_id_for(doc_id)
        except ParseError:
            return False
        with self._lock.read():
            return doc_id in self._store

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._store)
