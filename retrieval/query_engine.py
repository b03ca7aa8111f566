"""
Query engine for catalog search.

Execution plan:
1. If category, author or tags are given, intersect their index buckets,
   smallest bucket first.
2. Otherwise start from the recency index, sliced by the date range.
3. Scan only those candidates for text tokens and date bounds.
4. Sort (recency or name), count, then paginate.

Usage:
    from retrieval.query_engine import QueryEngine

    engine = QueryEngine(store, index)
    result = engine.query({"tags": ["react", "typescript"], "limit": 5})
    print(result.total, [item.id for item in result.items])
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from catalog.document import Document
from catalog.errors import IndexConsistencyError
from catalog.index import IndexManager, recency_key
from catalog.schema import Metadata
from catalog.settings import DEFAULT_PAGE_SIZE
from catalog.store import DocumentStore

from .filters import SearchFilter, parse_filter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentSummary:
    """Search hit: id and metadata, body only when requested."""
    id: str
    metadata: Metadata
    body: Optional[str] = None

    @classmethod
    def from_document(cls, document: Document, include_body: bool = False) -> "DocumentSummary":
        return cls(
            id=document.id,
            metadata=document.metadata,
            body=document.body if include_body else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "metadata": self.metadata.to_front_matter()}
        if self.body is not None:
            data["body"] = self.body
        return data


@dataclass(frozen=True)
class SearchResult:
    """One page of results plus the match count before pagination."""
    items: List[DocumentSummary] = field(default_factory=list)
    total: int = 0
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0

    @property
    def ids(self) -> List[str]:
        return [item.id for item in self.items]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
        }


def _matches_text(document: Document, tokens: List[str]) -> bool:
    name = document.metadata.name.casefold()
    description = document.metadata.description.casefold()
    return any(token in name or token in description for token in tokens)


def _in_date_range(document: Document, search_filter: SearchFilter) -> bool:
    day = document.metadata.last_updated
    if search_filter.date_from and day < search_filter.date_from:
        return False
    if search_filter.date_to and day > search_filter.date_to:
        return False
    return True


def _name_key(document: Document):
    return (document.metadata.name.casefold(), document.id)


class QueryEngine:
    """Answer search filters from the store and indexes without mutating them."""

    def __init__(self, store: DocumentStore, index: IndexManager, page_size: int = DEFAULT_PAGE_SIZE):
        """Initialize engine.

        Args:
            store: Document store to read documents from
            index: Index manager to resolve candidates from
            page_size: Default ``limit`` when a filter gives none
        """
        self.store = store
        self.index = index
        self.page_size = page_size

    def query(self, raw_filter: Union[SearchFilter, Mapping[str, Any], None] = None) -> SearchResult:
        """Run a search.

        Args:
            raw_filter: SearchFilter or mapping of filter options

        Returns:
            SearchResult with the requested page and the total match count

        Raises:
            InvalidFilterError: If the filter is malformed
        """
        search_filter = parse_filter(raw_filter)
        limit = self.page_size if search_filter.limit is None else search_filter.limit
        offset = search_filter.offset

        structured = search_filter.structured
        tokens = search_filter.tokens

        if not structured:
            ordered_ids = self.index.recency_range(search_filter.date_from, search_filter.date_to)
            if not tokens and search_filter.sort == "recency":
                # Already filtered and ordered: only the page needs loading
                page_ids = ordered_ids[offset:offset + limit]
                logger.debug("Recency scan: %d matches", len(ordered_ids))
                return self._result(page_ids, len(ordered_ids), search_filter, limit)
            candidates = ordered_ids
        else:
            candidates = self._intersect(structured)
            logger.debug("Index plan %s -> %d candidates", structured, len(candidates))

        matches = []
        for doc_id in candidates:
            document = self._load(doc_id)
            if structured and not _in_date_range(document, search_filter):
                continue
            if tokens and not _matches_text(document, tokens):
                continue
            matches.append(document)

        if search_filter.sort == "name":
            matches.sort(key=_name_key)
        else:
            matches.sort(key=recency_key)

        page = matches[offset:offset + limit]
        return SearchResult(
            items=[DocumentSummary.from_document(doc, search_filter.include_body) for doc in page],
            total=len(matches),
            limit=limit,
            offset=offset,
        )

    def _intersect(self, structured) -> List[str]:
        """Intersect index buckets, smallest first."""
        buckets = sorted(
            (self.index.bucket(name, key) for name, key in structured),
            key=len,
        )
        if not buckets[0]:
            return []

        candidates = set(buckets[0])
        for bucket in buckets[1:]:
            candidates.intersection_update(bucket)
            if not candidates:
                break
        return list(candidates)

    def _result(self, page_ids: List[str], total: int, search_filter: SearchFilter, limit: int) -> SearchResult:
        items = []
        for doc_id in page_ids:
            items.append(DocumentSummary.from_document(self._load(doc_id), search_filter.include_body))
        return SearchResult(items=items, total=total, limit=limit, offset=search_filter.offset)

    def _load(self, doc_id: str) -> Document:
        document = self.store.get(doc_id)
        if document is None:
            raise IndexConsistencyError(f"{doc_id} is indexed but not in the store")
        return document
