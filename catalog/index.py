"""
Secondary indexes over catalog documents.

Indexes:
    category  - normalized category -> ids
    tag       - normalized tag -> ids
    author    - normalized author -> ids
    month     - "YYYY-MM" of lastUpdated -> ids
    recency   - every id, most recently updated first

Each bucket is a list of (-lastUpdated ordinal, id) keys kept sorted with
bisect, so iteration is newest first with ties broken by id ascending.
Lookups are O(log n); inserts and deletes shift the list (O(n) memmove),
which is fine for catalogs of thousands of documents.

The manager holds only ids and key projections, never the documents.
"""

from __future__ import annotations

import logging
from bisect import bisect_left
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from .document import Document
from .errors import IndexConsistencyError

logger = logging.getLogger(__name__)

INDEX_NAMES = ("category", "tag", "author", "month")

RecencyKey = Tuple[int, str]


def normalize_key(value: str) -> str:
    """Normalize a category/tag/author value for indexing (trim + casefold)."""
    return value.strip().casefold()


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def recency_key(document: Document) -> RecencyKey:
    return (-document.metadata.last_updated.toordinal(), document.id)


@dataclass(frozen=True)
class IndexProjection:
    """The index memberships derived from one document's metadata."""
    recency: RecencyKey
    memberships: Tuple[Tuple[str, str], ...]

    @classmethod
    def of(cls, document: Document) -> "IndexProjection":
        metadata = document.metadata
        memberships = [("category", normalize_key(metadata.category))]
        memberships.extend(("tag", normalize_key(tag)) for tag in metadata.tags)
        memberships.append(("author", normalize_key(metadata.author)))
        memberships.append(("month", month_key(metadata.last_updated)))
        # dict.fromkeys keeps order and drops repeats
        return cls(recency=recency_key(document), memberships=tuple(dict.fromkeys(memberships)))


def _insert(entries: List[RecencyKey], key: RecencyKey, where: str) -> None:
    pos = bisect_left(entries, key)
    if pos < len(entries) and entries[pos] == key:
        raise IndexConsistencyError(f"{key[1]} is already present in {where}")
    entries.insert(pos, key)


def _delete(entries: List[RecencyKey], key: RecencyKey, where: str) -> None:
    pos = bisect_left(entries, key)
    if pos == len(entries) or entries[pos] != key:
        raise IndexConsistencyError(f"{key[1]} is missing from {where}")
    del entries[pos]


class IndexManager:
    """Maintains the category, tag, author, month and recency indexes."""

    def __init__(self):
        self._buckets: Dict[str, Dict[str, List[RecencyKey]]] = {name: {} for name in INDEX_NAMES}
        self._recency: List[RecencyKey] = []
        self._projections: Dict[str, IndexProjection] = {}

    def reindex(self, old: Optional[Document], new: Optional[Document]) -> None:
        """Reconcile the indexes after a store mutation.

        Args:
            old: Document previously stored under the id (None on insert)
            new: Document now stored under the id (None on delete)

        Raises:
            IndexConsistencyError: If the recorded memberships do not match ``old``
        """
        if old is not None and new is not None and old.id != new.id:
            raise IndexConsistencyError(f"cannot reindex {old.id} as {new.id}")

        if old is not None:
            self._remove(old)
        if new is not None:
            self._add(new)

    def _add(self, document: Document) -> None:
        if document.id in self._projections:
            raise IndexConsistencyError(f"{document.id} is already indexed")

        projection = IndexProjection.of(document)
        for name, key in projection.memberships:
            bucket = self._buckets[name].setdefault(key, [])
            _insert(bucket, projection.recency, f"{name}:{key}")
        _insert(self._recency, projection.recency, "recency")

        self._projections[document.id] = projection
        logger.debug("Indexed %s under %d keys", document.id, len(projection.memberships))

    def _remove(self, document: Document) -> None:
        projection = self._projections.get(document.id)
        if projection is None:
            raise IndexConsistencyError(f"{document.id} is not indexed")
        if projection != IndexProjection.of(document):
            raise IndexConsistencyError(f"index memberships of {document.id} do not match its stored metadata")

        for name, key in projection.memberships:
            buckets = self._buckets[name]
            bucket = buckets.get(key)
            if bucket is None:
                raise IndexConsistencyError(f"bucket {name}:{key} is missing")
            _delete(bucket, projection.recency, f"{name}:{key}")
            if not bucket:
                del buckets[key]
        _delete(self._recency, projection.recency, "recency")

        del self._projections[document.id]
        logger.debug("Unindexed %s", document.id)

    def bucket(self, index: str, key: str) -> List[str]:
        """Return ids in one bucket, newest first.

        ``key`` is normalized the same way as indexed values.
        """
        if index not in self._buckets:
            raise KeyError(f"Unknown index '{index}'. Must be one of: {list(INDEX_NAMES)}")
        lookup = key if index == "month" else normalize_key(key)
        return [doc_id for _, doc_id in self._buckets[index].get(lookup, [])]

    def recent(self, limit: Optional[int] = None) -> List[str]:
        """Return ids newest first, optionally only the first ``limit``."""
        entries = self._recency if limit is None else self._recency[:limit]
        return [doc_id for _, doc_id in entries]

    def recency_range(self, date_from: Optional[date] = None, date_to: Optional[date] = None) -> List[str]:
        """Return ids with lastUpdated in [date_from, date_to], newest first.

        Bounds are inclusive; either may be None. Located by bisection.
        """
        # A 1-tuple sorts before every 2-tuple sharing its first element
        lo = 0 if date_to is None else bisect_left(self._recency, (-date_to.toordinal(),))
        hi = len(self._recency) if date_from is None else bisect_left(
            self._recency, (-date_from.toordinal() + 1,)
        )
        return [doc_id for _, doc_id in self._recency[lo:hi]]

    def facet(self, index: str) -> Dict[str, int]:
        """Count documents per key of one index, keys sorted."""
        buckets = self._buckets[index]
        return {key: len(buckets[key]) for key in sorted(buckets)}

    def check(self, documents: Iterable[Document]) -> None:
        """Audit the indexes against the full set of stored documents.

        Raises:
            IndexConsistencyError: On any missing, duplicate or dangling membership
        """
        expected: Dict[str, IndexProjection] = {}
        for document in documents:
            expected[document.id] = IndexProjection.of(document)

        if expected != self._projections:
            missing = sorted(set(expected) - set(self._projections))
            dangling = sorted(set(self._projections) - set(expected))
            raise IndexConsistencyError(
                f"indexed ids drifted from the store (missing={missing}, dangling={dangling}, "
                f"or stale projections)"
            )

        wanted: Dict[Tuple[str, str], List[RecencyKey]] = {}
        for projection in expected.values():
            for membership in projection.memberships:
                wanted.setdefault(membership, []).append(projection.recency)

        actual = {
            (name, key): entries
            for name, buckets in self._buckets.items()
            for key, entries in buckets.items()
        }
        if set(actual) != set(wanted):
            raise IndexConsistencyError("index buckets do not match stored metadata")
        for membership, entries in actual.items():
            if entries != sorted(wanted[membership]):
                raise IndexConsistencyError(f"bucket {membership[0]}:{membership[1]} has wrong members")

        if self._recency != sorted(p.recency for p in expected.values()):
            raise IndexConsistencyError("recency index has wrong members")

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._projections

    def __len__(self) -> int:
        return len(self._projections)
