"""
In-memory document store keyed by document id.

The store owns Document instances. Documents are copied on the way in so no
caller keeps an alias to stored state; stored documents are immutable, so
reads hand them out directly.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, Optional

from .document import Document

logger = logging.getLogger(__name__)


class DocumentStore:
    """Collection of validated documents."""

    def __init__(self):
        self._documents: Dict[str, Document] = {}

    def put(self, document: Document) -> Optional[Document]:
        """Insert or replace a document.

        Returns:
            The replaced document, or None if the id was new
        """
        previous = self._documents.get(document.id)
        self._documents[document.id] = document.copy()
        logger.debug("Stored %s (%s)", document.id, "replaced" if previous else "new")
        return previous

    def get(self, doc_id: str) -> Optional[Document]:
        """Return the current document, or None if not found."""
        return self._documents.get(doc_id)

    def remove(self, doc_id: str) -> Optional[Document]:
        """Delete a document.

        Returns:
            The removed document, or None if not found
        """
        removed = self._documents.pop(doc_id, None)
        if removed is not None:
            logger.debug("Removed %s", doc_id)
        return removed

    def list(self) -> Iterator[Document]:
        """Iterate over all documents (order unspecified).

        Iterates over a snapshot, so the store may change during iteration.
        """
        for document in list(self._documents.values()):
            yield document

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._documents

    def __len__(self) -> int:
        return len(self._documents)
