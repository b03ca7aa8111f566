"""
Document model for the catalog.

A Document is one validated agents.md file: its id, metadata, body and the
reference of the source unit it was loaded from.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Dict, Optional

from .errors import ParseError
from .metadata_parser import serialize_front_matter
from .schema import Metadata

MARKDOWN_SUFFIXES = (".md", ".markdown")

# Keeps unicode letters and digits so non-English file names stay readable
_SLUG_JUNK = re.compile(r"[^\w.-]+")
_SKIPPED_SEGMENTS = ("", ".", "..")


def _strip_markdown_suffix(slug: str) -> str:
    stripped = True
    while stripped:
        stripped = False
        for suffix in MARKDOWN_SUFFIXES:
            if slug.endswith(suffix):
                slug = slug[: -len(suffix)].strip("-")
                stripped = True
    return slug


def document_id_for(source_ref: str) -> str:
    """Derive a stable document id from a source reference or slug.

    Applying it to an id it returned gives the same id back, so callers may
    pass either a source reference or an id.

    Args:
        source_ref: Source path (e.g. "examples/React App/agents.md") or explicit slug

    Returns:
        Normalized id (e.g. "examples/react-app/agents")

    Raises:
        ParseError: If no id can be derived

    Example:
        >>> document_id_for("./examples\\\\Vue 3/AGENTS.md")
        'examples/vue-3/agents'
    """
    segments = []
    for segment in source_ref.replace("\\", "/").split("/"):
        slug = _SLUG_JUNK.sub("-", segment.strip().lower()).strip("-")
        if slug not in _SKIPPED_SEGMENTS:
            segments.append(slug)

    # Markdown suffixes come off the file name, and off the parent too when
    # nothing else is left of the name
    while segments:
        name = _strip_markdown_suffix(segments[-1])
        if name not in _SKIPPED_SEGMENTS:
            segments[-1] = name
            break
        segments.pop()

    if not segments:
        raise ParseError("cannot derive a document id", source_ref)

    return "/".join(segments)


@dataclass(frozen=True)
class Document:
    """Represents a validated catalog document."""
    id: str
    metadata: Metadata
    body: str
    source_ref: Optional[str] = None

    def copy(self) -> "Document":
        """Return a copy that shares no mutable state with this document."""
        return replace(self, metadata=self.metadata.model_copy(deep=True))

    def to_text(self) -> str:
        """Serialize back to the on-disk layout."""
        return serialize_front_matter(self.metadata.to_front_matter(), self.body)

    def to_dict(self, include_body: bool = True) -> Dict:
        data = {
            "id": self.id,
            "source_ref": self.source_ref,
            "metadata": self.metadata.to_front_matter(),
        }
        if include_body:
            data["body"] = self.body
        return data
