"""
Error types for the document catalog.

Hierarchy:
    CatalogError
        ParseError            - missing or malformed front matter
        ValidationError       - one or more metadata violations
        NotFoundError         - unknown document id
        InvalidFilterError    - malformed search filter

    IndexConsistencyError    - internal index drift (AssertionError, never user-facing)
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence


class CatalogError(Exception):
    """Base exception for catalog errors reported to callers."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict:
        return {"error_type": type(self).__name__, "message": self.message}


class ParseError(CatalogError, ValueError):
    """Raised when a document has no well-formed front-matter block."""

    def __init__(self, message: str, source_ref: Optional[str] = None):
        if source_ref:
            message = f"{source_ref}: {message}"
        super().__init__(message)
        self.source_ref = source_ref

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["source_ref"] = self.source_ref
        return data


@dataclass(frozen=True)
class Violation:
    """A single failed metadata constraint."""
    field: str
    reason: str

    def __str__(self) -> str:
        return f"{self.field}: {self.reason}"


class ValidationError(CatalogError, ValueError):
    """Raised when metadata violates the schema.

    Carries every violation found, not just the first one.
    """

    def __init__(self, violations: Sequence[Violation], source_ref: Optional[str] = None):
        self.violations: List[Violation] = list(violations)
        self.source_ref = source_ref
        summary = "; ".join(str(v) for v in self.violations)
        prefix = f"{source_ref}: " if source_ref else ""
        super().__init__(f"{prefix}invalid metadata ({len(self.violations)} problem(s)): {summary}")

    @property
    def fields(self) -> List[str]:
        return [v.field for v in self.violations]

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["source_ref"] = self.source_ref
        data["violations"] = [asdict(v) for v in self.violations]
        return data


class NotFoundError(CatalogError, LookupError):
    """Raised when an operation references an unknown document id."""

    def __init__(self, doc_id: str):
        super().__init__(f"Document '{doc_id}' not found in catalog")
        self.doc_id = doc_id

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["id"] = self.doc_id
        return data


class InvalidFilterError(CatalogError, ValueError):
    """Raised when a search filter is malformed."""

    def __init__(self, problems: Sequence[str]):
        self.problems: List[str] = list(problems)
        super().__init__("Invalid search filter: " + "; ".join(self.problems))

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["problems"] = self.problems
        return data


class IndexConsistencyError(AssertionError):
    """Raised when the indexes drift from the document store.

    Indicates a programming error; callers should not catch it.
    """
    pass
