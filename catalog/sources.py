"""
Document sources for bulk ingestion.

A source lists source references and reads the raw text behind each one.
Reading happens before the catalog takes its mutation lock.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Protocol

from .settings import DEFAULT_SOURCE_PATTERN


class DocumentSource(Protocol):
    """Anything that can enumerate and read source units."""

    def refs(self) -> List[str]:
        ...

    def read(self, source_ref: str) -> str:
        ...


class DirectorySource:
    """Markdown files under a directory.

    Source references are posix paths relative to ``root``, sorted.
    """

    def __init__(self, root: Path, pattern: str = DEFAULT_SOURCE_PATTERN, encoding: str = "utf-8"):
        self.root = Path(root)
        self.pattern = pattern
        self.encoding = encoding

    def refs(self) -> List[str]:
        if not self.root.is_dir():
            raise FileNotFoundError(f"Source directory not found: {self.root}")
        return sorted(
            path.relative_to(self.root).as_posix()
            for path in self.root.glob(self.pattern)
            if path.is_file()
        )

    def read(self, source_ref: str) -> str:
        return (self.root / source_ref).read_text(encoding=self.encoding)


class MemorySource:
    """Source units held in a mapping of source_ref -> raw text."""

    def __init__(self, documents: Mapping[str, str]):
        self._documents = dict(documents)

    def refs(self) -> List[str]:
        return sorted(self._documents)

    def read(self, source_ref: str) -> str:
        try:
            return self._documents[source_ref]
        except KeyError:
            raise FileNotFoundError(f"No source unit named '{source_ref}'") from None
