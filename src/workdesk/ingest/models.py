"""Data models used by the ingestion pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True, slots=True)
class Section:
    """Heuristically detected titled span of a document."""

    title: str
    content: str
    start_index: int
    end_index: int


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """Raw text and format-specific metadata produced by an extractor."""

    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DocumentMetadata:
    """Extraction statistics attached to a processed document."""

    word_count: int
    char_count: int
    file_type: str
    extracted_at: str
    page_count: Optional[int] = None
    language: Optional[str] = None
    title: Optional[str] = None
    author: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(self.extra)
        payload.update(
            {
                "word_count": self.word_count,
                "char_count": self.char_count,
                "file_type": self.file_type,
                "extracted_at": self.extracted_at,
            }
        )
        for key in ("page_count", "language", "title", "author"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload


@dataclass(frozen=True, slots=True)
class ProcessedDocument:
    """Result of :meth:`DocumentProcessor.process_document`."""

    content: str
    metadata: DocumentMetadata
    sections: List[Section] = field(default_factory=list)


@dataclass(slots=True)
class ChunkMetadata:
    """Metadata attached to an individual chunk."""

    document_id: str
    file_name: str
    chunk_index: int
    char_start: int
    char_end: int
    language: Optional[str] = None
    session_id: Optional[str] = None


@dataclass(slots=True)
class DocumentChunk:
    """Container that pairs chunk text with associated metadata."""

    content: str
    metadata: ChunkMetadata
