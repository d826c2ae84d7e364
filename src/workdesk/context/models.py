"""Session context data models."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True, slots=True)
class DocumentContext:
    """Condensed view of a processed document attached to a chat session."""

    id: str
    file_name: str
    content: str
    summary: str
    key_points: List[str] = field(default_factory=list)
    uploaded_at: str = ""

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class SessionContext:
    session_id: str
    document_contexts: List[DocumentContext] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    def as_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "documents": [context.as_dict() for context in self.document_contexts],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
