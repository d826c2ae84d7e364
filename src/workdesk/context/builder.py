"""Turn processed documents into session-ready document contexts."""
from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from typing import List

from workdesk.ingest.models import ProcessedDocument

from .models import DocumentContext

KEY_POINT_STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
        "with", "by", "is", "are", "was", "were", "be", "been", "have", "has", "had",
        "do", "does", "did", "will", "would", "could", "should", "may", "might",
        "must", "can", "this", "that", "these", "those",
    }
)
NO_CONTENT_SUMMARY = "No content to summarize."

_NON_KEYWORD_RE = re.compile(r"[^a-z0-9\s]")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


def extract_key_points(text: str, limit: int = 10) -> List[str]:
    """Return up to ``limit`` distinct keywords in order of first appearance."""

    cleaned = _NON_KEYWORD_RE.sub("", text.lower())
    keywords: List[str] = []
    seen: set[str] = set()
    for word in cleaned.split():
        if len(word) <= 3 or word in KEY_POINT_STOP_WORDS or word in seen:
            continue
        seen.add(word)
        keywords.append(word)
        if len(keywords) >= limit:
            break
    return keywords


def generate_summary(text: str) -> str:
    """Summarise ``text`` as its first and last sentence."""

    sentences = [sentence.strip() for sentence in _SENTENCE_SPLIT_RE.split(text)]
    sentences = [sentence for sentence in sentences if sentence]
    if not sentences:
        return NO_CONTENT_SUMMARY
    if len(sentences) == 1:
        return sentences[0]
    return f"{sentences[0]} ... {sentences[-1]}"


def new_document_id() -> str:
    return f"doc-{uuid.uuid4().hex}"


def create_document_context(
    processed: ProcessedDocument,
    file_name: str,
    document_id: str | None = None,
) -> DocumentContext:
    content = processed.content
    return DocumentContext(
        id=document_id or new_document_id(),
        file_name=file_name,
        content=content,
        summary=generate_summary(content),
        key_points=extract_key_points(content),
        uploaded_at=datetime.now(timezone.utc).isoformat(),
    )


__all__ = [
    "KEY_POINT_STOP_WORDS",
    "NO_CONTENT_SUMMARY",
    "create_document_context",
    "extract_key_points",
    "generate_summary",
    "new_document_id",
]
