"""Chunking utilities for breaking text into embedding-friendly units."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from .models import ChunkMetadata, DocumentChunk

_SENTENCE_END_RE = re.compile(r"[.!?](?=\s)")
LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ChunkingConfig:
    chunk_size: int = 1000
    overlap: int = 200


class TextChunker:
    """Split document text into overlapping windows respecting semantic boundaries."""

    def __init__(self, config: Optional[ChunkingConfig] = None) -> None:
        self.config = config or ChunkingConfig()

    def chunk_document(
        self,
        content: str,
        *,
        document_id: str,
        file_name: str,
        language: str | None = None,
        session_id: str | None = None,
    ) -> Iterator[DocumentChunk]:
        for chunk_index, (chunk_text, start_offset, end_offset) in enumerate(self.split(content)):
            metadata = ChunkMetadata(
                document_id=document_id,
                file_name=file_name,
                chunk_index=chunk_index,
                char_start=start_offset,
                char_end=end_offset,
                language=language,
                session_id=session_id,
            )
            LOGGER.debug(
                "Chunk %s of %s offsets %s-%s",
                chunk_index,
                document_id,
                start_offset,
                end_offset,
            )
            yield DocumentChunk(content=chunk_text, metadata=metadata)

    def split(self, text: str) -> Iterator[Tuple[str, int, int]]:
        if not text:
            return
        chunk_size = max(self.config.chunk_size, 1)
        overlap = min(max(self.config.overlap, 0), chunk_size - 1)
        text_length = len(text)
        start = 0
        while start < text_length:
            tentative_end = min(start + chunk_size, text_length)
            chunk_end = self._find_semantic_break(text, start, tentative_end)
            if chunk_end <= start:
                chunk_end = tentative_end
            raw_chunk = text[start:chunk_end]
            if not raw_chunk.strip():
                start = chunk_end
                continue
            leading_ws = len(raw_chunk) - len(raw_chunk.lstrip())
            trailing_ws = len(raw_chunk) - len(raw_chunk.rstrip())
            final_start = start + leading_ws
            final_end = chunk_end - trailing_ws
            yield text[final_start:final_end], final_start, final_end
            if chunk_end >= text_length:
                break
            next_start = final_end - overlap
            if next_start <= final_start:
                next_start = final_end
            start = next_start

    def _find_semantic_break(self, text: str, start: int, tentative_end: int) -> int:
        if tentative_end >= len(text):
            return len(text)
        segment = text[start:tentative_end]
        paragraph_break = segment.rfind("\n\n")
        if paragraph_break != -1 and paragraph_break >= self.config.chunk_size // 3:
            return start + paragraph_break + 2
        sentence_break = self._find_sentence_break(segment)
        if sentence_break is not None and sentence_break >= self.config.chunk_size // 4:
            return start + sentence_break
        word_break = segment.rfind(" ")
        if word_break != -1 and word_break >= self.config.chunk_size // 4:
            return start + word_break
        return tentative_end

    @staticmethod
    def _find_sentence_break(segment: str) -> int | None:
        matches = list(_SENTENCE_END_RE.finditer(segment))
        if not matches:
            return None
        return matches[-1].end()
