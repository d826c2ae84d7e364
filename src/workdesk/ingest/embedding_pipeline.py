"""Pipeline for chunking processed documents and storing their embeddings."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from workdesk.telemetry import emit_ingest_event
from workdesk.vectorstore import ChunkVectorStore, get_vector_store

from .chunking import ChunkingConfig, TextChunker
from .models import DocumentChunk

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ProcessingOptions:
    chunk_size: int = 1000
    overlap: int = 200
    generate_embeddings: bool = True


@dataclass(slots=True)
class EmbeddingRunResult:
    chunk_count: int
    chunk_ids: List[str] = field(default_factory=list)
    embedded: bool = False


class ChunkEmbeddingPipeline:
    """Split document content into chunks and persist them into the vector store."""

    def __init__(self, vector_store: Optional[ChunkVectorStore] = None) -> None:
        self._vector_store = vector_store

    @property
    def vector_store(self) -> ChunkVectorStore:
        if self._vector_store is None:
            self._vector_store = get_vector_store()
        return self._vector_store

    def chunk(
        self,
        document_id: str,
        content: str,
        options: ProcessingOptions,
        *,
        file_name: str = "",
        language: str | None = None,
        session_id: str | None = None,
    ) -> List[DocumentChunk]:
        chunker = TextChunker(ChunkingConfig(chunk_size=options.chunk_size, overlap=options.overlap))
        return list(
            chunker.chunk_document(
                content,
                document_id=document_id,
                file_name=file_name,
                language=language,
                session_id=session_id,
            )
        )

    def run(
        self,
        document_id: str,
        content: str,
        options: Optional[ProcessingOptions] = None,
        *,
        file_name: str = "",
        language: str | None = None,
        session_id: str | None = None,
    ) -> EmbeddingRunResult:
        """Chunk ``content`` and, when requested, embed and store the chunks.

        Storing replaces every chunk previously kept for ``document_id``.
        """

        options = options or ProcessingOptions()
        started = time.perf_counter()
        chunks = self.chunk(
            document_id,
            content,
            options,
            file_name=file_name,
            language=language,
            session_id=session_id,
        )

        chunk_ids: List[str] = []
        embedded = False
        if options.generate_embeddings:
            # Chunks from an earlier version of the document must not survive.
            removed = self.vector_store.delete_document(document_id)
            if removed:
                LOGGER.info("Replaced %s stored chunks for %s", removed, document_id)
        if options.generate_embeddings and chunks:
            chunk_ids = self.vector_store.upsert_chunks(chunks)
            embedded = True
        else:
            LOGGER.info("Skipping embeddings for %s (%s chunks)", document_id, len(chunks))

        emit_ingest_event(
            "ingest.document.chunked",
            file_name=file_name,
            document_id=document_id,
            session_id=session_id,
            duration_ms=(time.perf_counter() - started) * 1000.0,
            chunks=len(chunks),
        )
        return EmbeddingRunResult(chunk_count=len(chunks), chunk_ids=chunk_ids, embedded=embedded)


__all__ = ["ChunkEmbeddingPipeline", "EmbeddingRunResult", "ProcessingOptions"]
