"""Service layer tying document processing, chunk storage and session contexts together."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from workdesk.context import (
    DocumentContext,
    InMemorySessionContextStore,
    SessionContextStore,
    create_document_context,
)
from workdesk.context.builder import new_document_id
from workdesk.ingest import DocumentProcessor, ProcessedDocument
from workdesk.ingest.embedding_pipeline import (
    ChunkEmbeddingPipeline,
    EmbeddingRunResult,
    ProcessingOptions,
)
from workdesk.settings import Settings, get_settings
from workdesk.telemetry import emit_exception, emit_ingest_event, traced_duration
from workdesk.vectorstore import DEFAULT_SEARCH_LIMIT, ChunkSearchResult, StoredChunk

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class DocumentProcessingResult:
    """Outcome of :meth:`DocumentService.process_upload`."""

    document_id: str
    file_name: str
    document: ProcessedDocument
    embeddings: EmbeddingRunResult
    session_id: Optional[str] = None
    context: Optional[DocumentContext] = None
    duration_seconds: float = 0.0
    warnings: List[str] = field(default_factory=list)


class DocumentService:
    """High level orchestration for the document upload workflow."""

    def __init__(
        self,
        *,
        store: SessionContextStore,
        processor: DocumentProcessor | None = None,
        embedding_pipeline: ChunkEmbeddingPipeline | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store
        self.processor = processor or DocumentProcessor()
        self.embedding_pipeline = embedding_pipeline or ChunkEmbeddingPipeline()

    def default_options(self) -> ProcessingOptions:
        return ProcessingOptions(
            chunk_size=self.settings.chunk_size,
            overlap=self.settings.chunk_overlap,
            generate_embeddings=self.settings.generate_embeddings,
        )

    def process_upload(
        self,
        data: bytes,
        file_name: str,
        *,
        mime_type: str | None = None,
        document_id: str | None = None,
        session_id: str | None = None,
        options: ProcessingOptions | None = None,
    ) -> DocumentProcessingResult:
        """Process an uploaded file, store its chunks and optionally attach it to a session."""

        started = time.perf_counter()
        document_id = document_id or new_document_id()
        options = options or self.default_options()

        emit_ingest_event(
            "ingest.file.start",
            file_name=file_name,
            document_id=document_id,
            session_id=session_id,
            size_bytes=len(data),
        )
        document = self.processor.process_document(data, file_name, mime_type)

        try:
            embeddings = self.embedding_pipeline.run(
                document_id,
                document.content,
                options,
                file_name=file_name,
                language=document.metadata.language,
                session_id=session_id,
            )
        except Exception as error:
            emit_exception(module=f"{__name__}.embeddings", error=error, session_id=session_id)
            raise

        context: DocumentContext | None = None
        if session_id:
            context = create_document_context(document, file_name, document_id)
            self.store.add(session_id, context)

        duration = time.perf_counter() - started
        emit_ingest_event(
            "ingest.file.complete",
            file_name=file_name,
            document_id=document_id,
            session_id=session_id,
            file_type=document.metadata.file_type,
            size_bytes=len(data),
            duration_ms=duration * 1000.0,
            words=document.metadata.word_count,
            sections=len(document.sections),
            chunks=embeddings.chunk_count,
        )
        warnings = list(document.metadata.extra.get("warnings", []) or [])
        return DocumentProcessingResult(
            document_id=document_id,
            file_name=file_name,
            document=document,
            embeddings=embeddings,
            session_id=session_id,
            context=context,
            duration_seconds=duration,
            warnings=warnings,
        )

    def search(
        self,
        text: str,
        *,
        k: int = DEFAULT_SEARCH_LIMIT,
        document_id: str | None = None,
        threshold: float | None = None,
    ) -> List[ChunkSearchResult]:
        with traced_duration(
            "documents.search", logger=LOGGER, k=k, document_id=document_id, threshold=threshold
        ):
            return self.embedding_pipeline.vector_store.query_by_text(
                text, k=k, document_id=document_id, threshold=threshold
            )

    def list_chunks(self, document_id: str) -> List[StoredChunk]:
        return self.embedding_pipeline.vector_store.list_document_chunks(document_id)

    def delete_document(self, document_id: str) -> int:
        removed = self.embedding_pipeline.vector_store.delete_document(document_id)
        LOGGER.info("Removed %s chunks for document %s", removed, document_id)
        return removed

    @staticmethod
    def supported_file_types() -> List[str]:
        return DocumentProcessor.supported_file_types()


@lru_cache()
def get_context_store() -> SessionContextStore:
    """FastAPI dependency returning the shared session context store."""

    settings = get_settings()
    return InMemorySessionContextStore(
        ttl_seconds=settings.context_ttl_seconds,
        max_sessions=settings.context_max_sessions,
    )


@lru_cache()
def get_document_service() -> DocumentService:
    """FastAPI dependency returning the shared :class:`DocumentService` instance."""

    return DocumentService(store=get_context_store())


def reset_service_caches() -> None:
    """Drop the cached service and store (primarily for testing)."""

    get_document_service.cache_clear()  # type: ignore[attr-defined]
    get_context_store.cache_clear()  # type: ignore[attr-defined]


__all__ = [
    "DocumentProcessingResult",
    "DocumentService",
    "get_context_store",
    "get_document_service",
    "reset_service_caches",
]
