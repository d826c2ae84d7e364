"""API router exposing document processing and chunk search endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, Field

from workdesk.ingest import ProcessingError, Section
from workdesk.ingest.embedding_pipeline import ProcessingOptions
from workdesk.services.documents import DocumentProcessingResult, DocumentService, get_document_service
from workdesk.vectorstore import (
    DEFAULT_SEARCH_LIMIT,
    ChunkSearchResult,
    StoredChunk,
    VectorStoreUnavailableError,
)

router = APIRouter(prefix="/documents", tags=["documents"])

DEFAULT_SIMILARITY_THRESHOLD = 0.7


class SectionModel(BaseModel):
    title: str
    content: str
    start_index: int
    end_index: int


class ProcessDocumentResponse(BaseModel):
    """Response body returned from the process endpoint."""

    document_id: str
    file_name: str
    metadata: dict[str, Any]
    sections: list[SectionModel]
    chunk_count: int
    embedded: bool
    session_id: str | None = None
    warnings: list[str] = Field(default_factory=list)


class SupportedTypesResponse(BaseModel):
    types: list[str]


class SearchRequest(BaseModel):
    """Request body accepted by the search endpoint."""

    text: str = Field(..., min_length=1, description="Query text to search for similar chunks.")
    k: int = Field(DEFAULT_SEARCH_LIMIT, ge=1, le=50, description="Maximum number of results to return.")
    threshold: float = Field(
        DEFAULT_SIMILARITY_THRESHOLD,
        ge=-1.0,
        le=1.0,
        description="Minimum cosine similarity a chunk needs to be returned.",
    )
    document_id: str | None = Field(None, description="Restrict results to a single document.")


class SearchResponseItem(BaseModel):
    id: str
    distance: float
    content: str
    metadata: dict[str, Any]


class SearchResponse(BaseModel):
    results: list[SearchResponseItem]


class StoredChunkItem(BaseModel):
    id: str
    content: str
    metadata: dict[str, Any]


class DocumentChunksResponse(BaseModel):
    document_id: str
    chunks: list[StoredChunkItem]


class DeleteChunksResponse(BaseModel):
    document_id: str
    removed: int


def _serialise_section(section: Section) -> SectionModel:
    return SectionModel(
        title=section.title,
        content=section.content,
        start_index=section.start_index,
        end_index=section.end_index,
    )


def _serialise_result(result: DocumentProcessingResult) -> ProcessDocumentResponse:
    return ProcessDocumentResponse(
        document_id=result.document_id,
        file_name=result.file_name,
        metadata=result.document.metadata.as_dict(),
        sections=[_serialise_section(section) for section in result.document.sections],
        chunk_count=result.embeddings.chunk_count,
        embedded=result.embeddings.embedded,
        session_id=result.session_id,
        warnings=result.warnings,
    )


def _serialise_hit(hit: ChunkSearchResult) -> SearchResponseItem:
    return SearchResponseItem(
        id=hit.id,
        distance=hit.distance,
        content=hit.content,
        metadata=dict(hit.metadata),
    )


def _serialise_chunk(chunk: StoredChunk) -> StoredChunkItem:
    return StoredChunkItem(id=chunk.id, content=chunk.content, metadata=dict(chunk.metadata))


@router.get("/supported-types", response_model=SupportedTypesResponse)
def supported_types(
    service: DocumentService = Depends(get_document_service),
) -> SupportedTypesResponse:
    """List the file extensions the processor accepts."""

    return SupportedTypesResponse(types=service.supported_file_types())


@router.post("/process", response_model=ProcessDocumentResponse)
def process_document(
    file: UploadFile = File(...),
    document_id: str | None = Form(None),
    session_id: str | None = Form(None),
    chunk_size: int | None = Form(None, ge=1),
    overlap: int | None = Form(None, ge=0),
    generate_embeddings: bool | None = Form(None),
    service: DocumentService = Depends(get_document_service),
) -> ProcessDocumentResponse:
    """Extract, normalise, chunk and optionally attach an uploaded document to a session."""

    defaults = service.default_options()
    options = ProcessingOptions(
        chunk_size=chunk_size if chunk_size is not None else defaults.chunk_size,
        overlap=overlap if overlap is not None else defaults.overlap,
        generate_embeddings=(
            generate_embeddings if generate_embeddings is not None else defaults.generate_embeddings
        ),
    )
    data = file.file.read()
    file_name = file.filename or "upload"

    try:
        result = service.process_upload(
            data,
            file_name,
            mime_type=file.content_type,
            document_id=document_id or None,
            session_id=session_id or None,
            options=options,
        )
    except ProcessingError as exc:
        status_code = 415 if exc.unsupported else 422
        raise HTTPException(status_code=status_code, detail=str(exc)) from exc
    except VectorStoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return _serialise_result(result)


@router.post("/search", response_model=SearchResponse)
def search_chunks(
    request: SearchRequest,
    service: DocumentService = Depends(get_document_service),
) -> SearchResponse:
    """Query stored chunks by plain text and return the closest matches."""

    if not request.text.strip():
        raise HTTPException(status_code=422, detail="Query text must not be empty")
    try:
        hits = service.search(
            request.text,
            k=request.k,
            document_id=request.document_id,
            threshold=request.threshold,
        )
    except VectorStoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return SearchResponse(results=[_serialise_hit(hit) for hit in hits])


@router.get("/{document_id}/chunks", response_model=DocumentChunksResponse)
def list_chunks(
    document_id: str,
    service: DocumentService = Depends(get_document_service),
) -> DocumentChunksResponse:
    """Return the stored chunks of a document in chunk order."""

    try:
        chunks = service.list_chunks(document_id)
    except VectorStoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return DocumentChunksResponse(
        document_id=document_id,
        chunks=[_serialise_chunk(chunk) for chunk in chunks],
    )


@router.delete("/{document_id}/chunks", response_model=DeleteChunksResponse)
def delete_chunks(
    document_id: str,
    service: DocumentService = Depends(get_document_service),
) -> DeleteChunksResponse:
    """Remove every stored chunk of a document."""

    try:
        removed = service.delete_document(document_id)
    except VectorStoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return DeleteChunksResponse(document_id=document_id, removed=removed)
