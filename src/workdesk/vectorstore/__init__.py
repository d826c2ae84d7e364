"""Vector store helpers backed by pluggable backends."""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, TYPE_CHECKING

from workdesk.ingest.models import DocumentChunk
from workdesk.settings import get_settings
from workdesk.telemetry import emit_vectorstore_event

from .errors import VectorStoreUnavailableError
from .memory_store import MemoryQueryResult, MemoryVectorStore

if TYPE_CHECKING:  # pragma: no cover - import for type checking only
    from workdesk.embeddings import EmbeddingModel

LOGGER = logging.getLogger(__name__)

DEFAULT_COLLECTION_NAME = "document_chunks"
DEFAULT_DISTANCE_METRIC = "cosine"
DEFAULT_SEARCH_LIMIT = 10


class VectorBackend(Protocol):
    """Operations shared by :class:`MemoryVectorStore` and ``ChromaStore``."""

    def create_collection(self, name: str, *, metadata: Optional[Dict[str, Any]] = None) -> Any:
        ...

    def add(self, name: str, *, ids, embeddings, documents, metadatas=None) -> None:
        ...

    def query(self, name: str, query_embedding: Sequence[float], k: int = 5, *, where=None) -> List[Any]:
        ...

    def get(self, name: str, *, where: Mapping[str, Any]) -> List[Dict[str, Any]]:
        ...

    def delete(self, name: str, *, where: Mapping[str, Any]) -> int:
        ...

    def count(self, name: str) -> int:
        ...


@dataclass(slots=True)
class ChunkSearchResult:
    """Structured response returned from similarity search queries."""

    id: str
    content: str
    distance: float
    metadata: Dict[str, object]

    @property
    def similarity(self) -> float:
        return 1.0 - self.distance


@dataclass(slots=True)
class StoredChunk:
    id: str
    content: str
    metadata: Dict[str, object]


class ChunkVectorStore:
    """Persist document chunks and their embeddings in a vector backend."""

    def __init__(
        self,
        *,
        backend: VectorBackend,
        embedding_model: Optional["EmbeddingModel"] = None,
        collection_name: str = DEFAULT_COLLECTION_NAME,
        distance_metric: str = DEFAULT_DISTANCE_METRIC,
    ) -> None:
        self.collection_name = collection_name
        self.distance_metric = distance_metric
        self._backend = backend
        self._embedding_model = embedding_model

        try:
            self._backend.create_collection(
                self.collection_name,
                metadata={"hnsw:space": self.distance_metric},
            )
        except VectorStoreUnavailableError:
            raise
        except Exception as exc:  # pragma: no cover - unexpected backend failure
            raise VectorStoreUnavailableError(
                "Failed to initialise vector store collection",
                cause=exc,
            ) from exc

    @property
    def embedding_model(self) -> "EmbeddingModel":
        if self._embedding_model is None:
            from workdesk.embeddings import get_embedding_model

            self._embedding_model = get_embedding_model()
        return self._embedding_model

    @staticmethod
    def chunk_id(chunk: DocumentChunk) -> str:
        meta = chunk.metadata
        seed = f"{meta.document_id}:{meta.chunk_index}:{meta.char_start}:{meta.char_end}"
        return uuid.uuid5(uuid.NAMESPACE_URL, seed).hex

    def upsert_chunks(self, chunks: Sequence[DocumentChunk]) -> List[str]:
        if not chunks:
            return []

        ids: List[str] = []
        documents: List[str] = []
        metadatas: List[Dict[str, object]] = []

        for chunk in chunks:
            ids.append(self.chunk_id(chunk))
            documents.append(chunk.content)
            metadata = asdict(chunk.metadata)
            metadata["content_length"] = len(chunk.content)
            metadatas.append(metadata)

        embeddings = self.embedding_model.embed_texts(documents)
        try:
            self._backend.add(
                self.collection_name,
                ids=ids,
                embeddings=embeddings,
                documents=documents,
                metadatas=metadatas,
            )
        except Exception as exc:
            emit_vectorstore_event(
                "vectorstore.upsert", collection=self.collection_name, count=len(ids), error=exc
            )
            if isinstance(exc, VectorStoreUnavailableError):
                raise
            raise VectorStoreUnavailableError("Failed to upsert chunks into vector store", cause=exc) from exc

        emit_vectorstore_event("vectorstore.upsert", collection=self.collection_name, count=len(ids))
        return ids

    def query_by_text(
        self,
        text: str,
        k: int = DEFAULT_SEARCH_LIMIT,
        *,
        document_id: str | None = None,
        threshold: float | None = None,
    ) -> List[ChunkSearchResult]:
        """Return up to ``k`` chunks closest to ``text``.

        ``threshold`` is a minimum cosine similarity; hits whose distance
        exceeds ``1 - threshold`` are dropped.
        """

        if not text.strip() or k <= 0:
            return []

        query_embeddings = self.embedding_model.embed_texts([text])
        if not query_embeddings:
            return []

        where = {"document_id": document_id} if document_id else None
        try:
            neighbours = self._backend.query(
                self.collection_name, query_embeddings[0], k, where=where
            )
        except VectorStoreUnavailableError:
            raise
        except Exception as exc:  # pragma: no cover - unexpected backend failure
            raise VectorStoreUnavailableError("Vector store query failed", cause=exc) from exc

        results: List[ChunkSearchResult] = []
        for neighbour in neighbours:
            if isinstance(neighbour, MemoryQueryResult):
                results.append(
                    ChunkSearchResult(
                        id=neighbour.id,
                        content=neighbour.document,
                        distance=float(neighbour.distance),
                        metadata=dict(neighbour.metadata),
                    )
                )
                continue

            results.append(
                ChunkSearchResult(
                    id=str(neighbour.get("id", "")),
                    content=str(neighbour.get("document", "")),
                    distance=float(neighbour.get("distance", 0.0)),
                    metadata=dict(neighbour.get("metadata", {})),
                )
            )
        if threshold is not None:
            max_distance = 1.0 - threshold
            results = [result for result in results if result.distance <= max_distance]
        return results

    def list_document_chunks(self, document_id: str) -> List[StoredChunk]:
        """Return the stored chunks of a document ordered by chunk index."""

        try:
            records = self._backend.get(self.collection_name, where={"document_id": document_id})
        except VectorStoreUnavailableError:
            raise
        except Exception as exc:  # pragma: no cover - unexpected backend failure
            raise VectorStoreUnavailableError("Failed to read document chunks", cause=exc) from exc

        chunks = [
            StoredChunk(
                id=str(record["id"]),
                content=str(record.get("document", "")),
                metadata=dict(record.get("metadata") or {}),
            )
            for record in records
        ]
        chunks.sort(key=lambda chunk: int(chunk.metadata.get("chunk_index", 0)))
        return chunks

    def delete_document(self, document_id: str) -> int:
        try:
            removed = self._backend.delete(self.collection_name, where={"document_id": document_id})
        except VectorStoreUnavailableError:
            raise
        except Exception as exc:  # pragma: no cover - unexpected backend failure
            raise VectorStoreUnavailableError("Failed to delete document chunks", cause=exc) from exc
        emit_vectorstore_event("vectorstore.delete", collection=self.collection_name, count=removed)
        return removed

    def count(self) -> int:
        return self._backend.count(self.collection_name)


@lru_cache()
def get_vector_store() -> ChunkVectorStore:
    """Return a lazily initialised vector store instance based on configuration."""

    settings = get_settings()
    backend_name = settings.vector_store

    if backend_name == "memory":
        LOGGER.info("Using in-memory vector store")
        return ChunkVectorStore(backend=MemoryVectorStore())

    if backend_name == "chroma":
        from .chroma_store import ChromaStore

        try:
            store = ChromaStore(settings.chroma_persist_dir)
        except VectorStoreUnavailableError:
            raise
        except Exception as exc:  # pragma: no cover - unexpected backend failure
            raise VectorStoreUnavailableError("Failed to initialise Chroma store", cause=exc) from exc
        LOGGER.info("Using Chroma vector store at %s", settings.chroma_persist_dir)
        return ChunkVectorStore(backend=store)

    raise ValueError(f"Unsupported VECTOR_STORE backend: {backend_name!r}")


def reset_vector_store_cache() -> None:
    """Clear the cached vector store (primarily for testing)."""

    get_vector_store.cache_clear()  # type: ignore[attr-defined]


__all__ = [
    "ChunkSearchResult",
    "ChunkVectorStore",
    "MemoryVectorStore",
    "StoredChunk",
    "VectorBackend",
    "VectorStoreUnavailableError",
    "get_vector_store",
    "reset_vector_store_cache",
]
