"""Process-local vector store mirroring the subset of the Chroma API we use."""
from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class MemoryQueryResult:
    """Container for similarity search results."""

    id: str
    document: str
    metadata: dict
    distance: float


@dataclass(slots=True)
class _StoredItem:
    id: str
    embedding: List[float]
    document: str
    metadata: dict


class MemoryVectorStore:
    """Keep named collections of embeddings in memory.

    Writes are upserts keyed by id. Distances are cosine distances, which
    matches the ``hnsw:space`` used for Chroma collections.
    """

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, _StoredItem]] = {}
        self._lock = threading.Lock()

    def create_collection(self, name: str, *, metadata: Optional[Dict[str, Any]] = None) -> None:
        with self._lock:
            self._collections.setdefault(name, {})

    def add(
        self,
        name: str,
        *,
        ids: Iterable[str],
        embeddings: Iterable[Sequence[float]],
        documents: Iterable[str],
        metadatas: Iterable[Dict[str, Any] | None] | None = None,
    ) -> None:
        id_list = list(ids)
        embedding_list = [list(map(float, embedding)) for embedding in embeddings]
        document_list = list(documents)
        metadata_list = list(metadatas) if metadatas is not None else [None] * len(id_list)

        if not (
            len(id_list)
            == len(embedding_list)
            == len(document_list)
            == len(metadata_list)
        ):
            raise ValueError("All inputs must be of the same length")

        with self._lock:
            if name not in self._collections:
                raise KeyError(f"Collection '{name}' does not exist")
            collection = self._collections[name]
            for item_id, embedding, document, metadata in zip(
                id_list, embedding_list, document_list, metadata_list
            ):
                collection[item_id] = _StoredItem(
                    id=item_id,
                    embedding=embedding,
                    document=document,
                    metadata=dict(metadata or {}),
                )

    def query(
        self,
        name: str,
        query_embedding: Sequence[float],
        k: int = 5,
        *,
        where: Optional[Mapping[str, Any]] = None,
    ) -> List[MemoryQueryResult]:
        """Return the *k* closest results to the provided embedding."""

        if k <= 0:
            return []
        with self._lock:
            if name not in self._collections:
                raise KeyError(f"Collection '{name}' does not exist")
            items = [item for item in self._collections[name].values() if _matches(item.metadata, where)]

        scored = sorted(
            ((_cosine_distance(query_embedding, item.embedding), item) for item in items),
            key=lambda pair: pair[0],
        )[:k]
        return [
            MemoryQueryResult(
                id=item.id,
                document=item.document,
                metadata=dict(item.metadata),
                distance=distance,
            )
            for distance, item in scored
        ]

    def get(self, name: str, *, where: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """Return the stored records whose metadata matches ``where``."""

        with self._lock:
            items = list(self._collections.get(name, {}).values())
        return [
            {"id": item.id, "document": item.document, "metadata": dict(item.metadata)}
            for item in items
            if _matches(item.metadata, where)
        ]

    def delete(self, name: str, *, where: Mapping[str, Any]) -> int:
        """Remove every item whose metadata matches ``where``; returns the count removed."""

        with self._lock:
            collection = self._collections.get(name)
            if not collection:
                return 0
            doomed = [item_id for item_id, item in collection.items() if _matches(item.metadata, where)]
            for item_id in doomed:
                del collection[item_id]
        LOGGER.debug("Deleted %s items from %s", len(doomed), name)
        return len(doomed)

    def count(self, name: str) -> int:
        with self._lock:
            return len(self._collections.get(name, {}))


def _matches(metadata: Mapping[str, Any], where: Optional[Mapping[str, Any]]) -> bool:
    if not where:
        return True
    return all(metadata.get(key) == value for key, value in where.items())


def _cosine_distance(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    if len(vec_a) != len(vec_b):
        raise ValueError("Vectors must be of the same dimension")
    dot = sum(a * b for a, b in zip(vec_a, vec_b))
    norm_a = math.sqrt(sum(a * a for a in vec_a))
    norm_b = math.sqrt(sum(b * b for b in vec_b))
    if not norm_a or not norm_b:
        return 1.0
    return 1.0 - dot / (norm_a * norm_b)


__all__ = ["MemoryQueryResult", "MemoryVectorStore"]
