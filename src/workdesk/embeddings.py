"""Embedding helpers backed by Sentence Transformers."""
from __future__ import annotations

import hashlib
import logging
import random
import time
from functools import lru_cache
from typing import List, Optional, Sequence

from workdesk.settings import Settings, get_settings
from workdesk.telemetry import emit_embeddings_event

LOGGER = logging.getLogger(__name__)

HASH_BACKEND = "hash"
SENTENCE_TRANSFORMERS_BACKEND = "sentence-transformers"
HASH_DIMENSION = 384


class EmbeddingModel:
    """Wrapper around a SentenceTransformer model or a deterministic hash embedder.

    The ``hash`` backend is selected explicitly through configuration and is
    meant for offline development and tests.
    """

    def __init__(
        self,
        model_name_or_path: str | None = None,
        *,
        backend: str | None = None,
        device: str | None = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self._backend = (backend or settings.embedding_backend).strip().lower()
        self._model = None
        self._dimension = HASH_DIMENSION

        if self._backend == HASH_BACKEND:
            self._model_name = "deterministic-hash"
            LOGGER.info("Using deterministic hash embeddings")
            return

        if self._backend != SENTENCE_TRANSFORMERS_BACKEND:
            raise ValueError(f"Unsupported EMBEDDING_BACKEND: {self._backend!r}")

        from sentence_transformers import SentenceTransformer

        model_path = model_name_or_path or settings.embedding_model_path
        self._model_name = model_path
        self._model = SentenceTransformer(model_path, device=device or settings.embedding_device)
        self._dimension = int(self._model.get_sentence_embedding_dimension())
        LOGGER.info("Loaded embedding model %s (dimension=%s)", model_path, self._dimension)

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def dimension(self) -> int:
        return int(self._dimension)

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        started = time.perf_counter()
        try:
            if self._model is None:
                embeddings = [self._hash_embedding(str(text)) for text in texts]
            else:
                embeddings = self._model.encode(
                    list(texts),
                    convert_to_numpy=True,
                    show_progress_bar=False,
                    normalize_embeddings=False,
                ).tolist()
        except Exception as error:
            emit_embeddings_event(
                model=self._model_name,
                count=len(texts),
                duration_ms=(time.perf_counter() - started) * 1000.0,
                errors=[str(error)],
            )
            raise

        emit_embeddings_event(
            model=self._model_name,
            count=len(texts),
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        return embeddings

    def _hash_embedding(self, text: str) -> List[float]:
        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest(), "big")
        rng = random.Random(seed)
        return [rng.uniform(-1.0, 1.0) for _ in range(self._dimension)]


@lru_cache()
def get_embedding_model() -> EmbeddingModel:
    """Return a cached embedding model instance."""

    return EmbeddingModel()


def reset_embedding_model_cache() -> None:
    """Clear the cached embedding model instance (primarily for testing)."""

    get_embedding_model.cache_clear()  # type: ignore[attr-defined]
