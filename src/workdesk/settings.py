"""Environment-driven configuration for the document service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

LOGGER = logging.getLogger(__name__)

_FALSE_VALUES = {"0", "false", "no", "off"}


def _int_from_env(name: str, default: int | None) -> int | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        LOGGER.warning("Invalid integer for %s: %s; using default %s", name, value, default)
        return default


def _float_from_env(name: str, default: float | None) -> float | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        LOGGER.warning("Invalid float for %s: %s; using default %s", name, value, default)
        return default


def _bool_from_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in _FALSE_VALUES


@dataclass(frozen=True, slots=True)
class Settings:
    chunk_size: int = 1000
    chunk_overlap: int = 200
    generate_embeddings: bool = True
    context_ttl_seconds: float | None = None
    context_max_sessions: int | None = None
    context_preview_chars: int = 500
    embedding_backend: str = "sentence-transformers"
    embedding_model_path: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_device: str | None = None
    vector_store: str = "memory"
    chroma_persist_dir: str = "chroma_db"
    log_dir: str = "logs"
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build :class:`Settings` from the process environment."""

    defaults = Settings()
    return Settings(
        chunk_size=_int_from_env("CHUNK_SIZE", defaults.chunk_size),
        chunk_overlap=_int_from_env("CHUNK_OVERLAP", defaults.chunk_overlap),
        generate_embeddings=_bool_from_env("GENERATE_EMBEDDINGS", defaults.generate_embeddings),
        context_ttl_seconds=_float_from_env("CONTEXT_TTL_SECONDS", None),
        context_max_sessions=_int_from_env("CONTEXT_MAX_SESSIONS", None),
        context_preview_chars=_int_from_env("CONTEXT_PREVIEW_CHARS", defaults.context_preview_chars),
        embedding_backend=os.getenv("EMBEDDING_BACKEND", defaults.embedding_backend).strip().lower(),
        embedding_model_path=os.getenv("EMBEDDING_MODEL_PATH", defaults.embedding_model_path),
        embedding_device=os.getenv("EMBEDDING_DEVICE") or None,
        vector_store=os.getenv("VECTOR_STORE", defaults.vector_store).strip().lower(),
        chroma_persist_dir=os.getenv("CHROMA_PERSIST_DIR", defaults.chroma_persist_dir),
        log_dir=os.getenv("LOG_DIR", defaults.log_dir),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level).strip().upper(),
    )


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings instance."""

    return load_settings()


def reset_settings_cache() -> None:
    """Clear the cached settings (primarily for testing)."""

    get_settings.cache_clear()  # type: ignore[attr-defined]
