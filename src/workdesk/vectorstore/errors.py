"""Exceptions raised by the chunk vector store backends."""
from __future__ import annotations


class VectorStoreUnavailableError(RuntimeError):
    """Raised when a vector store backend cannot be initialised, written or queried."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause
        self.__cause__ = cause


__all__ = ["VectorStoreUnavailableError"]
