"""Exceptions raised by the document ingestion pipeline."""
from __future__ import annotations


class DocumentError(RuntimeError):
    """Base class for document pipeline failures."""


class UnsupportedFormatError(DocumentError):
    """Raised when a document format is recognised as unsupported or unknown."""


class ExtractionError(DocumentError):
    """Raised when document bytes cannot be parsed as the detected format."""


class ProcessingError(DocumentError):
    """Uniform wrapper surfaced to callers of :class:`DocumentProcessor`."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause
        self.__cause__ = cause

    @property
    def unsupported(self) -> bool:
        return isinstance(self.cause, UnsupportedFormatError)


__all__ = [
    "DocumentError",
    "ExtractionError",
    "ProcessingError",
    "UnsupportedFormatError",
]
