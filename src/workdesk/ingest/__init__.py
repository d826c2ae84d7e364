"""Document ingestion: format detection, extraction, normalisation and sections."""
from __future__ import annotations

from .errors import DocumentError, ExtractionError, ProcessingError, UnsupportedFormatError
from .format_detection import DocumentFormatDetector, FormatKind
from .models import DocumentMetadata, ProcessedDocument, Section
from .pipeline import SUPPORTED_FILE_TYPES, DocumentProcessor

__all__ = [
    "DocumentError",
    "DocumentFormatDetector",
    "DocumentMetadata",
    "DocumentProcessor",
    "ExtractionError",
    "FormatKind",
    "ProcessedDocument",
    "ProcessingError",
    "SUPPORTED_FILE_TYPES",
    "Section",
    "UnsupportedFormatError",
]
