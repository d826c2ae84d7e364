"""High level document processing entry point."""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from workdesk.telemetry import emit_exception, emit_ingest_event

from .errors import ProcessingError
from .extractors import Extractor, build_extractor_registry, get_extractor
from .format_detection import DocumentFormatDetector, FormatKind
from .language import LanguageDetector
from .models import DocumentMetadata, ProcessedDocument
from .normalization import count_words, normalize_text
from .sections import split_sections

LOGGER = logging.getLogger(__name__)

SUPPORTED_FILE_TYPES: tuple[str, ...] = (
    "pdf",
    "docx",
    "xlsx",
    "xls",
    "csv",
    "txt",
    "md",
    "markdown",
    "html",
    "htm",
    "json",
    "xml",
)

_PROMOTED_FIELDS = ("page_count", "title", "author")


class DocumentProcessor:
    """Pipeline orchestrating format detection, extraction and normalisation."""

    def __init__(
        self,
        *,
        extractors: Optional[Mapping[FormatKind, Extractor]] = None,
        language_detector: Optional[LanguageDetector] = None,
    ) -> None:
        self.extractors: Dict[FormatKind, Extractor] = dict(extractors or build_extractor_registry())
        self.language_detector = language_detector or LanguageDetector()

    def process_document(
        self,
        data: bytes,
        file_name: str,
        mime_type: Optional[str] = None,
    ) -> ProcessedDocument:
        """Extract, normalise and annotate an uploaded document."""

        started = time.perf_counter()
        try:
            document = self._process(data, file_name, mime_type)
        except Exception as error:
            emit_exception(module=f"{__name__}.process_document", error=error)
            raise ProcessingError(f"Failed to process document: {error}", cause=error) from error

        emit_ingest_event(
            "ingest.document.processed",
            file_name=file_name,
            file_type=document.metadata.file_type,
            size_bytes=len(data),
            duration_ms=(time.perf_counter() - started) * 1000.0,
            language=document.metadata.language,
            pages=document.metadata.page_count,
            words=document.metadata.word_count,
            sections=len(document.sections),
        )
        return document

    def _process(self, data: bytes, file_name: str, mime_type: Optional[str]) -> ProcessedDocument:
        kind = DocumentFormatDetector.detect(file_name, mime_type)
        LOGGER.info("Processing file %s as %s", file_name, kind.value)
        extracted_at = datetime.now(timezone.utc).isoformat()

        result = get_extractor(self.extractors, kind).extract(data)
        content = normalize_text(result.content)

        extra = dict(result.metadata)
        promoted = {key: extra.pop(key, None) for key in _PROMOTED_FIELDS}
        metadata = DocumentMetadata(
            word_count=count_words(content),
            char_count=len(content),
            file_type=kind.value,
            extracted_at=extracted_at,
            language=self.language_detector.detect(content),
            extra=extra,
            **promoted,
        )
        sections = split_sections(content)
        return ProcessedDocument(content=content, metadata=metadata, sections=sections)

    @staticmethod
    def supported_file_types() -> List[str]:
        return list(SUPPORTED_FILE_TYPES)

    def is_file_type_supported(self, file_name: str, mime_type: Optional[str] = None) -> bool:
        kind = DocumentFormatDetector.detect(file_name, mime_type)
        return kind.value in SUPPORTED_FILE_TYPES
