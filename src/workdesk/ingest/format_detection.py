"""Utilities for detecting the format of uploaded documents."""
from __future__ import annotations

import logging
from enum import Enum
from pathlib import PurePosixPath
from typing import Dict, Optional

LOGGER = logging.getLogger(__name__)


class FormatKind(str, Enum):
    """Document kinds known to the pipeline."""

    PDF = "pdf"
    DOCX = "docx"
    DOC = "doc"
    XLSX = "xlsx"
    XLS = "xls"
    CSV = "csv"
    TXT = "txt"
    MD = "md"
    MARKDOWN = "markdown"
    HTML = "html"
    JSON = "json"
    XML = "xml"
    RTF = "rtf"
    PPTX = "pptx"
    UNKNOWN = "unknown"


class DocumentFormatDetector:
    """Detects the document format from the file name extension."""

    _EXTENSION_MAP: Dict[str, FormatKind] = {
        "pdf": FormatKind.PDF,
        "docx": FormatKind.DOCX,
        "doc": FormatKind.DOC,
        "xlsx": FormatKind.XLSX,
        "xls": FormatKind.XLS,
        "csv": FormatKind.CSV,
        "txt": FormatKind.TXT,
        "md": FormatKind.MD,
        "markdown": FormatKind.MARKDOWN,
        "html": FormatKind.HTML,
        "htm": FormatKind.HTML,
        "json": FormatKind.JSON,
        "xml": FormatKind.XML,
        "rtf": FormatKind.RTF,
        "pptx": FormatKind.PPTX,
        "ppt": FormatKind.PPTX,
    }

    @classmethod
    def detect(cls, file_name: str, mime_type: Optional[str] = None) -> FormatKind:
        """Return the detected document format.

        The lower-cased extension is looked up in a fixed table. ``mime_type``
        is accepted for interface compatibility but the extension always wins;
        unknown extensions map to :attr:`FormatKind.UNKNOWN`.
        """

        suffix = PurePosixPath(file_name or "").suffix.lower().lstrip(".")
        kind = cls._EXTENSION_MAP.get(suffix, FormatKind.UNKNOWN)
        LOGGER.debug("Detected format %s for %s (mime=%s)", kind.value, file_name, mime_type)
        return kind

    @classmethod
    def known_extensions(cls) -> list[str]:
        return list(cls._EXTENSION_MAP)
