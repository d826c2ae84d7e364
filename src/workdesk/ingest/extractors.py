"""Extractors for supported document types."""
from __future__ import annotations

import io
import json
import logging
import re
import xml.etree.ElementTree as ET
import zipfile
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

import openpyxl
import xlrd
from bs4 import BeautifulSoup
from xlrd.formula import cellname
from docx import Document as DocxDocument
from PyPDF2 import PdfReader

from .errors import ExtractionError, UnsupportedFormatError
from .format_detection import FormatKind
from .models import ExtractionResult
from .normalization import markdown_to_text

LOGGER = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
_WORD_NAMESPACE = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"


class Extractor(Protocol):
    """Turns raw file bytes into plain text plus metadata."""

    def extract(self, data: bytes) -> ExtractionResult:
        ...


def _decode_text(data: bytes) -> str:
    return data.decode("utf-8-sig", errors="replace")


def _collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def _strip_tags(markup: str) -> str:
    return _collapse_whitespace(_TAG_RE.sub(" ", markup))


def _format_cell(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class PDFExtractor:
    """Extract text and document information from PDF files."""

    _INFO_FIELDS = {
        "creation_date": "/CreationDate",
        "modification_date": "/ModDate",
    }

    def extract(self, data: bytes) -> ExtractionResult:
        try:
            reader = PdfReader(io.BytesIO(data))
            pages = list(reader.pages)
        except Exception as error:
            raise ExtractionError(f"Failed to process PDF: {error}") from error

        texts: List[str] = []
        for index, page in enumerate(pages, start=1):
            try:
                texts.append(page.extract_text() or "")
            except Exception as error:
                LOGGER.warning("Failed to extract text from PDF page %s: %s", index, error)
                texts.append("")

        metadata: Dict[str, Any] = {"page_count": len(pages)}
        metadata.update(self._document_info(reader))
        return ExtractionResult(content="\n".join(texts), metadata=metadata)

    def _document_info(self, reader: PdfReader) -> Dict[str, Any]:
        try:
            info = reader.metadata
        except Exception as error:
            LOGGER.warning("Failed to read PDF document information: %s", error)
            return {}
        if not info:
            return {}

        values: Dict[str, Any] = {
            "title": info.title,
            "author": info.author,
            "creator": info.creator,
            "producer": info.producer,
        }
        for key, raw_key in self._INFO_FIELDS.items():
            raw = info.get(raw_key)
            values[key] = str(raw) if raw is not None else None
        return {key: str(value) for key, value in values.items() if value}


class DocxExtractor:
    """Extract text from Microsoft Word documents.

    Problems that still leave readable text behind are reported in the
    ``warnings`` and ``errors`` metadata lists. Only an unreadable container
    raises :class:`ExtractionError`.
    """

    def extract(self, data: bytes) -> ExtractionResult:
        warnings: List[str] = []
        errors: List[str] = []
        try:
            document = DocxDocument(io.BytesIO(data))
        except Exception as error:
            LOGGER.warning("python-docx failed to parse DOCX content: %s", error)
            errors.append(f"python-docx could not parse the package: {error}")
            text = self._extract_from_xml(data)
            warnings.append("Text was read from the raw document XML")
            return ExtractionResult(content=text, metadata={"warnings": warnings, "errors": errors})

        parts = [paragraph.text for paragraph in document.paragraphs if paragraph.text]
        for table_index, table in enumerate(document.tables, start=1):
            try:
                for row in table.rows:
                    cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                    if cells:
                        parts.append("\t".join(cells))
            except Exception as error:
                warnings.append(f"Skipped unreadable table {table_index}: {error}")

        metadata: Dict[str, Any] = {"warnings": warnings, "errors": errors}
        try:
            properties = document.core_properties
            if properties.title:
                metadata["title"] = properties.title
            if properties.author:
                metadata["author"] = properties.author
        except Exception as error:
            warnings.append(f"Could not read core properties: {error}")

        return ExtractionResult(content="\n\n".join(parts), metadata=metadata)

    def _extract_from_xml(self, data: bytes) -> str:
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                xml_bytes = archive.read("word/document.xml")
            root = ET.fromstring(xml_bytes)
        except Exception as error:
            raise ExtractionError(f"Failed to process DOCX: {error}") from error

        paragraphs: List[str] = []
        for paragraph in root.iter(f"{_WORD_NAMESPACE}p"):
            text = "".join(node.text or "" for node in paragraph.iter(f"{_WORD_NAMESPACE}t"))
            if text:
                paragraphs.append(text)
        return "\n\n".join(paragraphs)


def _render_sheets(sheets: Iterable[tuple[str, List[tuple], Optional[str]]]) -> ExtractionResult:
    lines: List[str] = []
    summaries: List[Dict[str, Any]] = []
    for name, rows, cell_range in sheets:
        lines.append("")
        lines.append(f"=== Sheet: {name} ===")
        row_count = 0
        for row in rows:
            cells = [_format_cell(cell) for cell in row if cell is not None and cell != ""]
            if not cells:
                continue
            row_count += 1
            lines.append("\t".join(cells))
        summaries.append({"name": name, "row_count": row_count, "range": cell_range})

    return ExtractionResult(
        content="\n".join(lines).strip(),
        metadata={"sheet_count": len(summaries), "sheets": summaries},
    )


class SpreadsheetExtractor:
    """Extract every sheet of an ``.xlsx`` workbook."""

    def extract(self, data: bytes) -> ExtractionResult:
        try:
            workbook = openpyxl.load_workbook(io.BytesIO(data), data_only=True)
        except Exception as error:
            raise ExtractionError(f"Failed to process Excel: {error}") from error

        try:
            sheets = [
                (sheet.title, list(sheet.iter_rows(values_only=True)), sheet.dimensions)
                for sheet in workbook.worksheets
            ]
        finally:
            workbook.close()
        return _render_sheets(sheets)


class LegacySpreadsheetExtractor:
    """Extract every sheet of a legacy ``.xls`` workbook."""

    def extract(self, data: bytes) -> ExtractionResult:
        try:
            book = xlrd.open_workbook(file_contents=data)
        except Exception as error:
            raise ExtractionError(f"Failed to process Excel: {error}") from error

        sheets = []
        for sheet in book.sheets():
            rows = [tuple(sheet.row_values(index)) for index in range(sheet.nrows)]
            cell_range = None
            if sheet.nrows and sheet.ncols:
                cell_range = f"{cellname(0, 0)}:{cellname(sheet.nrows - 1, sheet.ncols - 1)}"
            sheets.append((sheet.name, rows, cell_range))
        return _render_sheets(sheets)


class CSVExtractor:
    """Render CSV rows as labelled, readable lines.

    The first non-empty line is the header row. Rows are numbered by their
    line index in the file.
    """

    def extract(self, data: bytes) -> ExtractionResult:
        text = _decode_text(data)
        lines: List[str] = []
        headers: Optional[List[str]] = None
        row_count = 0
        for index, line in enumerate(text.split("\n")):
            if not line.strip():
                continue
            # Plain comma split: quoted fields containing commas are not kept together.
            values = [value.strip().replace('"', "") for value in line.split(",")]
            if headers is None:
                headers = values
                lines.append(f"Headers: {', '.join(values)}")
                lines.append("")
            else:
                row_count += 1
                lines.append(f"Row {index}: {', '.join(values)}")

        content = "\n".join(lines) + "\n" if lines else ""
        headers = headers or []
        return ExtractionResult(
            content=content,
            metadata={"headers": headers, "row_count": row_count, "column_count": len(headers)},
        )


class TextExtractor:
    """Extract text from plaintext and Markdown documents."""

    def __init__(self, *, markdown: bool = False) -> None:
        self.markdown = markdown

    def extract(self, data: bytes) -> ExtractionResult:
        text = _decode_text(data)
        if self.markdown:
            text = markdown_to_text(text)
        return ExtractionResult(content=text)


class HTMLExtractor:
    """Return the visible text of HTML documents.

    Markup is parsed with BeautifulSoup, so entities are decoded and attribute
    values never leak into the text. ``<script>`` and ``<style>`` blocks are
    dropped entirely.
    """

    def extract(self, data: bytes) -> ExtractionResult:
        soup = BeautifulSoup(_decode_text(data), "html.parser")
        for tag in soup(["script", "style"]):
            tag.decompose()
        return ExtractionResult(content=_collapse_whitespace(soup.get_text(" ")))


class XMLExtractor:
    """Strip all tags from XML documents.

    Tags are removed textually: CDATA markers and entities are left as they are.
    """

    def extract(self, data: bytes) -> ExtractionResult:
        return ExtractionResult(content=_strip_tags(_decode_text(data)))


class JSONExtractor:
    """Render JSON documents as indented ``key: value`` lines."""

    def extract(self, data: bytes) -> ExtractionResult:
        try:
            payload = json.loads(_decode_text(data))
        except ValueError as error:
            raise ExtractionError(f"Failed to process JSON: {error}") from error
        return ExtractionResult(content=json_to_text(payload))


def _json_scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def json_to_text(value: Any, level: int = 0) -> str:
    indent = "  " * level
    if isinstance(value, list):
        return "".join(
            f"{indent}Item {index}:\n{json_to_text(item, level + 1)}\n"
            for index, item in enumerate(value, start=1)
        )
    if isinstance(value, dict):
        parts: List[str] = []
        for key, item in value.items():
            if isinstance(item, (dict, list)):
                parts.append(f"{indent}{key}:\n{json_to_text(item, level + 1)}\n")
            else:
                parts.append(f"{indent}{key}: {_json_scalar(item)}\n")
        return "".join(parts)
    return f"{indent}{_json_scalar(value)}\n"


class UnsupportedExtractor:
    """Placeholder for formats that are recognised but deliberately unsupported."""

    def __init__(self, message: str) -> None:
        self.message = message

    def extract(self, data: bytes) -> ExtractionResult:
        raise UnsupportedFormatError(self.message)


def build_extractor_registry() -> Dict[FormatKind, Extractor]:
    """Return the ``FormatKind -> Extractor`` strategy table."""

    text_extractor = TextExtractor()
    markdown_extractor = TextExtractor(markdown=True)
    return {
        FormatKind.PDF: PDFExtractor(),
        FormatKind.DOCX: DocxExtractor(),
        FormatKind.DOC: UnsupportedExtractor(
            "Legacy .doc files are not supported. Please convert to .docx format."
        ),
        FormatKind.XLSX: SpreadsheetExtractor(),
        FormatKind.XLS: LegacySpreadsheetExtractor(),
        FormatKind.CSV: CSVExtractor(),
        FormatKind.TXT: text_extractor,
        FormatKind.MD: markdown_extractor,
        FormatKind.MARKDOWN: markdown_extractor,
        FormatKind.HTML: HTMLExtractor(),
        FormatKind.JSON: JSONExtractor(),
        FormatKind.XML: XMLExtractor(),
        FormatKind.RTF: UnsupportedExtractor(
            "RTF files are not yet supported. Please convert to .docx or .txt format."
        ),
        FormatKind.PPTX: UnsupportedExtractor(
            "PowerPoint files are not yet supported. Please export as PDF or text."
        ),
    }


def get_extractor(registry: Mapping[FormatKind, Extractor], kind: FormatKind) -> Extractor:
    extractor = registry.get(kind)
    if extractor is None:
        raise UnsupportedFormatError(f"Unsupported file type: {kind.value}")
    return extractor
