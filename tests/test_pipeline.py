from datetime import datetime

import pytest

from workdesk.ingest import DocumentProcessor, ProcessingError
from workdesk.ingest.errors import ExtractionError, UnsupportedFormatError
from workdesk.ingest.language import LanguageDetector


@pytest.fixture()
def processor() -> DocumentProcessor:
    return DocumentProcessor()


def test_process_plain_text(processor: DocumentProcessor) -> None:
    data = b"The cat and the dog sat on the mat in the sun for the day."

    document = processor.process_document(data, "notes.txt", "text/plain")

    assert document.content == data.decode()
    assert document.metadata.file_type == "txt"
    assert document.metadata.word_count == 15
    assert document.metadata.char_count == len(document.content)
    assert document.metadata.language == "en"
    datetime.fromisoformat(document.metadata.extracted_at)


def test_process_markdown_strips_syntax(processor: DocumentProcessor) -> None:
    document = processor.process_document(b"# Title\n**bold** and *italic*", "readme.md")

    assert document.content == "Title\nbold and italic"
    assert document.metadata.file_type == "md"
    assert document.metadata.language == "unknown"


def test_sections_index_into_normalised_content(processor: DocumentProcessor) -> None:
    data = (
        b"INTRODUCTION\r\n"
        b"This   document explains\tthe workspace in detail.\r\n"
        b"USAGE NOTES\r\n"
        b"Upload files and attach them to sessions for context.\r\n"
    )

    document = processor.process_document(data, "guide.txt")

    assert [section.title for section in document.sections] == ["INTRODUCTION", "USAGE NOTES"]
    for section in document.sections:
        assert document.content[section.start_index:section.end_index].strip() == section.content


def test_process_pdf_promotes_document_info(processor: DocumentProcessor, pdf_bytes: bytes) -> None:
    document = processor.process_document(pdf_bytes, "report.pdf")

    assert "Hello PDF World" in document.content
    assert document.metadata.page_count == 1
    assert document.metadata.title == "Quarterly Report"
    assert document.metadata.author == "Jane Tester"
    assert "page_count" not in document.metadata.extra


def test_process_docx_keeps_diagnostics_in_extra(processor: DocumentProcessor, docx_bytes: bytes) -> None:
    document = processor.process_document(docx_bytes, "guide.docx")

    assert "Name Role" in document.content
    assert document.metadata.title == "Onboarding Guide"
    assert document.metadata.extra["warnings"] == []
    payload = document.metadata.as_dict()
    assert payload["file_type"] == "docx"
    assert payload["errors"] == []


def test_process_xlsx_reports_sheets(processor: DocumentProcessor, xlsx_bytes: bytes) -> None:
    document = processor.process_document(xlsx_bytes, "budget.xlsx")

    assert "Laptop 1200" in document.content
    assert document.metadata.extra["sheet_count"] == 2


@pytest.mark.parametrize(
    ("file_name", "message"),
    [
        ("legacy.doc", "Legacy .doc files are not supported"),
        ("notes.rtf", "RTF files are not yet supported"),
        ("deck.pptx", "PowerPoint files are not yet supported"),
        ("deck.ppt", "PowerPoint files are not yet supported"),
    ],
)
def test_unsupported_format_is_wrapped(processor: DocumentProcessor, file_name: str, message: str) -> None:
    with pytest.raises(ProcessingError) as excinfo:
        processor.process_document(b"binary", file_name)

    error = excinfo.value
    assert str(error).startswith(f"Failed to process document: {message}")
    assert isinstance(error.cause, UnsupportedFormatError)
    assert error.__cause__ is error.cause
    assert error.unsupported


def test_process_xls_reports_sheets(processor: DocumentProcessor, xls_bytes: bytes) -> None:
    document = processor.process_document(xls_bytes, "budget.xls")

    assert document.metadata.file_type == "xls"
    assert "Rent Paid" in document.content
    assert document.metadata.extra["sheet_count"] == 2


def test_unknown_format_is_wrapped(processor: DocumentProcessor) -> None:
    with pytest.raises(ProcessingError, match="Unsupported file type: unknown"):
        processor.process_document(b"data", "archive.zip")


def test_extraction_failure_is_wrapped(processor: DocumentProcessor) -> None:
    with pytest.raises(ProcessingError) as excinfo:
        processor.process_document(b"{broken", "data.json")

    assert isinstance(excinfo.value.cause, ExtractionError)
    assert not excinfo.value.unsupported


def test_supported_file_types(processor: DocumentProcessor) -> None:
    types = processor.supported_file_types()

    assert types == ["pdf", "docx", "xlsx", "xls", "csv", "txt", "md", "markdown", "html", "htm", "json", "xml"]
    assert processor.is_file_type_supported("index.HTM")
    assert not processor.is_file_type_supported("legacy.doc")
    assert not processor.is_file_type_supported("archive.zip")


def test_language_detector_threshold() -> None:
    detector = LanguageDetector()

    assert detector.detect("the and or but in on") == "en"
    assert detector.detect("the and or but in") == "unknown"
    assert detector.detect("theory android") == "unknown"
