import io
import zipfile

import pytest

from workdesk.ingest.errors import ExtractionError, UnsupportedFormatError
from workdesk.ingest.extractors import (
    CSVExtractor,
    DocxExtractor,
    HTMLExtractor,
    JSONExtractor,
    LegacySpreadsheetExtractor,
    PDFExtractor,
    SpreadsheetExtractor,
    XMLExtractor,
    build_extractor_registry,
    get_extractor,
    json_to_text,
)
from workdesk.ingest.format_detection import FormatKind


def test_csv_extractor_labels_headers_and_rows() -> None:
    result = CSVExtractor().extract(b"a,b\n1,2\n3,4")

    assert result.content == "Headers: a, b\n\nRow 1: 1, 2\nRow 2: 3, 4\n"
    assert result.metadata == {"headers": ["a", "b"], "row_count": 2, "column_count": 2}


def test_csv_extractor_strips_quotes_and_skips_blank_lines() -> None:
    result = CSVExtractor().extract(b'"name","city"\n\n"Ada", "London"\n')

    assert result.content == "Headers: name, city\n\nRow 2: Ada, London\n"


def test_csv_extractor_uses_first_non_empty_line_as_headers() -> None:
    result = CSVExtractor().extract(b"\na,b\n1,2")

    assert result.content == "Headers: a, b\n\nRow 2: 1, 2\n"
    assert result.metadata == {"headers": ["a", "b"], "row_count": 1, "column_count": 2}


def test_csv_extractor_splits_quoted_commas() -> None:
    result = CSVExtractor().extract(b'name,city\n"Smith, John",Paris')

    assert result.content == "Headers: name, city\n\nRow 1: Smith, John, Paris\n"


def test_csv_extractor_handles_empty_input() -> None:
    result = CSVExtractor().extract(b"\n\n")

    assert result.content == ""
    assert result.metadata == {"headers": [], "row_count": 0, "column_count": 0}


def test_html_extractor_drops_scripts_and_styles() -> None:
    html = (
        b"<html><head><style>p{color:red}</style><script>alert(1)</script></head>"
        b"<body><p>Hello <b>world</b></p></body></html>"
    )

    assert HTMLExtractor().extract(html).content == "Hello world"


def test_html_extractor_decodes_entities_and_ignores_attributes() -> None:
    html = b"<p>Tom &amp; Jerry</p><p title='a>b'>Hi</p>"

    assert HTMLExtractor().extract(html).content == "Tom & Jerry Hi"


def test_xml_extractor_leaves_entities_untouched() -> None:
    xml = b"<note><body>Salt &amp; pepper</body></note>"

    assert XMLExtractor().extract(xml).content == "Salt &amp; pepper"


def test_xml_extractor_strips_tags() -> None:
    xml = b"<note><to>Ada</to><body>Ship it</body></note>"

    assert XMLExtractor().extract(xml).content == "Ada Ship it"


def test_json_rendering_uses_indented_key_values() -> None:
    text = json_to_text({"name": "Ada", "tags": ["a", "b"], "active": True, "meta": None})

    assert text.startswith("name: Ada\ntags:\n")
    assert "  Item 1:\n    a\n" in text
    assert "  Item 2:\n    b\n" in text
    assert "active: true\n" in text
    assert text.endswith("meta: null\n")


def test_json_extractor_rejects_invalid_json() -> None:
    with pytest.raises(ExtractionError):
        JSONExtractor().extract(b"{not json")


def test_pdf_extractor_reads_text_and_info(pdf_bytes: bytes) -> None:
    result = PDFExtractor().extract(pdf_bytes)

    assert "Hello PDF World" in result.content
    assert result.metadata["page_count"] == 1
    assert result.metadata["title"] == "Quarterly Report"
    assert result.metadata["author"] == "Jane Tester"


def test_pdf_extractor_rejects_garbage() -> None:
    with pytest.raises(ExtractionError, match="Failed to process PDF"):
        PDFExtractor().extract(b"this is not a pdf")


def test_docx_extractor_reads_paragraphs_tables_and_properties(docx_bytes: bytes) -> None:
    result = DocxExtractor().extract(docx_bytes)

    assert "Welcome to the workspace." in result.content
    assert "Name\tRole" in result.content
    assert "Ada\tAdmin" in result.content
    assert result.metadata["title"] == "Onboarding Guide"
    assert result.metadata["author"] == "Operations"
    assert result.metadata["warnings"] == []
    assert result.metadata["errors"] == []


def test_docx_extractor_falls_back_to_raw_xml() -> None:
    document_xml = (
        b'<?xml version="1.0" encoding="UTF-8"?>'
        b'<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
        b"<w:body><w:p><w:r><w:t>Recovered </w:t></w:r><w:r><w:t>text</w:t></w:r></w:p>"
        b"<w:p><w:r><w:t>Second paragraph</w:t></w:r></w:p></w:body></w:document>"
    )
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("word/document.xml", document_xml)

    result = DocxExtractor().extract(buffer.getvalue())

    assert result.content == "Recovered text\n\nSecond paragraph"
    assert result.metadata["warnings"]
    assert result.metadata["errors"]


def test_docx_extractor_rejects_unreadable_container() -> None:
    with pytest.raises(ExtractionError):
        DocxExtractor().extract(b"definitely not a zip archive")


def test_spreadsheet_extractor_renders_every_sheet(xlsx_bytes: bytes) -> None:
    result = SpreadsheetExtractor().extract(xlsx_bytes)

    assert result.content.startswith("=== Sheet: Budget ===\nItem\tCost\nLaptop\t1200\nMonitor\t300.5")
    assert "=== Sheet: Notes ===\nApproved" in result.content
    assert result.metadata["sheet_count"] == 2
    budget = result.metadata["sheets"][0]
    assert budget["name"] == "Budget"
    assert budget["row_count"] == 3
    assert budget["range"].startswith("A1:")


@pytest.mark.parametrize(
    ("kind", "message"),
    [
        (FormatKind.DOC, "Legacy .doc files are not supported"),
        (FormatKind.RTF, "RTF files are not yet supported"),
        (FormatKind.PPTX, "PowerPoint files are not yet supported"),
    ],
)
def test_unsupported_formats_always_raise(kind: FormatKind, message: str) -> None:
    extractor = get_extractor(build_extractor_registry(), kind)

    with pytest.raises(UnsupportedFormatError, match=message):
        extractor.extract(b"anything")


def test_unknown_format_has_no_extractor() -> None:
    with pytest.raises(UnsupportedFormatError, match="Unsupported file type: unknown"):
        get_extractor(build_extractor_registry(), FormatKind.UNKNOWN)


def test_legacy_spreadsheet_extractor_renders_every_sheet(xls_bytes: bytes) -> None:
    result = LegacySpreadsheetExtractor().extract(xls_bytes)

    assert result.content == "=== Sheet: Budget ===\nItem\tCost\nRent\tPaid\n\n=== Sheet: Notes ===\nApproved"
    assert result.metadata == {
        "sheet_count": 2,
        "sheets": [
            {"name": "Budget", "row_count": 2, "range": "A1:B2"},
            {"name": "Notes", "row_count": 1, "range": "A1:A1"},
        ],
    }


def test_legacy_spreadsheet_extractor_rejects_garbage() -> None:
    with pytest.raises(ExtractionError, match="Failed to process Excel"):
        LegacySpreadsheetExtractor().extract(b"not a workbook at all")
