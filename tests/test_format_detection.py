import pytest

from workdesk.ingest.format_detection import DocumentFormatDetector, FormatKind


@pytest.mark.parametrize(
    ("file_name", "expected"),
    [
        ("report.PDF", FormatKind.PDF),
        ("notes.docx", FormatKind.DOCX),
        ("legacy.doc", FormatKind.DOC),
        ("budget.xlsx", FormatKind.XLSX),
        ("budget.xls", FormatKind.XLS),
        ("rows.csv", FormatKind.CSV),
        ("readme.md", FormatKind.MD),
        ("guide.markdown", FormatKind.MARKDOWN),
        ("index.htm", FormatKind.HTML),
        ("deck.ppt", FormatKind.PPTX),
        ("archive.tar.gz", FormatKind.UNKNOWN),
        ("no_extension", FormatKind.UNKNOWN),
        ("", FormatKind.UNKNOWN),
    ],
)
def test_detect_uses_lowercased_extension(file_name: str, expected: FormatKind) -> None:
    assert DocumentFormatDetector.detect(file_name) is expected


def test_extension_wins_over_mime_type() -> None:
    assert DocumentFormatDetector.detect("data.json", "application/pdf") is FormatKind.JSON
    assert DocumentFormatDetector.detect("mystery", "application/pdf") is FormatKind.UNKNOWN


def test_known_extensions_cover_aliases() -> None:
    extensions = DocumentFormatDetector.known_extensions()
    assert "htm" in extensions
    assert "ppt" in extensions
    assert "unknown" not in extensions
