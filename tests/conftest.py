"""Shared fixtures: offline configuration and sample documents."""
from __future__ import annotations

import io
import os
import struct
from typing import Iterator

import pytest

# Offline backends for anything imported at collection time.
os.environ.setdefault("EMBEDDING_BACKEND", "hash")
os.environ.setdefault("VECTOR_STORE", "memory")

from workdesk.embeddings import reset_embedding_model_cache  # noqa: E402
from workdesk.services.documents import reset_service_caches  # noqa: E402
from workdesk.settings import reset_settings_cache  # noqa: E402
from workdesk.vectorstore import reset_vector_store_cache  # noqa: E402


def _reset_caches() -> None:
    reset_settings_cache()
    reset_embedding_model_cache()
    reset_vector_store_cache()
    reset_service_caches()


@pytest.fixture(autouse=True)
def offline_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    monkeypatch.setenv("EMBEDDING_BACKEND", "hash")
    monkeypatch.setenv("VECTOR_STORE", "memory")
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    for name in ("CHUNK_SIZE", "CHUNK_OVERLAP", "GENERATE_EMBEDDINGS", "CONTEXT_TTL_SECONDS", "CONTEXT_MAX_SESSIONS"):
        monkeypatch.delenv(name, raising=False)
    _reset_caches()
    yield
    _reset_caches()


def build_pdf(text: str, *, title: str = "Quarterly Report", author: str = "Jane Tester") -> bytes:
    """Assemble a single-page PDF with a correct cross-reference table."""

    stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length " + str(len(stream)).encode("ascii") + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
        f"<< /Title ({title}) /Author ({author}) >>".encode("latin-1"),
    ]

    buffer = io.BytesIO()
    buffer.write(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(buffer.tell())
        buffer.write(f"{number} 0 obj\n".encode("ascii") + body + b"\nendobj\n")

    xref_offset = buffer.tell()
    buffer.write(f"xref\n0 {len(objects) + 1}\n".encode("ascii"))
    buffer.write(b"0000000000 65535 f \n")
    for offset in offsets:
        buffer.write(f"{offset:010d} 00000 n \n".encode("ascii"))
    buffer.write(
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R /Info 6 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n".encode("ascii")
    )
    return buffer.getvalue()


@pytest.fixture()
def pdf_bytes() -> bytes:
    return build_pdf("Hello PDF World")


@pytest.fixture()
def docx_bytes() -> bytes:
    from docx import Document

    document = Document()
    document.core_properties.title = "Onboarding Guide"
    document.core_properties.author = "Operations"
    document.add_paragraph("Welcome to the workspace.")
    document.add_paragraph("Upload documents to share them with your assistant.")
    table = document.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Name"
    table.cell(0, 1).text = "Role"
    table.cell(1, 0).text = "Ada"
    table.cell(1, 1).text = "Admin"

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture()
def xlsx_bytes() -> bytes:
    from openpyxl import Workbook

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Budget"
    sheet.append(["Item", "Cost"])
    sheet.append(["Laptop", 1200])
    sheet.append([None, None])
    sheet.append(["Monitor", 300.5])
    second = workbook.create_sheet("Notes")
    second.append(["Approved"])

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def _biff_record(opcode: int, data: bytes = b"") -> bytes:
    return struct.pack("<HH", opcode, len(data)) + data


def _biff_bof(stream_type: int) -> bytes:
    # BIFF8 BOF: version, stream type, build, year, history flags, lowest version.
    return _biff_record(0x0809, struct.pack("<HHHHII", 0x0600, stream_type, 0x0DBB, 0x07CC, 0, 0))


def build_xls(sheets: dict[str, list[list[str]]]) -> bytes:
    """Assemble a bare BIFF8 workbook stream holding text cells only."""

    sheet_streams = []
    for rows in sheets.values():
        records = [_biff_bof(0x0010)]
        for row_index, row in enumerate(rows):
            for col_index, value in enumerate(row):
                raw = value.encode("latin-1")
                label = struct.pack("<HHHHB", row_index, col_index, 0, len(raw), 0) + raw
                records.append(_biff_record(0x0204, label))
        records.append(_biff_record(0x000A))
        sheet_streams.append(b"".join(records))

    names = [name.encode("latin-1") for name in sheets]
    globals_size = (
        len(_biff_bof(0x0005))
        + len(_biff_record(0x0042, b"\0\0"))
        + sum(4 + 8 + len(name) for name in names)
        + len(_biff_record(0x000A))
    )

    boundsheets = []
    offset = globals_size
    for name, stream in zip(names, sheet_streams):
        boundsheets.append(_biff_record(0x0085, struct.pack("<IBBBB", offset, 0, 0, len(name), 0) + name))
        offset += len(stream)

    workbook_globals = (
        _biff_bof(0x0005)
        + _biff_record(0x0042, struct.pack("<H", 1200))
        + b"".join(boundsheets)
        + _biff_record(0x000A)
    )
    return workbook_globals + b"".join(sheet_streams)


@pytest.fixture()
def xls_bytes() -> bytes:
    return build_xls({"Budget": [["Item", "Cost"], ["Rent", "Paid"]], "Notes": [["Approved"]]})


@pytest.fixture()
def long_text() -> str:
    paragraph = (
        "The workspace stores uploaded documents for every assistant. "
        "Each document is split into overlapping chunks before embedding. "
        "Chunks keep their offsets so answers can cite the original text."
    )
    return "\n\n".join(f"{paragraph} Paragraph number {index}." for index in range(1, 16))
