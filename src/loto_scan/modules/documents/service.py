from __future__ import annotations

import csv
import zipfile
from io import BytesIO, StringIO

from openpyxl import load_workbook
from pypdf import PdfReader

from loto_scan.core.errors import DocumentConversionError
from loto_scan.core.logging import get_logger, log_event

logger = get_logger(__name__)

_IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp", ".gif", ".bmp", ".tif", ".tiff")
_TEXT_EXTENSIONS = (".txt", ".csv", ".tsv")


def detect_file_kind(*, filename: str, content_type: str | None, body: bytes) -> str:
    name = (filename or "").lower()
    ctype = (content_type or "").lower()
    if _looks_like_pdf_bytes(body):
        return "pdf"
    if _looks_like_xlsx_bytes(body):
        return "xlsx"
    if _looks_like_image_bytes(body):
        return "image"
    if _looks_like_text_bytes(body):
        return "csv" if name.endswith(".csv") or ctype.startswith("text/csv") else "text"

    # Fallback to filename/content-type hints.
    if name.endswith(_IMAGE_EXTENSIONS) or ctype.startswith("image/"):
        return "image"
    if name.endswith(_TEXT_EXTENSIONS) or ctype.startswith("text/"):
        return "text"
    return "unknown"


def convert_document_to_text(*, filename: str, content_type: str | None, body: bytes) -> str:
    """
    Turn an uploaded PDF, spreadsheet or CSV/text file into plain text.

    Raises DocumentConversionError for images and for anything that cannot be
    read; images have to go through the vision model instead.
    """
    kind = detect_file_kind(filename=filename, content_type=content_type, body=body)
    log_event(
        logger,
        "documents.file_kind",
        filename=filename,
        content_type=content_type,
        byte_size=len(body),
        kind=kind,
    )
    if kind == "pdf":
        return _pdf_to_text(body)
    if kind == "xlsx":
        return _xlsx_to_text(body)
    if kind == "csv":
        return _csv_to_text(_decode_text_bytes(body))
    if kind == "text":
        return _decode_text_bytes(body)
    if kind == "image":
        raise DocumentConversionError("Images cannot be converted to text")
    raise DocumentConversionError(f"Unsupported file type: {filename or 'upload'}")


def _pdf_to_text(body: bytes) -> str:
    try:
        with BytesIO(body) as stream:
            reader = PdfReader(stream)
            pages = [
                (page.extract_text() or "").replace("\u202f", " ").replace("\xa0", " ")
                for page in reader.pages
            ]
    except Exception as e:  # noqa: BLE001
        raise DocumentConversionError(f"Unreadable PDF: {e}") from e
    return "\n".join(pages)


def _xlsx_to_text(body: bytes) -> str:
    try:
        with BytesIO(body) as stream:
            wb = load_workbook(stream, read_only=True, data_only=True)
            try:
                lines: list[str] = []
                for ws in wb.worksheets:
                    for row in ws.iter_rows(values_only=True):
                        cells = [_cell_text(v) for v in row]
                        cells = [c for c in cells if c]
                        if cells:
                            lines.append(" ".join(cells))
            finally:
                wb.close()
    except Exception as e:  # noqa: BLE001
        raise DocumentConversionError(f"Unreadable spreadsheet: {e}") from e
    return "\n".join(lines)


def _cell_text(value) -> str:
    if value is None:
        return ""
    # Spreadsheet cells often hold ids and numbers as floats (100001.0).
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _csv_to_text(text: str) -> str:
    sample = text[:4096]
    delimiter = ";" if sample.count(";") > sample.count(",") else ","
    lines: list[str] = []
    for row in csv.reader(StringIO(text), delimiter=delimiter):
        for cell in row:
            c = cell.strip()
            if c:
                lines.append(c)
    return "\n".join(lines)


def _decode_text_bytes(body: bytes) -> str:
    if body.startswith(b"\xef\xbb\xbf"):
        body = body[3:]
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        return body.decode("latin-1", errors="replace")


def _looks_like_pdf_bytes(body: bytes) -> bool:
    if not body:
        return False
    b = body.lstrip()
    if b.startswith(b"\xef\xbb\xbf"):
        b = b[3:].lstrip()
    return b.startswith(b"%PDF")


def _looks_like_xlsx_bytes(body: bytes) -> bool:
    if not body or not body.startswith(b"PK\x03\x04"):
        return False
    try:
        with zipfile.ZipFile(BytesIO(body)) as zf:
            return "xl/workbook.xml" in zf.namelist()
    except zipfile.BadZipFile:
        return False


def _looks_like_image_bytes(body: bytes) -> bool:
    if not body:
        return False
    b = body.lstrip()
    return (
        b.startswith(b"\x89PNG\r\n\x1a\n")
        or b.startswith(b"\xff\xd8\xff")
        or b.startswith(b"II*\x00")
        or b.startswith(b"MM\x00*")
        or b.startswith(b"BM")
        or b.startswith((b"GIF87a", b"GIF89a"))
        or (len(b) >= 12 and b.startswith(b"RIFF") and b[8:12] == b"WEBP")
    )


def _looks_like_text_bytes(body: bytes) -> bool:
    if not body:
        return False
    sample = body[:4096]
    if b"\x00" in sample:
        return False
    if sample.startswith(b"\xef\xbb\xbf"):
        sample = sample[3:]
    try:
        sample.decode("utf-8", errors="strict")
    except UnicodeDecodeError:
        # A multi-byte character may be cut at the sample boundary.
        try:
            sample[:-3].decode("utf-8", errors="strict")
        except UnicodeDecodeError:
            return False

    nontext = 0
    for ch in sample:
        if ch in {9, 10, 13}:
            continue
        if 32 <= ch <= 126 or 128 <= ch <= 255:
            continue
        nontext += 1
    return (nontext / max(1, len(sample))) <= 0.02


def image_mime_type(*, filename: str, content_type: str | None) -> str:
    ctype = (content_type or "").lower()
    if ctype.startswith("image/"):
        return ctype
    name = (filename or "").lower()
    if name.endswith(".png"):
        return "image/png"
    if name.endswith(".webp"):
        return "image/webp"
    if name.endswith(".gif"):
        return "image/gif"
    return "image/jpeg"
