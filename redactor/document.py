"""Document model: open/save PDFs, page content streams, fills, and upload storage."""

from __future__ import annotations

import hashlib
import re
import uuid
from dataclasses import dataclass

import pymupdf

from .config import DEFAULT_RENDER_SCALE, MAX_UPLOAD_SIZE, UPLOAD_DIR
from .exceptions import InvalidDocumentError, MissingContentError
from .geometry import Rect
from .metadata import clear_metadata

_DOC_ID_RE = re.compile(r"^[0-9a-f]{16}$")


@dataclass(frozen=True)
class ContentStreamRef:
    xref: int
    data: bytes


class PdfDocument:
    """Thin wrapper over :class:`pymupdf.Document` exposing what redaction needs.

    Page numbers are 1-based throughout.
    """

    def __init__(self, doc: pymupdf.Document):
        self._doc = doc

    @classmethod
    def open(cls, data: bytes) -> "PdfDocument":
        try:
            doc = pymupdf.open(stream=data, filetype="pdf")
        except Exception as e:
            raise InvalidDocumentError(f"Invalid PDF: {e}") from e
        if not doc.is_pdf:
            doc.close()
            raise InvalidDocumentError("Not a PDF document")
        return cls(doc)

    def __enter__(self) -> "PdfDocument":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if not self._doc.is_closed:
            self._doc.close()

    @property
    def page_count(self) -> int:
        return len(self._doc)

    def _page(self, page_number: int) -> pymupdf.Page:
        if page_number < 1 or page_number > len(self._doc):
            raise IndexError(f"Page {page_number} out of range")
        return self._doc[page_number - 1]

    def content_streams(self, page_number: int) -> list[ContentStreamRef]:
        """Decoded content stream(s) of a page, in /Contents order.

        Raises :class:`MissingContentError` if any referenced object is not a
        readable stream.
        """
        page = self._page(page_number)
        streams = []
        for xref in page.get_contents():
            if xref <= 0 or not self._doc.xref_is_stream(xref):
                raise MissingContentError(page_number, xref, "not a stream object")
            try:
                data = self._doc.xref_stream(xref)
            except Exception as e:
                raise MissingContentError(page_number, xref, str(e)) from e
            if data is None:
                raise MissingContentError(page_number, xref, "stream could not be decoded")
            streams.append(ContentStreamRef(xref, data))
        return streams

    def replace_stream(self, xref: int, data: bytes) -> None:
        self._doc.update_stream(xref, data)

    def fill_rect(self, page_number: int, rect: Rect,
                  color: tuple[float, float, float]) -> None:
        """Paint an opaque rectangle given in PDF user space."""
        page = self._page(page_number)
        # PDF space (bottom-left origin) -> PyMuPDF page space (top-left origin)
        area = pymupdf.Rect(rect.x, rect.y, rect.x1, rect.y1) * page.transformation_matrix
        page.draw_rect(area, color=color, fill=color, width=0, overlay=True)

    def clear_metadata(self) -> None:
        clear_metadata(self._doc)

    def to_bytes(self) -> bytes:
        # Full rewrite so replaced streams don't linger in an incremental section
        return self._doc.tobytes(garbage=3, deflate=True)


# -- Upload storage --

def _validate_doc_id(doc_id: str) -> None:
    """Reject any doc_id that isn't exactly 16 hex chars (path traversal guard)."""
    if not _DOC_ID_RE.match(doc_id):
        raise ValueError(f"Invalid document id: {doc_id}")


def _doc_path(doc_id: str):
    _validate_doc_id(doc_id)
    return UPLOAD_DIR / f"{doc_id}.pdf"


def _open_doc(doc_id: str) -> pymupdf.Document:
    path = _doc_path(doc_id)
    if not path.exists():
        raise FileNotFoundError(f"Document {doc_id} not found")
    return pymupdf.open(str(path))


def save_upload(content: bytes, filename: str) -> tuple[str, int]:
    """Save uploaded PDF, return (doc_id, page_count)."""
    if len(content) > MAX_UPLOAD_SIZE:
        raise ValueError(f"File too large ({len(content)} bytes, max {MAX_UPLOAD_SIZE})")
    with PdfDocument.open(content) as doc:
        page_count = doc.page_count
    # Use hash + random suffix so re-uploading the same PDF doesn't clobber a redacted copy
    content_hash = hashlib.sha256(content).hexdigest()[:12]
    unique_suffix = uuid.uuid4().hex[:4]
    doc_id = content_hash + unique_suffix
    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    _doc_path(doc_id).write_bytes(content)
    return doc_id, page_count


def page_size(doc_id: str, page_num: int) -> tuple[float, float]:
    """Return (width, height) of a 1-based page in PDF points."""
    doc = _open_doc(doc_id)
    try:
        if page_num < 1 or page_num > len(doc):
            raise IndexError(f"Page {page_num} out of range")
        rect = doc[page_num - 1].rect
        return rect.width, rect.height
    finally:
        doc.close()


def render_page(doc_id: str, page_num: int, scale: float = DEFAULT_RENDER_SCALE) -> bytes:
    """Render a 1-based page as PNG bytes."""
    doc = _open_doc(doc_id)
    try:
        if page_num < 1 or page_num > len(doc):
            raise IndexError(f"Page {page_num} out of range")
        page = doc[page_num - 1]
        mat = pymupdf.Matrix(scale, scale)
        pix = page.get_pixmap(matrix=mat)
        return pix.tobytes("png")
    finally:
        doc.close()


def get_pdf_bytes(doc_id: str) -> bytes:
    """Return the stored PDF file bytes."""
    path = _doc_path(doc_id)
    if not path.exists():
        raise FileNotFoundError(f"Document {doc_id} not found")
    return path.read_bytes()


def write_pdf_bytes(doc_id: str, content: bytes) -> None:
    """Replace the stored PDF with *content*."""
    path = _doc_path(doc_id)
    if not path.exists():
        raise FileNotFoundError(f"Document {doc_id} not found")
    path.write_bytes(content)
