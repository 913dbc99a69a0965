from __future__ import annotations

import re

import pymupdf
import pytest

NOT_A_STREAM = object()

_BT_RE = re.compile(rb"\bBT\b")


def hex_of(text: str) -> bytes:
    """PDF hex-string body for an ASCII string, upper case (e.g. "AB" -> b"4142")."""
    return text.encode("latin-1").hex().upper().encode("ascii")


def text_object(text: str, y: float, *, x: float = 50, size: float = 16) -> bytes:
    return (
        b"BT\n/F1 %g Tf\n1 0 0 1 %g %g Tm\n<%s> Tj\nET\n"
        % (size, x, y, hex_of(text))
    )


def three_line_stream() -> bytes:
    return (
        b"q\n0 0 0 rg\n"
        + text_object("Public text", 750)
        + text_object("SECRET data", 700)
        + text_object("Another public line", 650)
        + b"Q\n"
    )


def count_bt(content: bytes) -> int:
    return len(_BT_RE.findall(content))


def _stream_obj(data: bytes) -> bytes:
    return b"<< /Length %d >>\nstream\n" % len(data) + data + b"\nendstream"


def build_pdf(pages, info: dict[str, str] | None = None) -> bytes:
    """Assemble a small PDF by hand.

    Each entry of *pages* is the page's content: ``bytes`` for one stream, a
    list of ``bytes`` for a /Contents array, ``None`` for no /Contents, or
    ``NOT_A_STREAM`` for a /Contents reference to a plain dictionary.
    """
    objects: list[bytes] = [b"", b"", b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>"]

    def add(body: bytes) -> int:
        objects.append(body)
        return len(objects)

    page_refs = []
    for content in pages:
        if content is None:
            contents = b""
        elif content is NOT_A_STREAM:
            contents = b" /Contents %d 0 R" % add(b"<< /Foo 1 >>")
        elif isinstance(content, list):
            refs = [b"%d 0 R" % add(_stream_obj(c)) for c in content]
            contents = b" /Contents [" + b" ".join(refs) + b"]"
        else:
            contents = b" /Contents %d 0 R" % add(_stream_obj(content))
        page_refs.append(add(
            b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 595 842]"
            b" /Resources << /Font << /F1 3 0 R >> >>" + contents + b" >>"
        ))

    objects[0] = b"<< /Type /Catalog /Pages 2 0 R >>"
    objects[1] = b"<< /Type /Pages /Kids [%s] /Count %d >>" % (
        b" ".join(b"%d 0 R" % r for r in page_refs), len(page_refs))

    info_ref = None
    if info:
        entries = b" ".join(
            b"/%s (%s)" % (k.encode("ascii"), v.encode("latin-1")) for k, v in info.items())
        info_ref = add(b"<< " + entries + b" >>")

    out = bytearray(b"%PDF-1.7\n%\xe2\xe3\xcf\xd3\n")
    offsets = []
    for num, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % num + body + b"\nendobj\n"
    xref_pos = len(out)
    out += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    trailer = b"<< /Size %d /Root 1 0 R" % (len(objects) + 1)
    if info_ref:
        trailer += b" /Info %d 0 R" % info_ref
    out += b"trailer\n" + trailer + b" >>\nstartxref\n%d\n%%%%EOF\n" % xref_pos
    return bytes(out)


def page_content(pdf_bytes: bytes, page_number: int = 1) -> bytes:
    """All decoded content streams of a page, joined with newlines."""
    doc = pymupdf.open(stream=pdf_bytes, filetype="pdf")
    try:
        page = doc[page_number - 1]
        return b"\n".join(doc.xref_stream(x) or b"" for x in page.get_contents())
    finally:
        doc.close()


SAMPLE_INFO = {
    "Title": "Test Title",
    "Author": "Test Author",
    "Subject": "Quarterly figures",
    "Keywords": "secret, internal",
    "Creator": "Writer",
    "Producer": "LibreOffice",
    "Department": "Legal",
}


@pytest.fixture
def sample_pdf() -> bytes:
    return build_pdf([three_line_stream()], info=SAMPLE_INFO)
