"""Top-level redaction: rewrite content streams, overpaint regions, scrub metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from .config import FILL_COLOR
from .document import PdfDocument
from .exceptions import MissingContentError
from .geometry import Rect, merge_rects
from .logging import get_logger
from .stream_redactor import redact_stream
from .text_object import WidthEstimator, estimate_width

logger = get_logger(__name__)


@dataclass
class RedactionResult:
    pdf_bytes: bytes = b""
    redacted_pages: list[int] = field(default_factory=list)
    # page number -> why its content could not be rewritten
    skipped_pages: dict[int, str] = field(default_factory=dict)


@dataclass
class RedactionContext:
    """State owned by one redaction run; discarded when the run ends."""

    document: PdfDocument
    fill_color: tuple[float, float, float] = FILL_COLOR
    estimate: WidthEstimator = estimate_width
    result: RedactionResult = field(default_factory=RedactionResult)

    def redact_page(self, page_number: int, rects: Sequence[Rect]) -> None:
        doc = self.document
        if not rects:
            logger.debug("Page %d: no regions, skipping", page_number)
            return
        if page_number < 1 or page_number > doc.page_count:
            logger.debug("Page %d: outside 1..%d, skipping", page_number, doc.page_count)
            return

        merged = merge_rects(rects)
        try:
            streams = doc.content_streams(page_number)
        except MissingContentError as e:
            logger.warning("Page %d left unredacted: %s", page_number, e.reason)
            self.result.skipped_pages[page_number] = e.reason
            return

        changed = 0
        for stream in streams:
            new_data = redact_stream(stream.data, merged, self.estimate)
            if new_data != stream.data:
                doc.replace_stream(stream.xref, new_data)
                changed += 1

        for rect in merged:
            doc.fill_rect(page_number, rect, self.fill_color)

        self.result.redacted_pages.append(page_number)
        logger.debug(
            "Page %d: %d region(s) merged to %d, %d of %d stream(s) rewritten",
            page_number, len(rects), len(merged), changed, len(streams),
        )


def redact_document(
    original: bytes,
    regions: Mapping[int, Sequence[Rect]],
    *,
    fill_color: tuple[float, float, float] = FILL_COLOR,
    estimate: WidthEstimator = estimate_width,
) -> RedactionResult:
    """Redact *regions* (1-based page number -> rectangles) from a PDF.

    Pages whose content cannot be read are left alone and reported in
    ``skipped_pages``; every other page in range with at least one rectangle
    has its text rewritten and the merged regions painted over. Metadata is
    always cleared.
    """
    with PdfDocument.open(original) as doc:
        ctx = RedactionContext(doc, fill_color=fill_color, estimate=estimate)
        for page_number in sorted(regions):
            ctx.redact_page(page_number, regions[page_number])
        doc.clear_metadata()
        ctx.result.pdf_bytes = doc.to_bytes()

    logger.info(
        "Redaction finished: %d page(s) redacted, %d skipped",
        len(ctx.result.redacted_pages), len(ctx.result.skipped_pages),
    )
    return ctx.result


def redact_pdf(original: bytes, regions: Mapping[int, Sequence[Rect]], **kwargs) -> bytes:
    """Bytes in, bytes out. Skipped pages are only reported through the log."""
    result = redact_document(original, regions, **kwargs)
    for page_number, reason in result.skipped_pages.items():
        logger.warning("Page %d was not redacted: %s", page_number, reason)
    return result.pdf_bytes
