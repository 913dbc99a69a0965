"""Rectangles in PDF user space: overlap test, line-level merging, CSS conversion.

All rectangles use the PDF convention: origin at the bottom-left of the page,
y increasing upward, units in points.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .config import MERGE_TOLERANCE


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Rect size must be non-negative, got {self.width}x{self.height}")

    @property
    def x1(self) -> float:
        return self.x + self.width

    @property
    def y1(self) -> float:
        return self.y + self.height

    def union(self, other: Rect) -> Rect:
        """Return the bounding box of both rectangles."""
        x0 = min(self.x, other.x)
        y0 = min(self.y, other.y)
        return Rect(x0, y0, max(self.x1, other.x1) - x0, max(self.y1, other.y1) - y0)


def rects_overlap(a: Rect, b: Rect) -> bool:
    """Half-open overlap test: shared edges (zero-area intersection) don't count."""
    return a.x < b.x1 and a.x1 > b.x and a.y < b.y1 and a.y1 > b.y


def merge_rects(rects: Iterable[Rect], tolerance: float = MERGE_TOLERANCE) -> list[Rect]:
    """Cluster rectangles into line-level regions in a single pass.

    Rectangles are sorted bottom-up; each one is folded into the running
    accumulator when it shares the accumulator's line (y-ranges overlap) and
    lies within *tolerance* of it horizontally. Otherwise the accumulator is
    flushed and a new one starts. This is not a minimal rectangle cover: the
    grouping depends on input order for unusual layouts, and it only ever
    over-covers.
    """
    ordered = sorted(rects, key=lambda r: r.y)
    if not ordered:
        return []

    merged: list[Rect] = []
    current = ordered[0]
    for rect in ordered[1:]:
        same_line = current.y < rect.y1 and current.y1 > rect.y
        adjacent = current.x < rect.x1 + tolerance and current.x1 + tolerance > rect.x
        if same_line and adjacent:
            current = current.union(rect)
        else:
            merged.append(current)
            current = rect
    merged.append(current)
    return merged


def css_to_pdf_rect(
    left: float, top: float, width: float, height: float,
    page_height: float, scale: float = 1.0,
) -> Rect:
    """Convert a rectangle in rendered-page pixels (top-left origin) to PDF space."""
    x1, y1 = left / scale, page_height - top / scale
    x2, y2 = (left + width) / scale, page_height - (top + height) / scale
    return Rect(min(x1, x2), min(y1, y2), abs(x2 - x1), abs(y2 - y1))


def pdf_to_css_rect(rect: Rect, page_height: float, scale: float = 1.0) -> tuple[float, float, float, float]:
    """Inverse of :func:`css_to_pdf_rect`; returns ``(left, top, width, height)``."""
    left = rect.x * scale
    top = (page_height - rect.y1) * scale
    return left, top, rect.width * scale, rect.height * scale
