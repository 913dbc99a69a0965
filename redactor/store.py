"""Per-page redaction regions, in selection order."""

from __future__ import annotations

from typing import Iterable

from .geometry import Rect


class RedactionStore:
    def __init__(self) -> None:
        self._rects: dict[int, list[Rect]] = {}

    def add(self, page_num: int, rect: Rect) -> None:
        self._rects.setdefault(page_num, []).append(rect)

    def extend(self, page_num: int, rects: Iterable[Rect]) -> None:
        for rect in rects:
            self.add(page_num, rect)

    def rects_for_page(self, page_num: int) -> list[Rect]:
        return list(self._rects.get(page_num, ()))

    def all_rects(self) -> dict[int, list[Rect]]:
        """Copy of every page that has at least one region."""
        return {page: list(rects) for page, rects in sorted(self._rects.items()) if rects}

    def remove(self, page_num: int, index: int) -> None:
        """Delete one region by its position; bad indexes are ignored."""
        page_rects = self._rects.get(page_num)
        if page_rects and 0 <= index < len(page_rects):
            del page_rects[index]

    def clear_page(self, page_num: int) -> None:
        self._rects.pop(page_num, None)

    def clear(self) -> None:
        self._rects.clear()

    @property
    def has_rects(self) -> bool:
        return any(self._rects.values())
