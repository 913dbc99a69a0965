"""Interpretation of a single text object (the tokens between BT and ET).

Text extent is estimated from the font size and the number of characters
shown; real glyph widths are never looked up. The estimator is a plain
callable so a metrics-aware one can be passed in instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from .config import (
    DEFAULT_FONT_SIZE,
    DESCENT_FACTOR,
    EMPTY_SHOW,
    GLYPH_WIDTH_FACTOR,
    LINE_HEIGHT_FACTOR,
    TEXT_SHOW_OPERATORS,
    TEXT_STATE_OPERATORS,
)
from .geometry import Rect, rects_overlap
from .logging import get_logger
from .tokenizer import Token, TokenKind, tokenize

logger = get_logger(__name__)

WidthEstimator = Callable[[Sequence[Token], float], float]


@dataclass
class TextRunState:
    font_size: float = DEFAULT_FONT_SIZE
    origin_x: float = 0.0
    origin_y: float = 0.0


def _literal_length(raw: bytes) -> int:
    """Character count of a ``(...)`` token, each ``\\x`` pair counting once."""
    body = raw[1:-1]
    count = 0
    i = 0
    while i < len(body):
        i += 2 if body[i] == 0x5C else 1
        count += 1
    return count


def _hex_length(raw: bytes) -> int:
    digits = sum(1 for b in raw[1:-1] if b not in b" \t\r\n\x00\x0c")
    return (digits + 1) // 2


def _char_count(token: Token) -> int:
    if token.kind is TokenKind.STRING:
        return _literal_length(token.raw)
    if token.kind is TokenKind.HEX:
        return _hex_length(token.raw)
    if token.kind is TokenKind.ARRAY:
        # Kerning numbers inside the array contribute nothing.
        return sum(_char_count(t) for t in tokenize(token.raw[1:-1]))
    return 0


def estimate_width(operands: Sequence[Token], font_size: float) -> float:
    """Estimated advance of the text shown by *operands*.

    Never less than one glyph (``font_size``), so empty and one-character runs
    still get a usable box.
    """
    chars = sum(_char_count(t) for t in operands)
    return max(chars * GLYPH_WIDTH_FACTOR * font_size, font_size)


def _number(token: Token) -> float | None:
    try:
        return float(token.raw)
    except ValueError:
        return None


def _numbers(operands: Sequence[Token], count: int) -> list[float] | None:
    """Last *count* operands as floats, or None if any isn't numeric."""
    if len(operands) < count:
        return None
    values = [_number(t) for t in operands[-count:]]
    if any(v is None for v in values):
        return None
    return values  # type: ignore[return-value]


def text_box(state: TextRunState, operands: Sequence[Token],
             estimate: WidthEstimator = estimate_width) -> Rect:
    """Estimated area covered by a show instruction at the current origin."""
    size = abs(state.font_size)
    return Rect(
        state.origin_x,
        state.origin_y - DESCENT_FACTOR * size,
        estimate(operands, size),
        LINE_HEIGHT_FACTOR * size,
    )


def process_text_object(
    tokens: Sequence[Token],
    rects: Sequence[Rect],
    estimate: WidthEstimator = estimate_width,
) -> list[Token] | None:
    """Rewrite the body of one text object against the redaction rectangles.

    Show instructions whose estimated box overlaps any rectangle are replaced
    by ``() Tj``. Returns the rewritten token list, or ``None`` when every show
    instruction was redacted and the whole object should be dropped. An object
    with nothing to redact comes back unchanged, show instructions or not.
    """
    state = TextRunState()
    operands: list[Token] = []
    output: list[Token] = []
    visible = False
    redacted = 0

    for token in tokens:
        if not token.is_operator:
            operands.append(token)
            continue

        op = token.raw
        if op == b"Tf":
            size = _number(operands[-1]) if operands else None
            if size is not None:
                state.font_size = size
        elif op == b"Tm":
            values = _numbers(operands, 6)
            if values is not None:
                state.origin_x, state.origin_y = values[4], values[5]
        elif op in (b"Td", b"TD"):
            values = _numbers(operands, 2)
            if values is not None:
                state.origin_x += values[0]
                state.origin_y += values[1]
        elif op in TEXT_SHOW_OPERATORS:
            box = text_box(state, operands, estimate)
            if any(rects_overlap(box, r) for r in rects):
                redacted += 1
                output.append(Token(TokenKind.STRING, EMPTY_SHOW[0]))
                output.append(Token(TokenKind.OPERATOR, EMPTY_SHOW[1]))
                operands = []
                continue
            visible = True

        output.extend(operands)
        output.append(token)
        operands = []

    # Trailing operands with no operator are kept as written.
    output.extend(operands)

    if redacted and not visible:
        logger.debug("Dropping text object (%d show instruction(s) redacted)", redacted)
        return None
    if redacted:
        logger.debug("Rewrote text object, %d show instruction(s) redacted", redacted)
    return output


def text_state_instructions(tokens: Sequence[Token]) -> list[Token]:
    """The text-state instructions (``Tf``, ``Tc``, ``TL`` ...) of an object body.

    Text state is not reset by ``ET``, so these still apply to whatever is
    drawn after the object.
    """
    kept: list[Token] = []
    operands: list[Token] = []
    for token in tokens:
        if not token.is_operator:
            operands.append(token)
            continue
        if token.raw in TEXT_STATE_OPERATORS:
            kept.extend(operands)
            kept.append(token)
        operands = []
    return kept
