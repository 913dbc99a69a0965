"""Content stream rewriting: drop text drawn inside redaction rectangles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .exceptions import MalformedContentError
from .geometry import Rect
from .logging import get_logger
from .text_object import WidthEstimator, estimate_width, process_text_object, text_state_instructions
from .tokenizer import Token, TokenKind, join_tokens, tokenize

logger = get_logger(__name__)


@dataclass(frozen=True)
class TextObjectSpan:
    """Indices of a ``BT`` token and its matching ``ET`` in a token list."""

    begin: int
    end: int


def _is_op(token: Token, name: bytes) -> bool:
    return token.kind is TokenKind.OPERATOR and token.raw == name


def find_text_objects(tokens: Sequence[Token], strict: bool = False) -> tuple[list[TextObjectSpan], int | None]:
    """Locate non-nested ``BT … ET`` spans.

    Returns ``(spans, tail)`` where *tail* is the token index of a ``BT`` whose
    object could not be closed (no ``ET``, or an unterminated token before it);
    everything from there on must be copied through untouched. With
    ``strict=True`` that case raises :class:`MalformedContentError` instead.
    """
    spans: list[TextObjectSpan] = []
    n = len(tokens)
    i = 0
    while i < n:
        if not _is_op(tokens[i], b"BT"):
            i += 1
            continue
        j = i + 1
        while j < n and not _is_op(tokens[j], b"ET") and tokens[j].kind is not TokenKind.INCOMPLETE:
            j += 1
        if j == n or tokens[j].kind is TokenKind.INCOMPLETE:
            if strict:
                raise MalformedContentError(tokens[i].start, "text object is never closed")
            return spans, i
        spans.append(TextObjectSpan(i, j))
        i = j + 1
    return spans, None


def redact_stream(raw: bytes, rects: Sequence[Rect],
                  estimate: WidthEstimator = estimate_width) -> bytes:
    """Return *raw* with show instructions inside *rects* removed.

    Bytes outside text objects are copied verbatim, as is every text object
    with nothing to redact. A text object whose every show instruction was
    redacted is dropped along with its ``BT``/``ET``; only its text-state
    instructions remain, at page level.
    """
    if not rects:
        return raw

    tokens = tokenize(raw)
    spans, tail = find_text_objects(tokens)
    if not spans:
        if tail is not None:
            logger.warning("Unterminated text object at byte %d; stream left unchanged", tokens[tail].start)
        return raw

    out: list[bytes] = []
    cursor = 0
    dropped = rewritten = 0
    for span in spans:
        bt, et = tokens[span.begin], tokens[span.end]
        out.append(raw[cursor:bt.start])
        cursor = et.end

        body = tokens[span.begin + 1 : span.end]
        result = process_text_object(body, rects, estimate)
        if result is None:
            dropped += 1
            # Later objects may rely on the font and spacing set here
            out.append(join_tokens(text_state_instructions(body)))
        elif result == list(body):
            out.append(raw[bt.start:et.end])
        else:
            rewritten += 1
            out.append(b"BT\n" + join_tokens(result) + b"ET")

    if tail is not None:
        logger.warning(
            "Unterminated text object at byte %d; copying remainder through",
            tokens[tail].start,
        )
    out.append(raw[cursor:])

    logger.debug(
        "Processed %d text object(s): %d dropped, %d rewritten",
        len(spans), dropped, rewritten,
    )
    return b"".join(out)


def redact_page_streams(streams: Sequence[bytes], rects: Sequence[Rect],
                        estimate: WidthEstimator = estimate_width) -> list[bytes]:
    """Rewrite each of a page's content streams independently, keeping order."""
    return [redact_stream(raw, rects, estimate) for raw in streams]
