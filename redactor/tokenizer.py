"""Lexical analysis of PDF page content streams."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Iterable

WHITESPACE = frozenset(b" \t\r\n\x00\x0c")
DELIMITERS = WHITESPACE | frozenset(b"()<>[]/%")

_OPERATOR_RE = re.compile(rb"^[A-Za-z*]+$")


class TokenKind(enum.Enum):
    OPERATOR = "operator"
    OPERAND = "operand"  # numbers, booleans-as-written, anything plain
    STRING = "string"
    HEX = "hex"
    NAME = "name"
    ARRAY = "array"
    DICT = "dict"
    INCOMPLETE = "incomplete"  # unterminated delimited token; remainder of the input


@dataclass(frozen=True)
class Token:
    """One lexical unit with its exact source text.

    ``start``/``end`` are byte offsets into the tokenized buffer; synthetic
    tokens created during rewriting carry ``-1`` for both.
    """

    kind: TokenKind
    raw: bytes
    start: int = -1
    end: int = -1

    @property
    def is_operator(self) -> bool:
        return self.kind is TokenKind.OPERATOR

    @property
    def is_synthetic(self) -> bool:
        return self.start < 0


def is_operator(raw: bytes) -> bool:
    """Letters and ``*`` only, not starting with a digit; plus ``'`` and ``"``."""
    return raw in (b"'", b'"') or bool(_OPERATOR_RE.match(raw))


def _scan_literal(raw: bytes, i: int) -> int:
    """Scan a ``(...)`` string starting at *i*; return the index past it, or -1."""
    n = len(raw)
    i += 1
    depth = 1
    while i < n:
        c = raw[i]
        if c == 0x5C:  # backslash: escaped unit, not evaluated
            i += 2
            continue
        if c == 0x28:
            depth += 1
        elif c == 0x29:
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return -1


def _scan_hex(raw: bytes, i: int) -> int:
    end = raw.find(b">", i + 1)
    return -1 if end < 0 else end + 1


def _scan_array(raw: bytes, i: int) -> int:
    n = len(raw)
    i += 1
    depth = 1
    while i < n:
        c = raw[i]
        if c == 0x28:
            i = _scan_literal(raw, i)
            if i < 0:
                return -1
            continue
        if c == 0x3C and raw[i + 1 : i + 2] != b"<":
            i = _scan_hex(raw, i)
            if i < 0:
                return -1
            continue
        if c == 0x5B:
            depth += 1
        elif c == 0x5D:
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return -1


def _scan_dict(raw: bytes, i: int) -> int:
    n = len(raw)
    i += 2
    depth = 1
    while i < n:
        c = raw[i]
        if c == 0x28:
            i = _scan_literal(raw, i)
            if i < 0:
                return -1
            continue
        if raw.startswith(b"<<", i):
            depth += 1
            i += 2
            continue
        if raw.startswith(b">>", i):
            depth -= 1
            i += 2
            if depth == 0:
                return i
            continue
        if c == 0x3C:
            i = _scan_hex(raw, i)
            if i < 0:
                return -1
            continue
        i += 1
    return -1


def _scan_regular(raw: bytes, i: int) -> int:
    n = len(raw)
    while i < n and raw[i] not in DELIMITERS:
        i += 1
    return i


def tokenize(raw: bytes) -> list[Token]:
    """Split a content stream into a flat list of tokens.

    Strings, hex strings, arrays and dictionaries each become a single token
    whose ``raw`` keeps the delimiters. Whitespace and comments are dropped.
    When an opening delimiter is never closed, whatever remains of the input is
    returned as one trailing ``INCOMPLETE`` token and scanning stops.
    """
    tokens: list[Token] = []
    i = 0
    n = len(raw)

    while i < n:
        c = raw[i]

        if c in WHITESPACE:
            i += 1
            continue

        # Comment: skip to end of line
        if c == 0x25:
            while i < n and raw[i] not in (0x0D, 0x0A):
                i += 1
            continue

        start = i
        if c == 0x28:
            kind, end = TokenKind.STRING, _scan_literal(raw, i)
        elif c == 0x3C and raw[i + 1 : i + 2] == b"<":
            kind, end = TokenKind.DICT, _scan_dict(raw, i)
        elif c == 0x3C:
            kind, end = TokenKind.HEX, _scan_hex(raw, i)
        elif c == 0x5B:
            kind, end = TokenKind.ARRAY, _scan_array(raw, i)
        elif c == 0x2F:
            kind, end = TokenKind.NAME, _scan_regular(raw, i + 1)
        else:
            end = _scan_regular(raw, i)
            if end == start:
                # Stray closing delimiter; keep it so scanning advances.
                end = start + 1
            word = raw[start:end]
            kind = TokenKind.OPERATOR if is_operator(word) else TokenKind.OPERAND

        if end < 0:
            tokens.append(Token(TokenKind.INCOMPLETE, raw[start:], start, n))
            break

        tokens.append(Token(kind, raw[start:end], start, end))
        i = end

    return tokens


def join_tokens(tokens: Iterable[Token]) -> bytes:
    """Serialize tokens, one instruction (operands + operator) per line."""
    lines: list[bytes] = []
    pending: list[bytes] = []
    for token in tokens:
        pending.append(token.raw)
        if token.is_operator:
            lines.append(b" ".join(pending))
            pending = []
    if pending:
        lines.append(b" ".join(pending))
    return b"".join(line + b"\n" for line in lines)
