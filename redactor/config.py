"""Centralised configuration for the redactor backend."""

from __future__ import annotations

import os
from pathlib import Path

# -- Storage --
UPLOAD_DIR = Path(os.getenv("REDACTOR_UPLOAD_DIR", "uploads"))

# -- Upload limits --
MAX_UPLOAD_SIZE = 50 * 1024 * 1024  # 50 MB

# -- Rendering --
DEFAULT_RENDER_SCALE = 2.0  # PNG render resolution multiplier

# -- Logging --
LOG_LEVEL = os.getenv("REDACTOR_LOG_LEVEL", "INFO")

# -- Text extent estimation (no font metrics are consulted) --
DEFAULT_FONT_SIZE = 12.0  # used until a Tf is seen inside a text object
GLYPH_WIDTH_FACTOR = 0.6  # average glyph width = font_size * this
DESCENT_FACTOR = 0.2  # box bottom = baseline - font_size * this
LINE_HEIGHT_FACTOR = 1.2  # box height = font_size * this

# -- Region merging --
MERGE_TOLERANCE = 5.0  # horizontal gap (PDF units) still treated as adjacent

# -- Overpaint --
FILL_COLOR: tuple[float, float, float] = (0.0, 0.0, 0.0)

# -- Content stream rewriting --
EMPTY_SHOW = (b"()", b"Tj")  # replacement for a redacted show instruction
TEXT_SHOW_OPERATORS: frozenset[bytes] = frozenset({b"Tj", b"TJ", b"'", b'"'})
# Text state survives ET; kept at page level when a text object is dropped
TEXT_STATE_OPERATORS: frozenset[bytes] = frozenset({b"Tf", b"Tc", b"Tw", b"Tz", b"TL", b"Tr", b"Ts"})
