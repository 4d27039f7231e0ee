"""
Deterministic decoding and normalization rules.

Every fixed table the pipeline consults lives here so that swapping the
statistical detector, or tuning for a different dataset, touches one file.
"""

from __future__ import annotations

import re

# Canonical encoding identifiers -> Python codec names.
CODEC_NAMES = {
    "utf8": "utf-8",
    "utf16le": "utf-16-le",
    "utf16be": "utf-16-be",
    "gbk": "gbk",
    "big5": "big5",
    "shiftjis": "shift_jis",
    "cp1252": "cp1252",
    "latin1": "latin-1",
}

CANONICAL_ENCODINGS = frozenset(CODEC_NAMES)

# Checked in order; first match wins.
BOM_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\xef\xbb\xbf", "utf8"),
    (b"\xfe\xff", "utf16be"),
    (b"\xff\xfe", "utf16le"),
)

# Detector label (lowercased, "_" -> "-") -> canonical id.
LABEL_TABLE = {
    "gb2312": "gbk",
    "gb18030": "gbk",
    "windows-1252": "cp1252",
    "cp1252": "cp1252",
    "iso-8859-1": "latin1",
    "latin-1": "latin1",
    "latin1": "latin1",
    "ascii": "utf8",
    "utf-8-sig": "utf8",
    "utf-16le": "utf16le",
    "utf-16be": "utf16be",
    "big5": "big5",
    "big5hkscs": "big5",
    "shift-jis": "shiftjis",
    "shiftjis": "shiftjis",
    "sjis": "shiftjis",
    "cp932": "shiftjis",
}

# Labels naming a UTF-16 family without its byte order; resolved from the BOM.
BYTE_ORDER_LABELS = frozenset({"utf-16", "utf16"})

TRIAL_ENCODINGS = ("utf8", "gbk", "big5", "shiftjis")
FALLBACK_ENCODINGS = ("utf8", "gbk", "big5", "shiftjis", "cp1252")
REPAIR_ENCODINGS = ("gbk", "big5", "shiftjis")

DEFAULT_CONFIDENCE_THRESHOLD = 0.85
DEFAULT_BAD_CHAR_THRESHOLD = 0.10
DEFAULT_ENCODING = "utf8"

# Replacement characters plus low-range controls other than TAB, LF, CR.
BAD_CHARACTERS_RE = re.compile("[\ufffd\x00-\x08\x0b\x0c\x0e-\x1f]")

# ASCII controls stripped from every field value.
CONTROL_CHARACTERS_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

NUMBER_RE = re.compile(r"^[+-]?\d*\.?\d+$")

# (pattern, order of the year/month/day groups)
DATE_PATTERNS: tuple[tuple[re.Pattern[str], tuple[str, str, str]], ...] = (
    (re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})$"), ("year", "month", "day")),
    (re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$"), ("month", "day", "year")),
    (re.compile(r"^(\d{4})年(\d{1,2})月(\d{1,2})日$"), ("year", "month", "day")),
)
