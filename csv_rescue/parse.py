"""
Delimiter-aware parsing of decoded text into raw field mappings.

Lenient by default: unbalanced quotes are tolerated, short rows padded
with None, long rows truncated to the header, and rows the csv module
rejects are skipped.
"""

from __future__ import annotations

import csv
import io
from typing import Dict, List, Optional

from . import rules
from .errors import ParseError
from .log import get_logger
from .models import ParseOptions

log = get_logger(__name__)

RawRecord = Dict[str, Optional[str]]


def prepare_text(text: str) -> str:
    """CRLF/CR -> LF and drop NULs, which the csv module rejects."""
    return text.replace("\r\n", "\n").replace("\r", "\n").replace("\x00", "")


def _reader(text: str, options: ParseOptions):
    doublequote = options.escape == options.quote
    return csv.reader(
        io.StringIO(text, newline=""),
        delimiter=options.delimiter,
        quotechar=options.quote,
        doublequote=doublequote,
        escapechar=None if doublequote else options.escape,
        strict=not options.relax_quotes,
    )


def _iter_rows(text: str, options: ParseOptions):
    reader = _reader(text, options)
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as exc:
            if options.skip_malformed:
                log.warning("skipping malformed record at line %d: %s", reader.line_num, exc)
                continue
            raise ParseError(f"line {reader.line_num}: {exc}") from exc
        if options.skip_empty_lines and not any(field.strip() for field in row):
            continue
        if options.trim:
            row = [field.strip() for field in row]
        yield reader.line_num, row


def parse_records(text: str, options: ParseOptions | None = None) -> List[RawRecord]:
    options = options or ParseOptions()
    rows = _iter_rows(prepare_text(text), options)

    if options.header:
        first = next(rows, None)
        if first is None:
            return []
        header = [rules.CONTROL_CHARACTERS_RE.sub("", name) for name in first[1]]
        if header:
            header[0] = header[0].lstrip("\ufeff")
    else:
        header = None

    records: List[RawRecord] = []
    for line_num, row in rows:
        if header is None:
            header = [f"column_{i}" for i in range(1, len(row) + 1)]
        if len(row) != len(header):
            if not options.relax_column_count:
                message = f"line {line_num}: expected {len(header)} fields, got {len(row)}"
                if options.skip_malformed:
                    log.warning("skipping record, %s", message)
                    continue
                raise ParseError(message)
            if len(row) > len(header):
                log.debug("line %d: dropping %d extra fields", line_num, len(row) - len(header))
        values: List[Optional[str]] = list(row[: len(header)])
        values += [None] * (len(header) - len(values))
        records.append(dict(zip(header, values)))
    return records
