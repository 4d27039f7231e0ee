from __future__ import annotations


class CsvRescueError(Exception):
    """Base class for every error raised by csv_rescue."""


class CodecError(CsvRescueError):
    """A single encoding could not decode or encode a buffer. Recoverable."""

    def __init__(self, encoding: str, reason: str):
        super().__init__(f"{encoding}: {reason}")
        self.encoding = encoding
        self.reason = reason


# ---- Per-file failures -----------------------------------------------------
class ConversionError(CsvRescueError):
    """Fatal to a single file, never to a batch."""


class DecodeError(ConversionError):
    """No encoding in the fallback list could decode the buffer."""


class EmptyContentError(ConversionError):
    """Decoded text is empty or whitespace-only."""


class ParseError(ConversionError):
    """The delimited text could not be parsed into records."""


class NoQualifyingRecordsError(ConversionError):
    """The allow-list filter left zero records."""


__all__ = [
    "CsvRescueError",
    "CodecError",
    "ConversionError",
    "DecodeError",
    "EmptyContentError",
    "ParseError",
    "NoQualifyingRecordsError",
]
