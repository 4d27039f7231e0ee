"""Canonical encoding id -> decode/encode over Python's codec registry."""

from __future__ import annotations

from dataclasses import dataclass

from . import rules
from .errors import CodecError


@dataclass(frozen=True)
class Codec:
    encoding: str
    codec_name: str

    @property
    def is_unicode(self) -> bool:
        return self.encoding.startswith("utf")

    def decode(self, data: bytes, *, errors: str = "strict") -> str:
        """Decode ``data``; a leading BOM is dropped for the UTF family."""
        try:
            text = data.decode(self.codec_name, errors=errors)
        except UnicodeDecodeError as exc:
            raise CodecError(self.encoding, f"invalid byte sequence at offset {exc.start}") from exc
        if self.is_unicode and text.startswith("\ufeff"):
            text = text[1:]
        return text

    def encode(self, text: str) -> bytes:
        try:
            return text.encode(self.codec_name)
        except UnicodeEncodeError as exc:
            raise CodecError(self.encoding, f"unencodable character at offset {exc.start}") from exc


def get_codec(encoding: str) -> Codec:
    try:
        return Codec(encoding, rules.CODEC_NAMES[encoding])
    except KeyError:
        raise CodecError(encoding, "not a canonical encoding") from None
