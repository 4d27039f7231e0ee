"""
Decode-and-repair pipeline.

Encoding selection is an ordered chain of strategies, each returning a
candidate or ``None``; the first hit wins, else the configured default:

1. ``guess``      -- statistical detector, only at or above the confidence threshold
2. ``bom``        -- byte-order mark
3. ``round_trip`` -- first trial encoding that decodes and re-encodes losslessly

The selected encoding is then decoded (falling back through a fixed list on
codec failure) and the result is checked for replacement/control character
density. Above the threshold, a short list of alternatives is re-decoded and
the cleanest strictly-better result kept.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from . import rules
from .charsets import get_codec
from .detect import Detector, guess, sniff, validate
from .errors import CodecError, DecodeError
from .log import get_logger
from .models import DecodeConfig, DecodedText, EncodingCandidate

log = get_logger(__name__)


def bad_character_count(text: str) -> int:
    return len(rules.BAD_CHARACTERS_RE.findall(text))


def bad_character_ratio(text: str) -> float:
    return bad_character_count(text) / len(text) if text else 0.0


class Decoder:
    def __init__(self, config: DecodeConfig | None = None, *, detector: Detector | None = None):
        self.config = config or DecodeConfig()
        self.detector = detector
        self._strategies: Dict[str, Callable[[bytes], Optional[EncodingCandidate]]] = {
            "guess": self._confident_guess,
            "bom": sniff,
            "round_trip": self._round_trip,
        }

    # ---- selection -------------------------------------------------------
    def _confident_guess(self, data: bytes) -> Optional[EncodingCandidate]:
        candidate = guess(data, detector=self.detector)
        if candidate is None:
            return None
        if (candidate.confidence or 0.0) < self.config.confidence_threshold:
            log.info(
                "low-confidence guess %s (%.2f < %.2f), not trusted",
                candidate.encoding,
                candidate.confidence or 0.0,
                self.config.confidence_threshold,
            )
            return None
        return candidate

    def _round_trip(self, data: bytes) -> Optional[EncodingCandidate]:
        for encoding in self.config.trial_encodings:
            if validate(data, encoding):
                log.info("round-trip validated %s", encoding)
                return EncodingCandidate(encoding=encoding, source="round_trip")
        return None

    def select(self, data: bytes) -> EncodingCandidate:
        for name in self.config.strategies:
            candidate = self._strategies[name](data)
            if candidate is not None:
                return candidate
        log.info("no strategy matched, using default %s", self.config.default_encoding)
        return EncodingCandidate(encoding=self.config.default_encoding, source="default")

    # ---- decoding --------------------------------------------------------
    def _decode_with_fallback(self, data: bytes, selected: EncodingCandidate) -> DecodedText:
        try:
            text = get_codec(selected.encoding).decode(data)
            return DecodedText(text=text, candidate=selected, bad_characters=bad_character_count(text))
        except CodecError as exc:
            log.warning("decoding as %s failed (%s), trying fallbacks", selected.encoding, exc.reason)

        for encoding in self.config.fallback_encodings:
            if encoding == selected.encoding:
                continue
            try:
                text = get_codec(encoding).decode(data)
            except CodecError:
                continue
            log.info("decoded with fallback encoding %s", encoding)
            return DecodedText(
                text=text,
                candidate=EncodingCandidate(encoding=encoding, source="fallback"),
                bad_characters=bad_character_count(text),
            )

        if self.config.strict:
            tried = [selected.encoding] + [e for e in self.config.fallback_encodings if e != selected.encoding]
            raise DecodeError(f"no encoding could decode the buffer (tried {', '.join(tried)})")

        log.warning("every fallback failed, accepting lossy %s decode", selected.encoding)
        text = get_codec(selected.encoding).decode(data, errors="replace")
        return DecodedText(
            text=text,
            candidate=EncodingCandidate(encoding=selected.encoding, source="lossy"),
            bad_characters=bad_character_count(text),
        )

    def _repair(self, data: bytes, initial: DecodedText) -> DecodedText:
        if initial.bad_ratio < self.config.bad_char_threshold:
            return initial

        log.warning(
            "possible mojibake: %.1f%% bad characters under %s",
            initial.bad_ratio * 100,
            initial.encoding,
        )
        errors = "strict" if self.config.strict else "replace"
        best = initial
        for encoding in self.config.repair_encodings:
            if encoding == initial.encoding:
                continue
            try:
                text = get_codec(encoding).decode(data, errors=errors)
            except CodecError:
                continue
            # ranked by count; decoded lengths differ between codecs
            score = bad_character_count(text)
            if score < best.bad_characters:
                best = DecodedText(
                    text=text,
                    candidate=EncodingCandidate(encoding=encoding, source="repair"),
                    bad_characters=score,
                )

        if best is not initial:
            log.info("repair chose %s (%d -> %d bad characters)", best.encoding, initial.bad_characters, best.bad_characters)
        return best

    def decode(self, data: bytes) -> DecodedText:
        selected = self.select(data)
        initial = self._decode_with_fallback(data, selected)
        return self._repair(data, initial)


def decode_bytes(
    data: bytes,
    config: DecodeConfig | None = None,
    *,
    detector: Detector | None = None,
) -> DecodedText:
    return Decoder(config, detector=detector).decode(data)
