"""
Cheap, independent encoding signals.

- ``sniff``: byte-order marks (deterministic)
- ``guess``: statistical detector, label normalized into the canonical set
- ``validate``: decode -> re-encode -> compare (lossless round trip)

None of these raise; a missing signal is reported as ``None`` / ``False``.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

import charset_normalizer

from . import rules
from .charsets import get_codec
from .errors import CodecError
from .log import get_logger
from .models import EncodingCandidate

log = get_logger(__name__)

# bytes -> {"encoding": label | None, "confidence": float | None, ...}
Detector = Callable[[bytes], Dict[str, Any]]


def charset_normalizer_detector(data: bytes) -> Dict[str, Any]:
    return charset_normalizer.detect(data)


def sniff(data: bytes) -> Optional[EncodingCandidate]:
    if len(data) < 2:
        return None
    for signature, encoding in rules.BOM_SIGNATURES:
        if data.startswith(signature):
            log.debug("BOM found: %s", encoding)
            return EncodingCandidate(encoding=encoding, source="bom")
    return None


def normalize_label(label: str) -> Optional[str]:
    """
    Map a detector label to a canonical id, or None if it is outside the set.

    ``GB2312`` / ``gb18030`` -> ``gbk``; ``utf-8`` -> ``utf8``;
    ``UTF_16_LE`` -> ``utf16le``; ``Windows-1252`` -> ``cp1252``.
    """
    key = label.strip().lower().replace("_", "-")
    if not key:
        return None
    if key in rules.CANONICAL_ENCODINGS:
        return key
    encoding = rules.LABEL_TABLE.get(key, key)
    if "gb" in encoding:
        encoding = "gbk"
    elif "utf" in encoding:
        encoding = encoding.replace("-", "")
    return encoding if encoding in rules.CANONICAL_ENCODINGS else None


def guess(data: bytes, *, detector: Detector | None = None) -> Optional[EncodingCandidate]:
    """Ask the statistical detector; detector failures become ``None``."""
    detector = detector or charset_normalizer_detector
    try:
        result = detector(data) or {}
    except Exception as exc:
        log.warning("encoding detector failed: %s", exc)
        return None

    label = result.get("encoding")
    confidence = result.get("confidence")
    if not label:
        log.debug("detector returned no label")
        return None

    if str(label).strip().lower().replace("_", "-") in rules.BYTE_ORDER_LABELS:
        # byte order is not in the label; take it from the BOM
        bom = sniff(data)
        encoding = bom.encoding if bom is not None and bom.encoding != "utf8" else None
    else:
        encoding = normalize_label(str(label))
    if encoding is None:
        log.debug("detector label %r is outside the canonical set", label)
        return None

    try:
        confidence = min(max(float(confidence), 0.0), 1.0)
    except (TypeError, ValueError):
        confidence = 0.0
    log.debug("detector label %r -> %s (confidence %.2f)", label, encoding, confidence)
    return EncodingCandidate(encoding=encoding, confidence=confidence, source="guess")


def validate(data: bytes, encoding: str) -> bool:
    """True iff ``encode(decode(data)) == data`` under ``encoding``."""
    try:
        codec = get_codec(encoding)
        return codec.encode(codec.decode(data)) == data
    except CodecError:
        return False
