"""
Record normalization.

Per field:
- strip ASCII control characters and surrounding whitespace
- "" -> None
- numeric-looking strings -> int / float
- date-looking strings -> datetime.date

Per record:
- every value empty -> dropped (blank row)
- allow-list configured and the field value not admitted -> dropped

Normalizing an already-normalized record returns an equal record.
"""

from __future__ import annotations

import datetime as dt
import math
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from . import rules
from .log import get_logger
from .models import AllowList, NormalizeConfig, Record, RecordValue

log = get_logger(__name__)

FilterPredicate = Callable[[Mapping[str, RecordValue]], bool]


def clean_text(value: str) -> Optional[str]:
    cleaned = rules.CONTROL_CHARACTERS_RE.sub("", value).strip()
    return cleaned or None


def coerce_number(value: str) -> RecordValue:
    if not rules.NUMBER_RE.match(value):
        return value
    try:
        number = float(value) if "." in value else int(value)
    except ValueError:
        return value
    if isinstance(number, float) and not math.isfinite(number):
        return value
    return number


def coerce_date(value: str) -> RecordValue:
    for pattern, order in rules.DATE_PATTERNS:
        m = pattern.match(value)
        if m is None:
            continue
        parts = dict(zip(order, (int(g) for g in m.groups())))
        try:
            return dt.date(parts["year"], parts["month"], parts["day"])
        except ValueError:
            return value
    return value


def allow_list_predicate(allow: AllowList) -> FilterPredicate:
    admitted = frozenset(allow.values)
    # typed forms, so already-normalized records still match
    typed = set()
    for text in allow.values:
        value = coerce_number(text)
        if isinstance(value, str):
            value = coerce_date(value)
        if not isinstance(value, str):
            typed.add(value)

    def predicate(record: Mapping[str, RecordValue]) -> bool:
        value = record.get(allow.field)
        if value is None:
            return False
        if isinstance(value, str):
            return value in admitted
        return value in typed or str(value) in admitted

    return predicate


class RecordNormalizer:
    def __init__(self, config: NormalizeConfig | None = None, *, predicate: FilterPredicate | None = None):
        self.config = config or NormalizeConfig()
        if predicate is None and self.config.allow_list is not None:
            predicate = allow_list_predicate(self.config.allow_list)
        self.predicate = predicate

    @property
    def filtering(self) -> bool:
        return self.predicate is not None

    def _clean(self, value: Any) -> RecordValue:
        if isinstance(value, str):
            return clean_text(value)
        return value

    def _coerce(self, value: RecordValue) -> RecordValue:
        if not isinstance(value, str):
            return value
        if self.config.coerce_numbers:
            value = coerce_number(value)
            if not isinstance(value, str):
                return value
        if self.config.coerce_dates:
            value = coerce_date(value)
        return value

    def normalize(self, record: Dict[str, Any]) -> Optional[Record]:
        """Clean ``record`` in place; None when it is blank or filtered out."""
        for key, value in record.items():
            record[key] = self._clean(value)

        if all(value is None for value in record.values()):
            return None
        if self.predicate is not None and not self.predicate(record):
            return None

        for key, value in record.items():
            record[key] = self._coerce(value)
        return record

    def normalize_all(self, records: Iterable[Dict[str, Any]]) -> List[Record]:
        out = []
        for record in records:
            normalized = self.normalize(record)
            if normalized is not None:
                out.append(normalized)
        return out
