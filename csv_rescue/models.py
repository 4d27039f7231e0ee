from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import rules

# A normalized field value: string | number | date | null.
RecordValue = Union[str, int, float, dt.date, None]
Record = Dict[str, RecordValue]

CandidateSource = Literal["guess", "bom", "round_trip", "default", "fallback", "repair", "lossy"]
Strategy = Literal["guess", "bom", "round_trip"]


def canonical_encoding(name: str) -> str:
    """Map any spelling the label table understands to a canonical id."""
    from .detect import normalize_label

    canonical = normalize_label(name)
    if canonical is None:
        raise ValueError(f"unsupported encoding: {name!r}")
    return canonical


class EncodingCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    encoding: str
    # Only meaningful when source == "guess".
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    source: CandidateSource = "guess"


class DecodedText(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    candidate: EncodingCandidate
    bad_characters: int = 0

    @property
    def encoding(self) -> str:
        return self.candidate.encoding

    @property
    def bad_ratio(self) -> float:
        return self.bad_characters / len(self.text) if self.text else 0.0


# ---- Configuration ---------------------------------------------------------
class DecodeConfig(BaseModel):
    confidence_threshold: float = Field(default=rules.DEFAULT_CONFIDENCE_THRESHOLD, ge=0.0, le=1.0)
    strategies: List[Strategy] = Field(default_factory=lambda: ["guess", "bom", "round_trip"])
    default_encoding: str = rules.DEFAULT_ENCODING
    trial_encodings: List[str] = Field(default_factory=lambda: list(rules.TRIAL_ENCODINGS))
    fallback_encodings: List[str] = Field(default_factory=lambda: list(rules.FALLBACK_ENCODINGS))
    repair_encodings: List[str] = Field(default_factory=lambda: list(rules.REPAIR_ENCODINGS))
    bad_char_threshold: float = Field(default=rules.DEFAULT_BAD_CHAR_THRESHOLD, ge=0.0, le=1.0)
    strict: bool = True

    @field_validator("default_encoding")
    @classmethod
    def _canonical_default(cls, v: str) -> str:
        return canonical_encoding(v)

    @field_validator("trial_encodings", "fallback_encodings", "repair_encodings")
    @classmethod
    def _canonical_lists(cls, v: List[str]) -> List[str]:
        return [canonical_encoding(name) for name in v]


class ParseOptions(BaseModel):
    delimiter: str = Field(default=",", min_length=1, max_length=1)
    quote: str = Field(default='"', min_length=1, max_length=1)
    escape: str = Field(default='"', min_length=1, max_length=1)
    relax_quotes: bool = True
    relax_column_count: bool = True
    skip_malformed: bool = True
    header: bool = True
    skip_empty_lines: bool = True
    trim: bool = True


class AllowList(BaseModel):
    field: str
    values: List[str]


class NormalizeConfig(BaseModel):
    coerce_numbers: bool = True
    coerce_dates: bool = True
    allow_list: Optional[AllowList] = None


class ProcessingProfile(BaseModel):
    name: str = "strict"
    decode: DecodeConfig = Field(default_factory=DecodeConfig)
    parse: ParseOptions = Field(default_factory=ParseOptions)
    normalize: NormalizeConfig = Field(default_factory=NormalizeConfig)


# ---- Outcomes --------------------------------------------------------------
class ConversionResult(BaseModel):
    encoding: EncodingCandidate
    bad_ratio: float
    rows: int
    records: List[Dict[str, Any]]


class FileOutcome(BaseModel):
    source: str
    output: Optional[str] = None
    ok: bool
    encoding: Optional[str] = None
    rows: int = 0
    records: int = 0
    error: Optional[str] = None


class BatchReport(BaseModel):
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    failed_files: List[str] = Field(default_factory=list)
    outcomes: List[FileOutcome] = Field(default_factory=list)

    @property
    def completion_rate(self) -> float:
        return self.succeeded / self.total if self.total else 0.0


# ---- HTTP envelopes --------------------------------------------------------
class EncodingReport(BaseModel):
    encoding: str
    source: CandidateSource
    confidence: Optional[float] = None
    bad_ratio: float = 0.0


class ReportSummary(BaseModel):
    rows: int = 0
    records: int = 0
    dropped: int = 0
    profile: str


class NormalizeResponse(BaseModel):
    encoding: EncodingReport
    summary: ReportSummary
    records: List[Dict[str, Any]] = Field(default_factory=list)


class HealthResponse(BaseModel):
    ok: bool = True
