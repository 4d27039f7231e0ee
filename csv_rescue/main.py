from typing import List, Optional

from fastapi import FastAPI, File, HTTPException, Query, UploadFile

from .config import PROFILE_NAMES, get_profile
from .convert import convert_bytes
from .decode import Decoder
from .errors import ConversionError
from .models import EncodingReport, HealthResponse, NormalizeResponse, ReportSummary

app = FastAPI(
    title="csv-rescue",
    description="Encoding-robust CSV decoding and record normalization",
    version="0.1.0",
)


def _profile(name: str, allow_field: Optional[str] = None, allow_values: Optional[List[str]] = None):
    if name not in PROFILE_NAMES:
        raise HTTPException(status_code=422, detail=f"Unknown profile: {name}")
    try:
        return get_profile(name, allow_field=allow_field, allow_values=allow_values)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


async def _read_csv(file: UploadFile) -> bytes:
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=422, detail="Only CSV files are supported")
    return await file.read()


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/detect", response_model=EncodingReport)
async def detect_encoding(
    file: UploadFile = File(...),
    profile: str = Query("strict"),
):
    raw = await _read_csv(file)
    try:
        decoded = Decoder(_profile(profile).decode).decode(raw)
    except ConversionError as exc:
        raise HTTPException(status_code=422, detail=f"{type(exc).__name__}: {exc}")
    return EncodingReport(
        encoding=decoded.encoding,
        source=decoded.candidate.source,
        confidence=decoded.candidate.confidence,
        bad_ratio=decoded.bad_ratio,
    )


@app.post("/normalize", response_model=NormalizeResponse)
async def normalize_csv(
    file: UploadFile = File(...),
    profile: str = Query("strict"),
    allow_field: Optional[str] = Query(None),
    allow_values: Optional[List[str]] = Query(None),
):
    raw = await _read_csv(file)
    chosen = _profile(profile, allow_field, allow_values)
    try:
        result = convert_bytes(raw, chosen)
    except ConversionError as exc:
        raise HTTPException(status_code=422, detail=f"{type(exc).__name__}: {exc}")

    return NormalizeResponse(
        encoding=EncodingReport(
            encoding=result.encoding.encoding,
            source=result.encoding.source,
            confidence=result.encoding.confidence,
            bad_ratio=result.bad_ratio,
        ),
        summary=ReportSummary(
            rows=result.rows,
            records=len(result.records),
            dropped=result.rows - len(result.records),
            profile=chosen.name,
        ),
        records=result.records,
    )
