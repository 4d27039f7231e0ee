"""
decode -> parse -> normalize -> write, per file, with per-file failure isolation.

``convert_bytes`` is the in-memory core; ``convert_file`` is the failure
boundary (errors become a failed ``FileOutcome``); ``convert_files`` fans
files out over a thread pool and aggregates a ``BatchReport``.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Optional

from .decode import Decoder
from .detect import Detector
from .errors import ConversionError, EmptyContentError, NoQualifyingRecordsError
from .log import get_logger
from .models import BatchReport, ConversionResult, FileOutcome, ProcessingProfile
from .normalize import RecordNormalizer
from .parse import parse_records
from .sinks import RecordSink

log = get_logger(__name__)


def convert_bytes(
    raw: bytes,
    profile: ProcessingProfile | None = None,
    *,
    detector: Detector | None = None,
) -> ConversionResult:
    profile = profile or ProcessingProfile()

    decoded = Decoder(profile.decode, detector=detector).decode(raw)
    if not decoded.text.strip():
        raise EmptyContentError("decoded content is empty")

    raw_records = parse_records(decoded.text, profile.parse)
    normalizer = RecordNormalizer(profile.normalize)
    records = normalizer.normalize_all(raw_records)

    # Header-only input is a success with zero records unless a filter was asked for.
    if normalizer.filtering and not records:
        raise NoQualifyingRecordsError(f"no records passed the filter ({len(raw_records)} parsed)")

    return ConversionResult(
        encoding=decoded.candidate,
        bad_ratio=decoded.bad_ratio,
        rows=len(raw_records),
        records=records,
    )


def output_path_for(source: Path, output_dir: Path, sink: RecordSink) -> Path:
    return output_dir / f"{source.stem}{sink.suffix}"


def convert_file(
    source: Path,
    output_dir: Path,
    sink: RecordSink,
    profile: ProcessingProfile | None = None,
    *,
    detector: Detector | None = None,
) -> FileOutcome:
    source = Path(source)
    try:
        result = convert_bytes(source.read_bytes(), profile, detector=detector)
        output_dir.mkdir(parents=True, exist_ok=True)
        target = output_path_for(source, output_dir, sink)
        sink.write(result.records, target)
    except (ConversionError, OSError) as exc:
        log.error("failed to convert %s: %s", source.name, exc)
        return FileOutcome(source=str(source), ok=False, error=f"{type(exc).__name__}: {exc}")
    except Exception as exc:
        log.exception("unexpected error converting %s", source.name)
        return FileOutcome(source=str(source), ok=False, error=f"{type(exc).__name__}: {exc}")

    log.info(
        "converted %s -> %s (%s, %d rows, %d records)",
        source.name,
        target.name,
        result.encoding.encoding,
        result.rows,
        len(result.records),
    )
    return FileOutcome(
        source=str(source),
        output=str(target),
        ok=True,
        encoding=result.encoding.encoding,
        rows=result.rows,
        records=len(result.records),
    )


def find_csv_files(input_dir: Path) -> List[Path]:
    return sorted(p for p in Path(input_dir).iterdir() if p.is_file() and p.suffix.lower() == ".csv")


def convert_files(
    sources: Iterable[Path],
    output_dir: Path,
    sink: RecordSink,
    profile: ProcessingProfile | None = None,
    *,
    max_workers: Optional[int] = None,
    detector: Detector | None = None,
) -> BatchReport:
    """Convert every source; one failing file never stops the others."""
    sources = [Path(s) for s in sources]
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    report = BatchReport(total=len(sources))
    if not sources:
        return report

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        outcomes = list(
            pool.map(lambda s: convert_file(s, output_dir, sink, profile, detector=detector), sources)
        )

    for outcome in outcomes:
        report.outcomes.append(outcome)
        if outcome.ok:
            report.succeeded += 1
        else:
            report.failed += 1
            report.failed_files.append(Path(outcome.source).name)

    log.info(
        "batch done: %d total, %d succeeded, %d failed",
        report.total,
        report.succeeded,
        report.failed,
    )
    return report
