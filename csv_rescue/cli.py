from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from .config import PROFILE_NAMES, get_profile
from .convert import convert_files, find_csv_files
from .decode import Decoder
from .errors import ConversionError
from .log import configure_logging
from .sinks import SINKS, get_sink

app = typer.Typer(add_completion=False, no_args_is_help=True, help="csv-rescue CLI")


def _load_profile(name: str, allow_field: Optional[str] = None, allow_values: Optional[List[str]] = None):
    try:
        return get_profile(name, allow_field=allow_field, allow_values=allow_values)
    except ValueError as e:
        typer.secho(f"[config] ERROR: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=2)


@app.command("convert")
def cli_convert(
    input_dir: Path = typer.Argument(Path("./data"), envvar="CSV_RESCUE_INPUT_DIR"),
    output_dir: Path = typer.Argument(Path("./output"), envvar="CSV_RESCUE_OUTPUT_DIR"),
    fmt: str = typer.Option("xlsx", "--format", "-f", envvar="CSV_RESCUE_FORMAT", help=f"One of: {', '.join(SINKS)}"),
    profile: str = typer.Option("strict", "--profile", "-p", envvar="CSV_RESCUE_PROFILE", help=f"One of: {', '.join(PROFILE_NAMES)}"),
    allow_field: Optional[str] = typer.Option(None, "--allow-field", help="Keep only records whose FIELD value is allowed"),
    allow: Optional[List[str]] = typer.Option(None, "--allow", help="Allowed value for --allow-field (repeatable)"),
    workers: Optional[int] = typer.Option(None, "--workers", min=1, envvar="CSV_RESCUE_WORKERS"),
    log_level: str = typer.Option("INFO", "--log-level", envvar="CSV_RESCUE_LOG_LEVEL"),
):
    """Convert every *.csv in INPUT_DIR to OUTPUT_DIR as JSON or XLSX."""
    configure_logging(level=log_level)
    chosen = _load_profile(profile, allow_field, allow)
    try:
        sink = get_sink(fmt)
    except ValueError as e:
        typer.secho(f"[config] ERROR: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=2)

    if not input_dir.is_dir():
        typer.secho(f"[convert] ERROR: not a directory: {input_dir}", fg=typer.colors.RED)
        raise typer.Exit(code=2)

    sources = find_csv_files(input_dir)
    if not sources:
        typer.echo("(no CSV files found)")
        return

    typer.echo(f"Found {len(sources)} CSV files")
    report = convert_files(sources, output_dir, sink, chosen, max_workers=workers)

    typer.echo(f"Total:     {report.total}")
    typer.echo(f"Succeeded: {report.succeeded}")
    typer.echo(f"Failed:    {report.failed}")
    typer.echo(f"Rate:      {report.completion_rate * 100:.2f}%")
    if report.failed:
        typer.echo("Failed files:")
        for outcome in report.outcomes:
            if not outcome.ok:
                typer.echo(f"- {Path(outcome.source).name}: {outcome.error}")
        raise typer.Exit(code=1)
    typer.echo(f"Output: {output_dir}")


@app.command("detect")
def cli_detect(
    paths: List[Path] = typer.Argument(..., exists=True, dir_okay=False),
    profile: str = typer.Option("strict", "--profile", "-p", envvar="CSV_RESCUE_PROFILE"),
    log_level: str = typer.Option("WARNING", "--log-level", envvar="CSV_RESCUE_LOG_LEVEL"),
):
    """Report the encoding each file would be decoded with."""
    configure_logging(level=log_level)
    decoder = Decoder(_load_profile(profile).decode)
    failed = False
    for path in paths:
        try:
            decoded = decoder.decode(path.read_bytes())
        except ConversionError as e:
            typer.secho(f"{path.name}  ERROR: {e}", fg=typer.colors.RED)
            failed = True
            continue
        confidence = decoded.candidate.confidence
        conf = f"{confidence:.2f}" if confidence is not None else "-"
        typer.echo(
            f"{path.name}  {decoded.encoding:8}  via={decoded.candidate.source:10}  "
            f"confidence={conf}  bad={decoded.bad_ratio:.3f}"
        )
    if failed:
        raise typer.Exit(code=1)


def main():
    app()


if __name__ == "__main__":
    main()
