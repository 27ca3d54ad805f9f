"""CLI entry point for sleep-pattern-server."""

from datetime import date
from pathlib import Path

import typer
import uvicorn

from sleep_pattern_server import __version__
from sleep_pattern_server.core.config import settings
from sleep_pattern_server.core.exceptions import ValidationError
from sleep_pattern_server.core.logging import configure_logging
from sleep_pattern_server.services.sleep_analysis import AnalysisRun, SleepAnalysisService
from sleep_pattern_server.transformers.ml_export import MLExportTransformer

app = typer.Typer(
    name="sleep-pattern-server",
    help="Behavioral sleep-pattern analysis from phone-usage telemetry",
    no_args_is_help=True,
)


def _parse_reference_date(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise typer.BadParameter(f"'{value}' is not a YYYY-MM-DD date") from e


def _run_file(
    path: Path,
    time_zone: str | None,
    wake_target: str | None,
    reference_date: str | None,
) -> tuple[SleepAnalysisService, AnalysisRun]:
    """Analyze an input file, exiting with status 1 on validation errors."""
    configure_logging(settings.log_level)
    service = SleepAnalysisService.from_settings()
    try:
        run = service.run(
            path.read_text(encoding="utf-8"),
            time_zone or settings.default_time_zone,
            wake_target=wake_target,
            reference_date=_parse_reference_date(reference_date),
        )
    except ValidationError as e:
        for message in e.errors:
            typer.echo(message, err=True)
        raise typer.Exit(code=1) from e
    return service, run


@app.command()
def serve(
    host: str = typer.Option(None, help="Host to bind to (overrides config)"),
    port: int = typer.Option(None, help="Port to bind to (overrides config)"),
    reload: bool = typer.Option(False, help="Enable auto-reload for development"),
) -> None:
    """Start the API server.

    Example:
        sleep-pattern-server serve
        sleep-pattern-server serve --host 127.0.0.1 --port 8080 --reload
    """
    uvicorn.run(
        "sleep_pattern_server.app:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"sleep-pattern-server v{__version__}")


@app.command()
def analyze(
    input_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Structured text or JSON input"
    ),
    time_zone: str = typer.Option(None, help="IANA time zone (defaults to config)"),
    wake_target: str = typer.Option(None, help="Desired wake time HH:MM (14+ days)"),
    reference_date: str = typer.Option(None, help="Date 'Day 1' maps to (YYYY-MM-DD)"),
) -> None:
    """Analyze an input file and print the report as JSON.

    Example:
        sleep-pattern-server analyze week.txt --time-zone Europe/London
    """
    _, run = _run_file(input_file, time_zone, wake_target, reference_date)
    typer.echo(run.report.model_dump_json(by_alias=True, indent=2))


@app.command()
def export(
    input_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Structured text or JSON input"
    ),
    output: Path = typer.Option(None, help="Where to write the export (defaults to a dated name)"),
    time_zone: str = typer.Option(None, help="IANA time zone (defaults to config)"),
    wake_target: str = typer.Option(None, help="Desired wake time HH:MM (14+ days)"),
    reference_date: str = typer.Option(None, help="Date 'Day 1' maps to (YYYY-MM-DD)"),
) -> None:
    """Analyze an input file and write the ML export document.

    Example:
        sleep-pattern-server export week.json --output features.json
    """
    service, run = _run_file(input_file, time_zone, wake_target, reference_date)
    document = service.export(run)
    target = output or Path(MLExportTransformer.filename(document))
    target.write_text(document.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
    typer.echo(f"Wrote {target}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
