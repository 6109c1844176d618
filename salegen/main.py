from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import typer

from salegen import __version__
from salegen.config import get_settings
from salegen.errors import GenerationAborted, InvalidArgument
from salegen.orchestrator import RunConfig, run_generation
from salegen.reporter import print_report, print_verification
from salegen.utils.logging import configure_logging, get_logger
from salegen.verification import verify_output

app = typer.Typer(help="Synthetic sales CSV generator.")
log = get_logger("salegen")

EXIT_ABORTED = 1
EXIT_INVALID_ARGUMENT = 2
EXIT_INTERRUPTED = 130


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"salegen {__version__} | records={settings.record_count} "
        f"workers={settings.workers or 'auto'} executor={settings.executor} "
        f"batch={settings.write_batch_size} output_dir={settings.output_dir} "
        f"temp_dir={settings.temp_dir or '<output dir>'} seed={settings.seed}"
    )


@app.command()
def generate(
    records: Optional[int] = typer.Argument(
        None,
        min=0,
        help="Number of CSV records to generate (default from settings).",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Requested worker count; clamped to the host's CPUs minus one.",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output CSV path or directory (default: input_<timestamp>.csv).",
    ),
    executor: Optional[str] = typer.Option(
        None,
        "--executor",
        "-e",
        help="Worker pool flavor: threads or processes.",
    ),
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        help="Seed for reproducible records.",
    ),
    report_dir: Optional[Path] = typer.Option(
        None,
        "--report-dir",
        help="Also persist the run report as JSON in this directory.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit logs as JSON.",
    ),
) -> None:
    """
    Generate the CSV and its control file, then print a summary.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=json_logs or settings.json_logs)
    log.info(f"CSV generator {__version__}.")

    config = RunConfig(
        records=records,
        workers=workers,
        output=output,
        executor=executor,
        seed=seed,
        report_dir=report_dir,
    )
    try:
        report = run_generation(config)
    except InvalidArgument as exc:
        log.error(f"Error: {exc}. Closing...")
        typer.echo(f"Invalid argument: {exc}", err=True)
        raise typer.Exit(code=EXIT_INVALID_ARGUMENT) from exc
    except GenerationAborted as exc:
        log.error(f"Process aborted: {exc}")
        typer.echo(f"Aborted ({exc.reason}): {exc}", err=True)
        raise typer.Exit(code=EXIT_ABORTED) from exc

    print_report(dict(report))


@app.command()
def verify(
    path: Path = typer.Argument(..., help="Generated CSV file."),
    control: Optional[Path] = typer.Option(
        None,
        "--control",
        "-c",
        help="Control file (default: <path>.control).",
    ),
) -> None:
    """
    Recompute totals from a CSV and compare them with its control file.
    """
    result = verify_output(path, control)
    print_verification(result)
    if not result.ok:
        raise typer.Exit(code=1)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(EXIT_INTERRUPTED)


if __name__ == "__main__":
    main()
