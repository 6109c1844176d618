"""
Orchestrator for a generation run: validate, partition, generate, merge,
write the control file, profile and report.

Usage (example from CLI):
    from salegen.orchestrator import RunConfig, run_generation

    report = run_generation(RunConfig(records=100_000, workers=4))
    print(report["final_path"], report["bytes_written"])

When a report directory is configured the run report is also saved as JSON:
- `<report_dir>/latest.json` (last run)
- `<report_dir>/run-<timestamp>.json` (timestamped archive)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, TypedDict

from salegen.config import get_settings
from salegen.errors import InvalidArgument
from salegen.generation.abstract import RecordFactory
from salegen.generation.factory import SaleRecordFactory
from salegen.pipeline.control_file import write_control_file
from salegen.pipeline.coordinator import EXECUTORS, PoolCoordinator
from salegen.pipeline.merger import merge
from salegen.pipeline.partitioner import partition, resolve_worker_count
from salegen.utils.logging import get_logger
from salegen.utils.profiler import profile_block

log = get_logger(__name__)

DEFAULT_OUTPUT_PATTERN = "input_{timestamp}.csv"
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


class GenerationReport(TypedDict, total=False):
    """
    Metrics and artifacts of one successful run.

    `control_path` is None (and `control_error` set) when the CSV was
    published but the control file could not be written.
    """

    final_path: str
    control_path: Optional[str]
    control_error: Optional[str]
    rows: int
    total_amount: str
    total_quantity: int
    bytes_written: int
    workers: int
    executor: str
    partitions: List[int]
    seed: Optional[int]
    duration_seconds: float
    throughput_rows_per_sec: float
    peak_rss_bytes: Optional[int]
    cpu_percent: Optional[float]


@dataclass
class RunConfig:
    """
    Per-run overrides. Anything left as None falls back to `Settings`.
    """

    records: Optional[int] = None
    workers: Optional[int] = None
    output: Optional[Path] = None
    executor: Optional[str] = None
    seed: Optional[int] = None
    temp_dir: Optional[Path] = None
    batch_size: Optional[int] = None
    report_dir: Optional[Path] = None
    factory: Optional[RecordFactory] = None


def _round_float(value: float, decimals: int = 2) -> float:
    """Round a float to specified decimal places for human-readable output."""
    return round(value, decimals)


def _require_int(name: str, value: object, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidArgument(f"{name} must be >= {minimum}, got {value}")
    return value


def default_output_name(now: Optional[datetime] = None) -> str:
    """`input_<yyyy-MM-dd_HH-mm-ss>.csv` for the given (or current) local time."""
    moment = now or datetime.now()
    return DEFAULT_OUTPUT_PATTERN.format(timestamp=moment.strftime(TIMESTAMP_FORMAT))


def resolve_output_path(output: Optional[Path], output_dir: Path) -> Path:
    """Explicit file path, directory (timestamped name inside) or default."""
    if output is None:
        return Path(output_dir) / default_output_name()
    output = Path(output)
    if output.is_dir():
        return output / default_output_name()
    return output


def _persist_report(payload: GenerationReport, report_dir: Path) -> None:
    report_dir.mkdir(parents=True, exist_ok=True)
    latest_path = report_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = report_dir / f"run-{timestamp}.json"

    for path in (latest_path, archive_path):
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True)

    log.info("Report persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})


def run_generation(config: Optional[RunConfig] = None) -> GenerationReport:
    """
    Generate a CSV of synthetic sales plus its control file.

    Parameters
    ----------
    config : RunConfig | None
        Per-run overrides; defaults come from `get_settings()`.

    Returns
    -------
    GenerationReport
        Paths, exact totals, bytes written, worker count and profiler stats.

    Raises
    ------
    InvalidArgument
        Bad record count, worker count, executor or batch size. Raised before
        any file is created.
    GenerationAborted
        A worker or the merge hit an I/O error. Everything was rolled back.
    FatalFailure
        Unexpected error; temp files were cleaned up best-effort.
    """
    settings = get_settings()
    config = config or RunConfig()

    records = _require_int(
        "records", config.records if config.records is not None else settings.record_count, 0
    )
    requested = config.workers if config.workers is not None else settings.workers
    if requested is not None:
        requested = _require_int("workers", requested, 1)
    batch_size = _require_int(
        "batch_size",
        config.batch_size if config.batch_size is not None else settings.write_batch_size,
        1,
    )
    executor = config.executor or settings.executor
    if executor not in EXECUTORS:
        raise InvalidArgument(f"Unknown executor '{executor}'. Available: {', '.join(EXECUTORS)}")

    workers = resolve_worker_count(requested)
    partitions = partition(records, workers)

    final_path = resolve_output_path(config.output, settings.output_dir)
    final_path.parent.mkdir(parents=True, exist_ok=True)
    temp_dir = config.temp_dir or settings.temp_dir or final_path.parent

    seed = config.seed if config.seed is not None else settings.seed
    factory = config.factory or SaleRecordFactory(seed=seed)
    coordinator = PoolCoordinator(
        workers=workers, temp_dir=temp_dir, executor=executor, batch_size=batch_size
    )

    log.info(
        f"[RUN START] Using {workers} worker(s) to generate {records} CSV records",
        extra={"records": records, "workers": workers, "executor": executor, "final_path": str(final_path)},
    )
    control_path: Optional[Path] = None
    control_error: Optional[str] = None
    with profile_block("generate") as stats:
        results = coordinator.execute(partitions, factory)
        bytes_written = sum(result.bytes_written for result in results)
        aggregate = merge(results, final_path)
        try:
            control_path = write_control_file(final_path, aggregate)
        except OSError as exc:
            control_error = str(exc)
            log.error(
                f"[CONTROL FAILED] CSV kept at {final_path}, control file not written: {exc}",
                extra={"final_path": str(final_path), "error": control_error},
            )

    duration = stats.duration_seconds
    report = GenerationReport(
        final_path=str(final_path.resolve()),
        control_path=str(control_path.resolve()) if control_path else None,
        control_error=control_error,
        rows=aggregate.total_rows,
        total_amount=str(aggregate.total_amount),
        total_quantity=aggregate.total_quantity,
        bytes_written=bytes_written,
        workers=workers,
        executor=executor,
        partitions=[p.count for p in partitions],
        seed=getattr(factory, "seed", None),
        duration_seconds=_round_float(duration),
        throughput_rows_per_sec=_round_float(records / duration) if duration > 0 else 0.0,
        peak_rss_bytes=stats.peak_rss_bytes,
        cpu_percent=_round_float(stats.cpu_percent, 1) if stats.cpu_percent else None,
    )

    log.info(f"File has been created: {report['final_path']}", extra={"final_path": report["final_path"]})
    log.info(
        f"A total of {bytes_written} bytes were generated",
        extra={"bytes_written": bytes_written, "workers": workers},
    )
    log.info(
        f"[RUN COMPLETE] It took a total time of {int(duration * 1000)} ms",
        extra={"duration_seconds": report["duration_seconds"], "rows": aggregate.total_rows},
    )

    report_dir = config.report_dir or settings.report_dir
    if report_dir is not None:
        _persist_report(report, Path(report_dir))

    return report


__all__ = [
    "GenerationReport",
    "RunConfig",
    "default_output_name",
    "resolve_output_path",
    "run_generation",
]
