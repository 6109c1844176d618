"""
Worker: generate one partition into a private temp file.

A worker never raises for I/O problems. Write failures come back as a
`WorkerResult` with status FAILED so the coordinator can decide on rollback;
the partially written temp file is left in place for it to delete. Any other
exception is a bug: the worker removes its own temp file and lets it
propagate.
"""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path
from typing import List, Optional, Protocol, TextIO

from salegen.domain.models import (
    CSV_HEADER,
    LINE_TERMINATOR,
    Partition,
    WorkerResult,
    WorkerStatus,
)
from salegen.generation.abstract import RecordFactory
from salegen.infrastructure.files import create_worker_temp, discard
from salegen.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_WRITE_BATCH_SIZE = 10_000


class CancellationSignal(Protocol):
    def is_set(self) -> bool: ...

    def set(self) -> None: ...


def _write_lines(handle: TextIO, lines: List[str]) -> None:
    handle.writelines(lines)


def run_partition(
    partition: Partition,
    factory: RecordFactory,
    temp_dir: Optional[Path] = None,
    cancel_event: Optional[CancellationSignal] = None,
    batch_size: int = DEFAULT_WRITE_BATCH_SIZE,
    run_token: Optional[str] = None,
) -> WorkerResult:
    """
    Write `partition` to a fresh temp file and return its counters.

    Parameters
    ----------
    partition : Partition
        Range of sequence positions to generate.
    factory : RecordFactory
        Source of records; called once per position in ascending order.
    temp_dir : Path | None
        Directory for the temp file (system temp dir when None).
    cancel_event : CancellationSignal | None
        Checked before every record; once set the worker stops and reports
        CANCELLED.
    batch_size : int
        Number of lines buffered between writes.
    run_token : str | None
        Embedded in the temp file name so the coordinator can locate the
        file even if this worker dies without returning.

    Returns
    -------
    WorkerResult
        COMPLETED with counters, FAILED with the I/O error, or CANCELLED.
    """
    try:
        fd, temp_path = create_worker_temp(partition.worker_index, temp_dir, run_token)
    except OSError as exc:
        log.error(
            f"[WORKER FAILED] partition {partition.worker_index}: cannot create temp file: {exc}",
            extra={"worker": partition.worker_index, "error": str(exc)},
        )
        return WorkerResult(partition=partition, status=WorkerStatus.FAILED, error=exc)

    bytes_written = 0
    row_count = 0
    amount_sum = Decimal(0)
    quantity_sum = 0
    status = WorkerStatus.COMPLETED

    log.debug(
        f"[WORKER START] partition {partition.worker_index} -> {temp_path.name}",
        extra={
            "worker": partition.worker_index,
            "start_id": partition.start_id,
            "count": partition.count,
        },
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            _write_lines(handle, [CSV_HEADER + LINE_TERMINATOR])
            buffer: List[str] = []
            for offset in range(partition.count):
                if cancel_event is not None and cancel_event.is_set():
                    status = WorkerStatus.CANCELLED
                    break
                record = factory.generate(partition.start_id + offset)
                line = record.to_csv_line() + LINE_TERMINATOR
                buffer.append(line)
                bytes_written += len(line.encode("utf-8"))
                row_count += 1
                amount_sum += record.amount
                quantity_sum += record.quantity
                if len(buffer) >= batch_size:
                    _write_lines(handle, buffer)
                    buffer.clear()
            if buffer and status is WorkerStatus.COMPLETED:
                _write_lines(handle, buffer)
    except OSError as exc:
        log.error(
            f"[WORKER FAILED] partition {partition.worker_index}: {exc}",
            extra={"worker": partition.worker_index, "error": str(exc), "path": str(temp_path)},
        )
        return WorkerResult(
            partition=partition,
            status=WorkerStatus.FAILED,
            temp_path=temp_path,
            error=exc,
        )
    except BaseException:
        discard(temp_path)
        raise

    if status is WorkerStatus.CANCELLED:
        log.info(
            f"[WORKER CANCELLED] partition {partition.worker_index} after {row_count} rows",
            extra={"worker": partition.worker_index, "rows": row_count},
        )
        return WorkerResult(partition=partition, status=status, temp_path=temp_path)

    log.debug(
        f"[WORKER DONE] partition {partition.worker_index}",
        extra={"worker": partition.worker_index, "rows": row_count, "bytes": bytes_written},
    )
    return WorkerResult(
        partition=partition,
        status=status,
        temp_path=temp_path,
        bytes_written=bytes_written,
        row_count=row_count,
        amount_sum=amount_sum,
        quantity_sum=quantity_sum,
    )


__all__ = ["CancellationSignal", "DEFAULT_WRITE_BATCH_SIZE", "run_partition"]
