"""
Merge worker temp files into the final CSV.

The merged file is written to a hidden sibling of the final path and renamed
into place once complete, so readers never observe a partial CSV at the
final path. Each worker file is deleted as soon as its rows are copied.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import List, Sequence

from salegen.domain.models import CSV_HEADER, LINE_TERMINATOR, RunAggregate, WorkerResult
from salegen.errors import FatalFailure, GenerationAborted
from salegen.infrastructure.files import create_staging_file, discard, discard_all, publish, remove_file
from salegen.utils.logging import get_logger

log = get_logger(__name__)

COPY_BUFFER_BYTES = 1024 * 1024
_HEADER_BYTES = (CSV_HEADER + LINE_TERMINATOR).encode("utf-8")


def _check_order(results: Sequence[WorkerResult]) -> None:
    expected_start = 1
    for index, result in enumerate(results):
        partition = result.partition
        if not result.ok or result.temp_path is None:
            raise FatalFailure(f"Partition {partition.worker_index} did not complete; cannot merge")
        if partition.worker_index != index or partition.start_id != expected_start:
            raise FatalFailure(
                f"Results out of order at position {index}: got partition "
                f"{partition.worker_index} starting at {partition.start_id}"
            )
        expected_start += partition.count


def merge(
    results: Sequence[WorkerResult],
    final_path: Path,
    buffer_bytes: int = COPY_BUFFER_BYTES,
) -> RunAggregate:
    """
    Concatenate worker outputs, in partition order, into `final_path`.

    Parameters
    ----------
    results : Sequence[WorkerResult]
        Completed results ordered by partition index. Ownership of their temp
        files passes to this function.
    final_path : Path
        Destination CSV. Replaced atomically if it already exists.
    buffer_bytes : int
        Copy buffer size.

    Returns
    -------
    RunAggregate
        Totals folded from every result, in partition order.

    Raises
    ------
    GenerationAborted
        An I/O error occurred; the staging file and all remaining worker
        files are removed and nothing is published.
    FatalFailure
        Results were incomplete, out of order, or a temp file did not start
        with the expected header.
    """
    final_path = Path(final_path)
    remaining: List[WorkerResult] = list(results)
    try:
        _check_order(remaining)
    except FatalFailure:
        discard_all(r.temp_path for r in remaining)
        raise

    aggregate = RunAggregate()
    staging: Path | None = None
    try:
        fd, staging = create_staging_file(final_path)
        with os.fdopen(fd, "wb") as out:
            out.write(_HEADER_BYTES)
            while remaining:
                result = remaining[0]
                assert result.temp_path is not None
                with result.temp_path.open("rb") as src:
                    header = src.readline()
                    if header != _HEADER_BYTES:
                        raise FatalFailure(
                            f"Unexpected header in {result.temp_path.name}: {header[:80]!r}"
                        )
                    shutil.copyfileobj(src, out, buffer_bytes)
                remove_file(result.temp_path)
                remaining.pop(0)
                aggregate = aggregate.fold(result)
                log.debug(
                    f"[MERGE] partition {result.partition.worker_index} appended",
                    extra={"worker": result.partition.worker_index, "rows": result.row_count},
                )
        publish(staging, final_path)
    except OSError as exc:
        discard(staging)
        discard_all(r.temp_path for r in remaining)
        log.error(
            f"[MERGE FAILED] {exc}; rolled back",
            extra={"final_path": str(final_path), "error": str(exc)},
        )
        raise GenerationAborted(f"Merge into {final_path} failed: {exc}") from exc
    except BaseException:
        discard(staging)
        discard_all(r.temp_path for r in remaining)
        raise

    log.info(
        f"[MERGE COMPLETE] {final_path}",
        extra={"final_path": str(final_path), "rows": aggregate.total_rows},
    )
    return aggregate


__all__ = ["COPY_BUFFER_BYTES", "merge"]
