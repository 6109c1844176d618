"""
Pool coordinator: fan partitions out to workers and fan the results back in.

Results are collected in completion order but always returned in partition
order. The first failed worker (or the first unexpected exception) stops the
run: the shared cancellation event is set, the pool is shut down without
starting queued partitions, in-flight workers are awaited, and every temp
file any worker left behind is deleted.
"""

from __future__ import annotations

import contextlib
import multiprocessing as mp
import threading
import uuid
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Generator, List, Optional, Sequence, Tuple

from salegen.config import ExecutorName
from salegen.domain.models import Partition, WorkerResult
from salegen.errors import FatalFailure, GenerationAborted, InvalidArgument
from salegen.generation.abstract import RecordFactory
from salegen.infrastructure.files import discard, discard_all, find_worker_temps
from salegen.pipeline.worker import DEFAULT_WRITE_BATCH_SIZE, CancellationSignal, run_partition
from salegen.utils.logging import configure_logging, current_logging_options, get_logger

log = get_logger(__name__)

EXECUTORS: Tuple[str, ...] = ("threads", "processes")


class PoolCoordinator:
    """
    Run one worker per partition on a bounded pool.

    Parameters
    ----------
    workers : int
        Pool size. Already clamped by the caller.
    temp_dir : Path | None
        Directory for worker temp files.
    executor : str
        "threads" (default) or "processes". The process pool uses a local
        spawn context so the global start method is never touched.
    batch_size : int
        Lines buffered per worker write.
    """

    def __init__(
        self,
        workers: int,
        temp_dir: Optional[Path] = None,
        executor: ExecutorName = "threads",
        batch_size: int = DEFAULT_WRITE_BATCH_SIZE,
    ) -> None:
        if workers < 1:
            raise InvalidArgument(f"workers must be >= 1, got {workers}")
        if executor not in EXECUTORS:
            raise InvalidArgument(
                f"Unknown executor '{executor}'. Available: {', '.join(EXECUTORS)}"
            )
        self.workers = workers
        self.temp_dir = temp_dir
        self.executor = executor
        self.batch_size = batch_size

    @contextlib.contextmanager
    def _cancellation(self) -> Generator[CancellationSignal, None, None]:
        if self.executor == "processes":
            with mp.get_context("spawn").Manager() as manager:
                yield manager.Event()
        else:
            yield threading.Event()

    def _make_executor(self) -> Executor:
        if self.executor == "processes":
            logging_options = current_logging_options()
            return ProcessPoolExecutor(
                max_workers=self.workers,
                mp_context=mp.get_context("spawn"),
                initializer=configure_logging if logging_options else None,
                initargs=logging_options or (),
            )
        return ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="salegen-worker")

    def execute(
        self, partitions: Sequence[Partition], factory: RecordFactory
    ) -> List[WorkerResult]:
        """
        Generate every partition and return the results in partition order.

        Raises
        ------
        GenerationAborted
            A worker reported an I/O failure; all temp files were removed.
        FatalFailure
            A worker raised an unexpected exception; temp files were removed
            best-effort and the original exception is chained.
        """
        ordered = sorted(partitions, key=lambda p: p.worker_index)
        if not ordered:
            return []

        log.info(
            f"[FAN-OUT] {len(ordered)} partition(s) on {self.workers} {self.executor}",
            extra={"partitions": len(ordered), "workers": self.workers, "executor": self.executor},
        )
        run_token = uuid.uuid4().hex[:12]
        with self._cancellation() as cancel_event:
            pool = self._make_executor()
            futures: List[Future[WorkerResult]] = [
                pool.submit(
                    run_partition,
                    p,
                    factory,
                    self.temp_dir,
                    cancel_event,
                    self.batch_size,
                    run_token,
                )
                for p in ordered
            ]
            try:
                failure, fatal = self._fan_in(futures)
            except BaseException:
                self._rollback(pool, ordered, futures, cancel_event, run_token)
                raise

            if failure is None and fatal is None:
                pool.shutdown(wait=True)
                return [future.result() for future in futures]

            self._rollback(pool, ordered, futures, cancel_event, run_token)

        if fatal is not None:
            raise FatalFailure(f"Worker raised an unexpected error: {fatal!r}") from fatal

        assert failure is not None
        raise GenerationAborted(
            f"Worker {failure.partition.worker_index} failed to write: {failure.error}",
            worker_index=failure.partition.worker_index,
        ) from failure.error

    def _fan_in(
        self, futures: List[Future[WorkerResult]]
    ) -> Tuple[Optional[WorkerResult], Optional[BaseException]]:
        """Wait for completions until all succeed or the first one does not."""
        for future in as_completed(futures):
            try:
                result = future.result()
            except Exception as exc:  # noqa: BLE001 - escalated as FatalFailure by the caller
                log.exception("[WORKER CRASHED] unexpected error in worker")
                return None, exc
            if not result.ok:
                return result, None
            log.debug(
                f"[FAN-IN] partition {result.partition.worker_index} committed",
                extra={"worker": result.partition.worker_index, "rows": result.row_count},
            )
        return None, None

    def _rollback(
        self,
        pool: Executor,
        partitions: Sequence[Partition],
        futures: List[Future[WorkerResult]],
        cancel_event: CancellationSignal,
        run_token: str,
    ) -> None:
        """
        Cancel outstanding work, wait for the pool to settle, delete temp files.

        A future that raised carries no temp path, and its worker may have
        died before cleaning up (e.g. a killed process-pool child), so its
        files are looked up by run token instead.
        """
        cancel_event.set()
        pool.shutdown(wait=True, cancel_futures=True)

        leftovers = 0
        for part, future in zip(partitions, futures):
            if future.cancelled():
                continue
            if future.exception() is not None:
                stray = find_worker_temps(self.temp_dir, run_token, part.worker_index)
                leftovers += discard_all(stray)
                continue
            if not discard(future.result().temp_path):
                leftovers += 1

        log.error(
            "[ROLLBACK] Run aborted; worker temp files deleted",
            extra={"partitions": len(futures), "undeleted": leftovers},
        )


__all__ = ["EXECUTORS", "PoolCoordinator"]
