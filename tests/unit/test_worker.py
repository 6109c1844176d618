import errno
import threading
from decimal import Decimal
from pathlib import Path

import pytest

from salegen.domain.models import CSV_HEADER, Partition, WorkerStatus
from salegen.pipeline import worker
from salegen.pipeline.worker import run_partition
from tests.fakes import CrashingFactory, DiskFullFactory, leftover_files, read_lines

EXPECTED_ROWS = 25
START_ID = 101


def test_worker_writes_header_and_its_id_range(tmp_path: Path, factory):
    part = Partition(worker_index=2, start_id=START_ID, count=EXPECTED_ROWS)

    result = run_partition(part, factory, temp_dir=tmp_path, batch_size=7)

    assert result.status is WorkerStatus.COMPLETED
    assert result.temp_path is not None and result.temp_path.parent == tmp_path
    lines = read_lines(result.temp_path)
    assert lines[0] == CSV_HEADER
    assert [int(line.split(",")[0]) for line in lines[1:]] == list(
        range(START_ID, START_ID + EXPECTED_ROWS)
    )
    assert result.row_count == EXPECTED_ROWS


def test_worker_counters_match_file_contents(tmp_path: Path, factory):
    part = Partition(worker_index=0, start_id=1, count=EXPECTED_ROWS)

    result = run_partition(part, factory, temp_dir=tmp_path)

    data_lines = read_lines(result.temp_path)[1:]
    assert result.amount_sum == sum(Decimal(line.split(",")[2]) for line in data_lines)
    assert result.quantity_sum == sum(int(line.split(",")[3]) for line in data_lines)
    header_bytes = len((CSV_HEADER + "\n").encode("utf-8"))
    assert result.bytes_written == result.temp_path.stat().st_size - header_bytes


def test_empty_partition_produces_header_only(tmp_path: Path, factory):
    result = run_partition(Partition(worker_index=0, start_id=1, count=0), factory, temp_dir=tmp_path)

    assert result.ok
    assert read_lines(result.temp_path) == [CSV_HEADER]
    assert result.row_count == 0
    assert result.bytes_written == 0
    assert result.amount_sum == Decimal(0)


def test_write_failure_reports_failed_and_keeps_file_for_rollback(
    tmp_path: Path, factory, monkeypatch: pytest.MonkeyPatch
):
    calls = {"n": 0}
    real_write = worker._write_lines

    def flaky_write(handle, lines):
        calls["n"] += 1
        if calls["n"] == 2:
            raise OSError(errno.ENOSPC, "No space left on device")
        real_write(handle, lines)

    monkeypatch.setattr(worker, "_write_lines", flaky_write)

    result = run_partition(
        Partition(worker_index=1, start_id=1, count=EXPECTED_ROWS), factory, temp_dir=tmp_path
    )

    assert result.status is WorkerStatus.FAILED
    assert isinstance(result.error, OSError)
    assert result.error.errno == errno.ENOSPC
    assert result.temp_path is not None and result.temp_path.exists()


def test_io_error_from_record_source_is_a_failed_result(tmp_path: Path, factory):
    result = run_partition(
        Partition(worker_index=0, start_id=1, count=10),
        DiskFullFactory(factory, fail_at=5),
        temp_dir=tmp_path,
    )
    assert result.status is WorkerStatus.FAILED
    assert not result.ok


def test_worker_stops_when_cancelled(tmp_path: Path, factory):
    cancel = threading.Event()
    cancel.set()

    result = run_partition(
        Partition(worker_index=0, start_id=1, count=EXPECTED_ROWS),
        factory,
        temp_dir=tmp_path,
        cancel_event=cancel,
    )

    assert result.status is WorkerStatus.CANCELLED
    assert result.row_count == 0
    assert result.temp_path is not None
    assert read_lines(result.temp_path) == [CSV_HEADER]


def test_unexpected_error_removes_temp_file_and_propagates(tmp_path: Path, factory):
    with pytest.raises(RuntimeError, match="intentional failure"):
        run_partition(
            Partition(worker_index=0, start_id=1, count=10),
            CrashingFactory(factory, fail_at=3),
            temp_dir=tmp_path,
        )
    assert leftover_files(tmp_path) == []


def test_missing_temp_dir_is_reported_without_a_path(tmp_path: Path, factory):
    result = run_partition(
        Partition(worker_index=0, start_id=1, count=1), factory, temp_dir=tmp_path / "missing"
    )
    assert result.status is WorkerStatus.FAILED
    assert result.temp_path is None
    assert isinstance(result.error, OSError)
