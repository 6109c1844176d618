"""
End-to-end tests for salegen: partition, generate, merge, publish and verify.

These run real worker pools against a temporary directory. The largest run
is marked `slow`.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from salegen import main as cli
from salegen.domain.models import CSV_HEADER
from salegen.errors import GenerationAborted
from salegen.generation.factory import SaleRecordFactory
from salegen.orchestrator import RunConfig, run_generation
from salegen.pipeline.partitioner import partition
from salegen.verification import verify_output
from tests.fakes import DiskFullFactory, leftover_files, read_lines

LARGE_RUN_ROWS = 100_000
LARGE_RUN_WORKERS = 4
SMALL_RUN_ROWS = 1_000
SEED = 99

runner = CliRunner()


def _generate(path: Path, records: int, workers: int, **kwargs) -> dict:
    return run_generation(RunConfig(records=records, workers=workers, output=path, **kwargs))


def test_zero_records_yield_header_only_and_zero_control(tmp_path: Path, many_cpus: int):
    final = tmp_path / "empty.csv"

    report = _generate(final, 0, 4)

    assert read_lines(final) == [CSV_HEADER]
    assert (tmp_path / "empty.csv.control").read_text(encoding="utf-8") == "0|0|0\n"
    assert report["bytes_written"] == 0
    assert report["partitions"] == [0, 0, 0, 0]


@pytest.mark.slow
def test_large_run_is_dense_and_matches_control(tmp_path: Path, many_cpus: int):
    final = tmp_path / "large.csv"

    report = _generate(final, LARGE_RUN_ROWS, LARGE_RUN_WORKERS, seed=SEED)

    assert partition(LARGE_RUN_ROWS, LARGE_RUN_WORKERS)[-1].count == 25_000
    assert report["partitions"] == [25_000] * 4
    assert report["rows"] == LARGE_RUN_ROWS
    result = verify_output(final)
    assert result.ok, result.problems
    assert result.recomputed.total_rows == LARGE_RUN_ROWS
    assert leftover_files(tmp_path) == ["large.csv", "large.csv.control"]


def test_output_does_not_depend_on_worker_count(tmp_path: Path, many_cpus: int):
    single = tmp_path / "single.csv"
    triple = tmp_path / "triple.csv"

    _generate(single, SMALL_RUN_ROWS, 1, seed=SEED)
    _generate(triple, SMALL_RUN_ROWS, 3, seed=SEED)

    assert single.read_bytes() == triple.read_bytes()
    assert (tmp_path / "single.csv.control").read_bytes() == (
        tmp_path / "triple.csv.control"
    ).read_bytes()


def test_worker_failure_leaves_nothing_behind(tmp_path: Path, many_cpus: int):
    parts = partition(SMALL_RUN_ROWS, 4)
    failing = DiskFullFactory(SaleRecordFactory(seed=SEED), fail_at=parts[2].start_id + 10)

    with pytest.raises(GenerationAborted) as excinfo:
        _generate(tmp_path / "out.csv", SMALL_RUN_ROWS, 4, factory=failing)

    assert excinfo.value.worker_index == 2
    assert leftover_files(tmp_path) == []


def test_header_is_identical_across_runs(tmp_path: Path):
    _generate(tmp_path / "a.csv", 3, 1)
    _generate(tmp_path / "b.csv", 3, 1)

    assert read_lines(tmp_path / "a.csv")[0] == read_lines(tmp_path / "b.csv")[0] == CSV_HEADER


@pytest.fixture
def quiet_cli(monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep dictConfig handlers from binding to the runner's short-lived streams.
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)


def test_cli_generate_then_verify(tmp_path: Path, quiet_cli: None):
    final = tmp_path / "cli.csv"

    generated = runner.invoke(cli.app, ["generate", "50", "-w", "1", "-o", str(final), "--seed", "5"])
    assert generated.exit_code == 0, generated.output
    assert final.exists()

    verified = runner.invoke(cli.app, ["verify", str(final)])
    assert verified.exit_code == 0, verified.output
    assert "OK" in verified.output


def test_cli_verify_detects_tampered_control(tmp_path: Path, quiet_cli: None):
    final = tmp_path / "cli.csv"
    _generate(final, 20, 1)
    (tmp_path / "cli.csv.control").write_text("21|0|0\n", encoding="utf-8")

    result = runner.invoke(cli.app, ["verify", str(final)])

    assert result.exit_code == 1
    assert "mismatch" in result.output.lower()


@pytest.mark.parametrize("args", [["generate", "10", "-w", "0"], ["generate", "-5"]])
def test_cli_rejects_invalid_arguments(tmp_path: Path, quiet_cli: None, args: list[str]):
    result = runner.invoke(cli.app, [*args, "-o", str(tmp_path / "out.csv")])

    assert result.exit_code == cli.EXIT_INVALID_ARGUMENT
    assert leftover_files(tmp_path) == []


def test_cli_invalid_executor_exits_with_usage_code(tmp_path: Path, quiet_cli: None):
    result = runner.invoke(
        cli.app, ["generate", "10", "-e", "fibers", "-o", str(tmp_path / "out.csv")]
    )

    assert result.exit_code == cli.EXIT_INVALID_ARGUMENT
    assert leftover_files(tmp_path) == []


def test_cli_abort_exits_with_failure(
    tmp_path: Path, quiet_cli: None, monkeypatch: pytest.MonkeyPatch
):
    def aborted(config):
        raise GenerationAborted("Worker 1 failed to write: disk full", worker_index=1)

    monkeypatch.setattr(cli, "run_generation", aborted)

    result = runner.invoke(cli.app, ["generate", "10", "-o", str(tmp_path / "out.csv")])

    assert result.exit_code == cli.EXIT_ABORTED
