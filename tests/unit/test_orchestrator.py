from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

from salegen import orchestrator
from salegen.errors import InvalidArgument
from salegen.orchestrator import RunConfig, default_output_name, resolve_output_path, run_generation
from tests.fakes import leftover_files, read_lines

EXPECTED_ROWS = 200
EXPECTED_WORKERS = 4
SEED = 1234


@pytest.mark.parametrize(
    "overrides",
    [
        {"records": -1},
        {"records": True},
        {"records": "10"},
        {"workers": 0},
        {"executor": "fibers"},
        {"batch_size": 0},
    ],
)
def test_invalid_arguments_create_no_files(tmp_path: Path, overrides: dict[str, Any]):
    config = RunConfig(output=tmp_path / "nested" / "out.csv", **{"records": 10, **overrides})

    with pytest.raises(InvalidArgument):
        run_generation(config)

    assert leftover_files(tmp_path) == []


def test_default_output_name_uses_timestamp():
    assert default_output_name(datetime(2024, 1, 2, 3, 4, 5)) == "input_2024-01-02_03-04-05.csv"


def test_resolve_output_path_variants(tmp_path: Path):
    explicit = tmp_path / "explicit.csv"
    assert resolve_output_path(explicit, Path("/elsewhere")) == explicit

    inside_dir = resolve_output_path(tmp_path, Path("/elsewhere"))
    assert inside_dir.parent == tmp_path
    assert inside_dir.name.startswith("input_") and inside_dir.suffix == ".csv"

    from_settings = resolve_output_path(None, tmp_path)
    assert from_settings.parent == tmp_path


def test_run_generation_report(tmp_path: Path, many_cpus: int):
    final = tmp_path / "out.csv"

    report = run_generation(
        RunConfig(records=EXPECTED_ROWS, workers=EXPECTED_WORKERS, output=final, seed=SEED)
    )

    assert report["final_path"] == str(final.resolve())
    assert report["control_path"] == str((tmp_path / "out.csv.control").resolve())
    assert report["control_error"] is None
    assert report["rows"] == EXPECTED_ROWS
    assert report["workers"] == EXPECTED_WORKERS
    assert report["partitions"] == [50, 50, 50, 50]
    assert report["seed"] == SEED
    assert report["executor"] == "threads"
    data_lines = read_lines(final)[1:]
    assert report["bytes_written"] == sum(len(line) + 1 for line in data_lines)
    assert leftover_files(tmp_path) == ["out.csv", "out.csv.control"]


def test_output_dir_comes_from_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SALEGEN_OUTPUT_DIR", str(tmp_path / "outputs"))

    report = run_generation(RunConfig(records=5, workers=1))

    final = Path(report["final_path"])
    assert final.parent == (tmp_path / "outputs").resolve()
    assert final.name.startswith("input_")


def test_control_file_failure_keeps_published_csv(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    def failing_control(final_path, aggregate):
        raise OSError(13, "Permission denied")

    monkeypatch.setattr(orchestrator, "write_control_file", failing_control)
    final = tmp_path / "out.csv"

    report = run_generation(RunConfig(records=10, workers=1, output=final))

    assert final.exists()
    assert report["control_path"] is None
    assert "Permission denied" in report["control_error"]
    assert leftover_files(tmp_path) == ["out.csv"]


def test_report_is_persisted_when_report_dir_given(tmp_path: Path):
    report_dir = tmp_path / "reports"

    report = run_generation(
        RunConfig(records=10, workers=1, output=tmp_path / "out.csv", report_dir=report_dir)
    )

    latest = json.loads((report_dir / "latest.json").read_text(encoding="utf-8"))
    assert latest["rows"] == report["rows"]
    assert latest["total_amount"] == report["total_amount"]
    archives = [p.name for p in report_dir.glob("run-*.json")]
    assert len(archives) == 1
