from decimal import Decimal
from pathlib import Path

import pytest

from salegen.domain.models import RunAggregate
from salegen.pipeline.control_file import control_path_for, write_control_file
from salegen.verification import read_control_file


def test_control_path_appends_suffix_to_full_name():
    assert control_path_for(Path("/data/input_x.csv")) == Path("/data/input_x.csv.control")


def test_control_file_holds_one_pipe_separated_line(tmp_path: Path):
    final = tmp_path / "out.csv"
    aggregate = RunAggregate(total_rows=3, total_amount=Decimal("12345.67"), total_quantity=42)

    path = write_control_file(final, aggregate)

    assert path == tmp_path / "out.csv.control"
    assert path.read_text(encoding="utf-8") == "3|12345.67|42\n"
    assert read_control_file(path) == aggregate


def test_zero_run_control_line(tmp_path: Path):
    path = write_control_file(tmp_path / "out.csv", RunAggregate())
    assert path.read_text(encoding="utf-8") == "0|0|0\n"


def test_control_file_failure_raises_oserror(tmp_path: Path):
    with pytest.raises(OSError):
        write_control_file(tmp_path / "missing" / "out.csv", RunAggregate())
