"""
Control file: one summary line written next to the final CSV.
"""

from __future__ import annotations

from pathlib import Path

from salegen.domain.models import LINE_TERMINATOR, RunAggregate
from salegen.infrastructure.files import write_text_atomic

CONTROL_SUFFIX = ".control"


def control_path_for(final_path: Path) -> Path:
    """`<final_path>.control`, e.g. input_x.csv -> input_x.csv.control."""
    final_path = Path(final_path)
    return final_path.with_name(final_path.name + CONTROL_SUFFIX)


def write_control_file(final_path: Path, aggregate: RunAggregate) -> Path:
    """
    Write `rows|amount|quantity` for `aggregate` and return the control path.

    Raises OSError on failure; the caller decides how to report it, the
    already published CSV is left untouched.
    """
    path = control_path_for(final_path)
    write_text_atomic(path, aggregate.to_control_line() + LINE_TERMINATOR)
    return path


__all__ = ["CONTROL_SUFFIX", "control_path_for", "write_control_file"]
