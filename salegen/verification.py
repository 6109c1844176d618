"""
Downstream verification of a generated CSV against its control file.

Re-reads the CSV, recomputes the totals with exact decimal arithmetic and
compares them with the `rows|amount|quantity` line of the control file. Ids
must be dense and ascending from 1.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional

from salegen.domain.models import CSV_COLUMNS, RunAggregate
from salegen.pipeline.control_file import control_path_for

_MAX_PROBLEMS = 20


@dataclass
class VerificationResult:
    csv_path: Path
    control_path: Path
    recomputed: RunAggregate = field(default_factory=RunAggregate)
    declared: Optional[RunAggregate] = None
    problems: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems


def read_control_file(path: Path) -> RunAggregate:
    """Parse a control file into a RunAggregate."""
    line = Path(path).read_text(encoding="utf-8").strip()
    parts = line.split("|")
    if len(parts) != 3:
        raise ValueError(f"Malformed control line {line!r}")
    rows, amount, quantity = parts
    return RunAggregate(
        total_rows=int(rows), total_amount=Decimal(amount), total_quantity=int(quantity)
    )


def verify_output(csv_path: Path, control_path: Optional[Path] = None) -> VerificationResult:
    """
    Check a generated CSV and its control file for consistency.

    Problems are collected rather than raised; missing files are reported as
    problems too.
    """
    csv_path = Path(csv_path)
    control_path = Path(control_path) if control_path else control_path_for(csv_path)
    result = VerificationResult(csv_path=csv_path, control_path=control_path)

    def problem(message: str) -> None:
        if len(result.problems) < _MAX_PROBLEMS:
            result.problems.append(message)

    if not csv_path.is_file():
        problem(f"CSV file not found: {csv_path}")
        return result

    rows = 0
    amount = Decimal(0)
    quantity = 0
    try:
        with csv_path.open("r", encoding="utf-8", newline="") as f:
            reader = csv.reader(f)
            header = next(reader, None)
            if header != CSV_COLUMNS:
                problem(f"Unexpected header {header!r}")
            id_col = CSV_COLUMNS.index("id")
            amount_col = CSV_COLUMNS.index("amount")
            quantity_col = CSV_COLUMNS.index("quantity")
            for line_no, row in enumerate(reader, start=2):
                if len(row) != len(CSV_COLUMNS):
                    problem(f"Line {line_no}: expected {len(CSV_COLUMNS)} fields, got {len(row)}")
                    continue
                rows += 1
                try:
                    if int(row[id_col]) != rows:
                        problem(f"Line {line_no}: id {row[id_col]} breaks the 1..N sequence")
                    amount += Decimal(row[amount_col])
                    quantity += int(row[quantity_col])
                except (ValueError, InvalidOperation):
                    problem(f"Line {line_no}: unparseable value in {row!r}")
    except UnicodeDecodeError as exc:
        problem(f"CSV is not valid UTF-8 after {rows} data rows: {exc.reason}")
        result.recomputed = RunAggregate(total_rows=rows, total_amount=amount, total_quantity=quantity)
        return result

    result.recomputed = RunAggregate(total_rows=rows, total_amount=amount, total_quantity=quantity)

    if not control_path.is_file():
        problem(f"Control file not found: {control_path}")
        return result
    try:
        result.declared = read_control_file(control_path)
    except (ValueError, InvalidOperation) as exc:
        problem(f"Control file unreadable: {exc}")
        return result

    declared = result.declared
    if declared.total_rows != rows:
        problem(f"Row count mismatch: control={declared.total_rows} csv={rows}")
    if declared.total_amount != amount:
        problem(f"Amount mismatch: control={declared.total_amount} csv={amount}")
    if declared.total_quantity != quantity:
        problem(f"Quantity mismatch: control={declared.total_quantity} csv={quantity}")
    return result


__all__ = ["VerificationResult", "read_control_file", "verify_output"]
