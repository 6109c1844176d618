"""
Domain models for salegen.

`SaleRecord` is the unit of output. `Partition`, `WorkerResult` and
`RunAggregate` describe how a run is split across workers and folded back
together. All of them are immutable; aggregation returns new instances.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

INT32_MAX = 2**31 - 1

CSV_COLUMNS: List[str] = [
    "id",
    "pointOfSale",
    "amount",
    "quantity",
    "temperature",
    "customerId",
    "productId",
]
CSV_DELIMITER = ","
LINE_TERMINATOR = "\n"
CSV_HEADER = CSV_DELIMITER.join(CSV_COLUMNS)


class SaleRecord(BaseModel):
    """
    A single synthetic sale, serialized as one CSV line.
    """

    id: int = Field(..., ge=1, description="1-based sequence position, dense across the run.")
    point_of_sale: int = Field(..., ge=1, le=24, description="Point of sale identifier.")
    amount: Decimal = Field(
        ...,
        ge=Decimal("100.00"),
        lt=Decimal("100001.00"),
        decimal_places=2,
        description="Sale amount, two fractional digits.",
    )
    quantity: int = Field(..., ge=1, le=999, description="Units sold.")
    temperature: int = Field(..., ge=-50, le=49, description="Ambient temperature.")
    customer_id: int = Field(..., ge=1, le=INT32_MAX, description="Customer identifier.")
    product_id: UUID = Field(..., description="Opaque product identifier.")

    model_config = {"frozen": True}

    def to_csv_line(self) -> str:
        """Render the record in `CSV_COLUMNS` order, without a line terminator."""
        return CSV_DELIMITER.join(
            (
                str(self.id),
                str(self.point_of_sale),
                format(self.amount, ".2f"),
                str(self.quantity),
                str(self.temperature),
                str(self.customer_id),
                str(self.product_id),
            )
        )


@dataclass(frozen=True)
class Partition:
    """Contiguous range of sequence positions assigned to one worker."""

    worker_index: int
    start_id: int
    count: int

    @property
    def end_id(self) -> int:
        """Last sequence position covered (start_id - 1 for an empty partition)."""
        return self.start_id + self.count - 1


class WorkerStatus(str, enum.Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class WorkerResult:
    """
    Outcome of one worker invocation.

    The temp file named by `temp_path` belongs to whoever holds the result:
    the coordinator deletes it on abort, the merger consumes then deletes it
    on success. `temp_path` is None only if the file could not be created.
    """

    partition: Partition
    status: WorkerStatus
    temp_path: Optional[Path] = None
    bytes_written: int = 0
    row_count: int = 0
    amount_sum: Decimal = field(default_factory=Decimal)
    quantity_sum: int = 0
    error: Optional[OSError] = None

    @property
    def ok(self) -> bool:
        return self.status is WorkerStatus.COMPLETED


@dataclass(frozen=True)
class RunAggregate:
    """Exact totals over every emitted row of a run."""

    total_rows: int = 0
    total_amount: Decimal = field(default_factory=Decimal)
    total_quantity: int = 0

    def fold(self, result: WorkerResult) -> "RunAggregate":
        return RunAggregate(
            total_rows=self.total_rows + result.row_count,
            total_amount=self.total_amount + result.amount_sum,
            total_quantity=self.total_quantity + result.quantity_sum,
        )

    def to_control_line(self) -> str:
        """`rows|amount|quantity`, amount printed at full precision."""
        return f"{self.total_rows}|{self.total_amount}|{self.total_quantity}"


__all__ = [
    "INT32_MAX",
    "CSV_COLUMNS",
    "CSV_DELIMITER",
    "CSV_HEADER",
    "LINE_TERMINATOR",
    "SaleRecord",
    "Partition",
    "WorkerStatus",
    "WorkerResult",
    "RunAggregate",
]
