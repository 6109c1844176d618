"""
Domain package for salegen.

Exports the record schema and the partition/result/aggregate types shared by
the pipeline, the orchestrator and verification.
"""

from salegen.domain.models import (
    CSV_COLUMNS,
    CSV_HEADER,
    LINE_TERMINATOR,
    Partition,
    RunAggregate,
    SaleRecord,
    WorkerResult,
    WorkerStatus,
)

__all__ = [
    "CSV_COLUMNS",
    "CSV_HEADER",
    "LINE_TERMINATOR",
    "Partition",
    "RunAggregate",
    "SaleRecord",
    "WorkerResult",
    "WorkerStatus",
]
