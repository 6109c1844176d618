"""
salegen - parallel synthetic sales CSV generator.

Generates a configurable number of synthetic sale records as one CSV file:

- The record count is split into contiguous partitions, one per worker
- Workers write their partition to private temp files on a bounded pool
- Results are merged in partition order into the final file (atomic rename)
- A control file records exact row, amount and quantity totals
- Any worker I/O failure rolls the whole run back
"""

from __future__ import annotations

__version__ = "1.0.0"
__license__ = "MIT"

# Public API exports
from salegen.config import Settings, get_settings
from salegen.domain.models import Partition, RunAggregate, SaleRecord, WorkerResult
from salegen.errors import FatalFailure, GenerationAborted, GeneratorError, InvalidArgument
from salegen.generation import RecordFactory, SaleRecordFactory
from salegen.orchestrator import GenerationReport, RunConfig, run_generation
from salegen.utils.logging import configure_logging, get_logger
from salegen.utils.profiler import ProfileStats, profile_block

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "Partition",
    "RunAggregate",
    "SaleRecord",
    "WorkerResult",
    # Errors
    "FatalFailure",
    "GenerationAborted",
    "GeneratorError",
    "InvalidArgument",
    # Generation
    "RecordFactory",
    "SaleRecordFactory",
    # Orchestration
    "GenerationReport",
    "RunConfig",
    "run_generation",
    # Logging
    "configure_logging",
    "get_logger",
    # Profiling
    "ProfileStats",
    "profile_block",
]
