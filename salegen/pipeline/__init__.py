"""
Generation pipeline for salegen.

Partitioner -> workers (pool coordinator) -> merger -> control file. The
orchestrator wires these together; they are usable on their own as well.
"""

from salegen.pipeline.control_file import CONTROL_SUFFIX, control_path_for, write_control_file
from salegen.pipeline.coordinator import EXECUTORS, PoolCoordinator
from salegen.pipeline.merger import merge
from salegen.pipeline.partitioner import available_parallelism, partition, resolve_worker_count
from salegen.pipeline.worker import run_partition

__all__ = [
    "CONTROL_SUFFIX",
    "EXECUTORS",
    "PoolCoordinator",
    "available_parallelism",
    "control_path_for",
    "merge",
    "partition",
    "resolve_worker_count",
    "run_partition",
    "write_control_file",
]
