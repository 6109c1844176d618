"""
Split a run's record count into one contiguous range per worker.
"""

from __future__ import annotations

import os
from typing import List, Optional

from salegen.domain.models import Partition
from salegen.errors import InvalidArgument


def available_parallelism() -> int:
    """CPUs usable by this process (at least 1)."""
    return os.cpu_count() or 1


def resolve_worker_count(requested: Optional[int] = None, available: Optional[int] = None) -> int:
    """
    Clamp a requested worker count to the host.

    One CPU is left for the coordinating thread: the result is
    ``max(1, min(requested, available - 1))``. Without a request the host
    default (``available - 1``, at least 1) is used.
    """
    cpus = available if available is not None else available_parallelism()
    ceiling = cpus - 1
    if requested is None:
        return max(1, ceiling)
    return max(1, min(requested, ceiling))


def partition(total: int, workers: int) -> List[Partition]:
    """
    Split `total` records into `workers` contiguous partitions.

    All partitions but the last get ``total // workers`` records; the last
    absorbs the remainder. Sequence positions start at 1.

    Raises
    ------
    InvalidArgument
        If `total` is negative or `workers` is below 1. Callers validate user
        input before getting here, so this signals a bug upstream.
    """
    if total < 0:
        raise InvalidArgument(f"total must be >= 0, got {total}")
    if workers < 1:
        raise InvalidArgument(f"workers must be >= 1, got {workers}")

    base = total // workers
    partitions: List[Partition] = []
    start = 1
    for index in range(workers):
        count = total - base * (workers - 1) if index == workers - 1 else base
        partitions.append(Partition(worker_index=index, start_id=start, count=count))
        start += count
    return partitions


__all__ = ["available_parallelism", "resolve_worker_count", "partition"]
