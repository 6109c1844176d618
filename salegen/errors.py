"""
Error taxonomy for salegen runs.

Three outcomes are distinguished:

- InvalidArgument: rejected before any worker starts, nothing is written.
- GenerationAborted: a worker (or the merge) hit an I/O error; the run was
  rolled back and no final file exists.
- FatalFailure: anything else. Not retried; surfaced to the caller after a
  best-effort cleanup of temp files.
"""

from __future__ import annotations

from typing import Optional

IO_FAILURE = "io_failure"


class GeneratorError(Exception):
    """Base class for all salegen errors."""


class InvalidArgument(GeneratorError, ValueError):
    """Malformed or out-of-range record count, worker count or option."""


class GenerationAborted(GeneratorError):
    """
    The run was aborted and rolled back.

    Attributes
    ----------
    reason : str
        Machine-friendly abort reason (currently always ``io_failure``).
    worker_index : int | None
        Partition whose worker reported the failure, if it came from a worker.
    """

    def __init__(
        self,
        message: str,
        *,
        reason: str = IO_FAILURE,
        worker_index: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.worker_index = worker_index


class FatalFailure(GeneratorError):
    """Unexpected error (programming or invariant violation) that ended the run."""


__all__ = [
    "IO_FAILURE",
    "GeneratorError",
    "InvalidArgument",
    "GenerationAborted",
    "FatalFailure",
]
