"""
Record factory interface for salegen.

Workers only depend on this protocol, so any object with a matching
`generate` method can feed the pipeline (tests use this to inject delays and
failures). Implementations must be pure functions of the sequence position
from the pipeline's point of view: no shared mutable state between calls,
safe to call from several threads at once, and picklable when the process
executor is used.
"""

from __future__ import annotations

import abc
from typing import Protocol, runtime_checkable

from salegen.domain.models import SaleRecord


@runtime_checkable
class RecordFactory(Protocol):
    """
    Common interface all record factories must implement.
    """

    def generate(self, position: int) -> SaleRecord:
        """
        Build the record for one sequence position.

        Parameters
        ----------
        position : int
            1-based sequence position; becomes the record id.

        Returns
        -------
        SaleRecord
            A fully-formed, validated record.
        """
        ...


class AbstractRecordFactory(abc.ABC):
    """
    Optional ABC helper for class-based implementations.
    """

    @abc.abstractmethod
    def generate(self, position: int) -> SaleRecord:  # pragma: no cover - interface only
        """Build the record for one sequence position."""
        raise NotImplementedError


__all__ = ["RecordFactory", "AbstractRecordFactory"]
