"""
Record generation package for salegen.

Re-exports the factory protocol and the default implementation so callers
can import from `salegen.generation` directly.
"""

from salegen.generation.abstract import AbstractRecordFactory, RecordFactory
from salegen.generation.factory import SaleRecordFactory, round_amount

__all__ = [
    "AbstractRecordFactory",
    "RecordFactory",
    "SaleRecordFactory",
    "round_amount",
]
