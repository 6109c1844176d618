"""
Synthetic sale record factory.

Every position gets its own `random.Random`, seeded from the factory seed and
the position, so the same factory always yields the same record for the same
position regardless of which worker asks or in which order.
"""

from __future__ import annotations

import random
import uuid
from decimal import ROUND_CEILING, Decimal
from typing import Optional

from salegen.domain.models import INT32_MAX, SaleRecord
from salegen.generation.abstract import AbstractRecordFactory

POINT_OF_SALE_RANGE = (1, 24)
AMOUNT_RANGE = (100.0, 100001.0)
QUANTITY_RANGE = (1, 999)
TEMPERATURE_RANGE = (-50, 49)
CUSTOMER_ID_RANGE = (1, INT32_MAX)

CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("100000.99")

_SEED_BITS = 64
_SEED_MASK = (1 << _SEED_BITS) - 1


def round_amount(value: float) -> Decimal:
    """
    Convert a float amount to a two-decimal Decimal, rounding toward +inf.

    The float goes through its shortest repr first so 123.4 stays 123.40
    instead of picking up binary noise. Results are capped below the
    exclusive upper bound.
    """
    amount = Decimal(repr(value)).quantize(CENT, rounding=ROUND_CEILING)
    return min(amount, MAX_AMOUNT)


class SaleRecordFactory(AbstractRecordFactory):
    """
    Default `RecordFactory`: uniformly random sales, reproducible per seed.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        if seed is None:
            seed = random.SystemRandom().getrandbits(_SEED_BITS)
        self.seed = seed & _SEED_MASK

    def _rng_for(self, position: int) -> random.Random:
        return random.Random((self.seed << _SEED_BITS) | (position & _SEED_MASK))

    def generate(self, position: int) -> SaleRecord:
        rng = self._rng_for(position)
        return SaleRecord(
            id=position,
            point_of_sale=rng.randint(*POINT_OF_SALE_RANGE),
            amount=round_amount(rng.uniform(*AMOUNT_RANGE)),
            quantity=rng.randint(*QUANTITY_RANGE),
            temperature=rng.randint(*TEMPERATURE_RANGE),
            customer_id=rng.randint(*CUSTOMER_ID_RANGE),
            product_id=uuid.UUID(int=rng.getrandbits(128), version=4),
        )

    def __repr__(self) -> str:
        return f"SaleRecordFactory(seed={self.seed})"


__all__ = ["SaleRecordFactory", "round_amount"]
