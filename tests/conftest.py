"""
Pytest configuration for salegen.

Provides fixtures for:
- Settings cache isolation between tests
- A host with enough CPUs that requested worker counts are not clamped
- A seeded record factory
"""

from __future__ import annotations

from typing import Generator

import pytest

from salegen.config import get_settings
from salegen.generation.factory import SaleRecordFactory
from salegen.pipeline import partitioner

TEST_SEED = 20240101
FAKE_CPU_COUNT = 16


@pytest.fixture(autouse=True)
def _fresh_settings() -> Generator[None, None, None]:
    """
    Clear the cached Settings so env overrides from one test never leak.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def many_cpus(monkeypatch: pytest.MonkeyPatch) -> int:
    """
    Pretend the host has plenty of CPUs so K workers really means K.
    """
    monkeypatch.setattr(partitioner, "available_parallelism", lambda: FAKE_CPU_COUNT)
    return FAKE_CPU_COUNT


@pytest.fixture
def factory() -> SaleRecordFactory:
    return SaleRecordFactory(seed=TEST_SEED)

