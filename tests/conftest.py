from __future__ import annotations

import pytest
from prometheus_client import CollectorRegistry

from kubernoisy.metrics import MetricSet

from .stubs import FakeClock


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> MetricSet:
    return MetricSet(registry)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
