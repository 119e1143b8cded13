from __future__ import annotations

import pytest

from conftest import GIB, make_instance
from src.monitor.schemas.common import UNAVAILABLE
from src.monitor.schemas.metrics import MetricSample
from src.monitor.services.metrics_service import derive


def test_derive_computes_percentages_from_raw_readings():
    inst = make_instance(allocated_storage=100, max_connections=200)
    sample = MetricSample(cpu_utilization=42.5, current_connections=50, free_storage_space=25 * GIB)

    m = derive(sample, inst)

    assert m.cpu_utilization == 42.5
    assert m.current_connections == 50
    assert m.connections_used_percent == pytest.approx(25.0)
    assert m.storage_used_percent == pytest.approx(75.0)
    assert m.free_storage_space == 25 * GIB


def test_missing_cpu_and_connections_default_to_zero_but_storage_is_unavailable():
    m = derive(MetricSample(), make_instance(allocated_storage=20))

    assert m.cpu_utilization == 0
    assert m.current_connections == 0
    assert m.connections_used_percent == 0
    assert m.storage_used_percent == UNAVAILABLE
    assert m.free_storage_space == 0


@pytest.mark.parametrize("allocated", [1, 20, 1000])
def test_zero_free_storage_is_unavailable(allocated: int):
    m = derive(MetricSample(free_storage_space=0), make_instance(allocated_storage=allocated))
    assert m.storage_used_percent == -1


def test_zero_allocated_storage_is_unavailable():
    m = derive(MetricSample(free_storage_space=5 * GIB), make_instance(allocated_storage=0))
    assert m.storage_used_percent == UNAVAILABLE


def test_free_storage_above_allocated_clamps_to_zero():
    m = derive(MetricSample(free_storage_space=150 * GIB), make_instance(allocated_storage=100))
    assert m.storage_used_percent == 0


def test_zero_max_connections_yields_zero_percent():
    m = derive(MetricSample(current_connections=500), make_instance(max_connections=0))
    assert m.connections_used_percent == 0


def test_connections_percent_clamps_to_hundred():
    m = derive(MetricSample(current_connections=900), make_instance(max_connections=66))
    assert m.connections_used_percent == 100
    assert m.current_connections == 900


def test_derive_is_pure():
    inst = make_instance(allocated_storage=50, max_connections=150)
    sample = MetricSample(cpu_utilization=80, current_connections=10, free_storage_space=GIB)

    assert derive(sample, inst) == derive(sample, inst)
