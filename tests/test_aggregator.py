"""Unit tests for the aggregation logic."""

from __future__ import annotations

from datetime import datetime, timezone

from models.records import Location, Reading
from services.aggregator import Aggregator


def _reading(device_id: str, hour: int, temperature: float, battery: int = 90) -> Reading:
    """Helper to build deterministic sensor readings."""

    return Reading(
        device_id=device_id,
        timestamp=datetime(2024, 1, 1, hour, tzinfo=timezone.utc),
        temperature=temperature,
        humidity=50.0,
        pressure=1010.0,
        location=Location(lat=0.0, lon=0.0),
        battery=battery,
    )


def test_aggregate_empty_iterable_returns_default_summary() -> None:
    aggregator = Aggregator()

    summary = aggregator.aggregate([])

    assert summary.row_count == 0
    assert summary.first_timestamp is None
    assert summary.last_timestamp is None
    assert summary.per_device == {}


def test_aggregate_computes_statistics() -> None:
    aggregator = Aggregator()
    readings = [
        _reading("sensor-a", 3, 10.0, battery=95),
        _reading("sensor-b", 1, 30.0),
        _reading("sensor-a", 5, 20.0, battery=94),
    ]

    summary = aggregator.aggregate(readings)

    assert summary.row_count == 3
    assert summary.first_timestamp == datetime(2024, 1, 1, 1, tzinfo=timezone.utc)
    assert summary.last_timestamp == datetime(2024, 1, 1, 5, tzinfo=timezone.utc)
    assert summary.per_device_count == {"sensor-a": 2, "sensor-b": 1}

    stats = summary.per_device["sensor-a"]
    assert stats.temperature.minimum == 10.0
    assert stats.temperature.maximum == 20.0
    assert stats.temperature.mean == 15.0
    assert stats.humidity.mean == 50.0
    assert stats.battery_min == 94
