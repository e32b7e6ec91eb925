"""Unit tests for the synthetic sensor series generator."""

from __future__ import annotations

import logging
import math
import random
from datetime import datetime, timedelta, timezone

import pytest

from models.records import DeviceProfile, Location
from services.devices import DEFAULT_DEVICE_PROFILES
from services.generator import (
    BATTERY_EPOCH,
    GenerationSummary,
    SensorSeriesGenerator,
    battery_level,
)

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _flat_profile(device_id: str = "probe", drain: float = 0.5) -> DeviceProfile:
    """A profile whose ranges collapse to a single value."""

    return DeviceProfile(
        device_id=device_id,
        location=Location(lat=1.5, lon=-2.25),
        temperature_range=(20.0, 20.0),
        humidity_range=(50.0, 50.0),
        pressure_range=(1000.0, 1000.0),
        battery_drain_rate=drain,
    )


def test_one_day_hourly_without_loss_yields_120_readings() -> None:
    generator = SensorSeriesGenerator(seed=7)

    dataset = generator.generate_dataset(
        start_time=START, duration_days=1, interval_minutes=60, data_loss_probability=0
    )

    assert len(dataset) == 120
    end = START + timedelta(days=1)
    assert all(START <= reading.timestamp < end for reading in dataset)
    assert {reading.device_id for reading in dataset} == {
        profile.device_id for profile in DEFAULT_DEVICE_PROFILES
    }


def test_dataset_is_sorted_by_timestamp() -> None:
    dataset = SensorSeriesGenerator(seed=1).generate_dataset(
        start_time=START, duration_days=2, interval_minutes=30, data_loss_probability=0.2
    )

    timestamps = [reading.timestamp for reading in dataset]
    assert timestamps == sorted(timestamps)


def test_zero_loss_matches_expected_count() -> None:
    generator = SensorSeriesGenerator(seed=3)

    dataset, summary = generator.generate_with_summary(
        start_time=START, duration_days=1, interval_minutes=15, data_loss_probability=0
    )

    assert summary.expected == 5 * 96
    assert summary.generated == len(dataset) == summary.expected
    assert summary.lost == 0
    assert summary.loss_rate == 0.0


def test_full_loss_yields_empty_dataset() -> None:
    generator = SensorSeriesGenerator(seed=3)

    dataset, summary = generator.generate_with_summary(
        start_time=START, duration_days=1, interval_minutes=60, data_loss_probability=1
    )

    assert dataset == []
    assert summary.lost == summary.expected == 120
    assert summary.loss_rate == 100.0


def test_battery_bounds_and_monotonic_per_device() -> None:
    dataset = SensorSeriesGenerator(seed=11).generate_dataset(
        start_time=START, duration_days=60, interval_minutes=720, data_loss_probability=0.1
    )

    by_device: dict[str, list[int]] = {}
    for reading in dataset:
        assert 1 <= reading.battery <= 100
        by_device.setdefault(reading.device_id, []).append(reading.battery)

    for levels in by_device.values():
        assert all(a >= b for a, b in zip(levels, levels[1:]))


def test_battery_is_derived_from_absolute_elapsed_time() -> None:
    assert battery_level(BATTERY_EPOCH, 0.1) == 100
    assert battery_level(BATTERY_EPOCH + timedelta(hours=10), 0.1) == 99
    assert battery_level(BATTERY_EPOCH + timedelta(hours=15), 0.1) == 98
    assert battery_level(BATTERY_EPOCH + timedelta(days=3650), 0.1) == 1
    assert battery_level(BATTERY_EPOCH - timedelta(days=30), 0.1) == 100


def test_location_is_copied_from_profile() -> None:
    dataset = SensorSeriesGenerator(seed=5).generate_dataset(
        start_time=START, duration_days=1, interval_minutes=60, data_loss_probability=0
    )
    locations = {profile.device_id: profile.location for profile in DEFAULT_DEVICE_PROFILES}

    for reading in dataset:
        assert reading.location == locations[reading.device_id]


def test_seeded_generators_are_reproducible() -> None:
    kwargs = dict(start_time=START, duration_days=1, interval_minutes=30, data_loss_probability=0.1)

    first = SensorSeriesGenerator(seed=42).generate_dataset(**kwargs)
    second = SensorSeriesGenerator(seed=42).generate_dataset(**kwargs)
    third = SensorSeriesGenerator(rng=random.Random(42)).generate_dataset(**kwargs)

    assert first == second == third


def test_diurnal_modulation_without_anomalies() -> None:
    generator = SensorSeriesGenerator(
        profiles=[_flat_profile()], seed=0, anomaly_probability=0
    )

    dataset = generator.generate_dataset(
        start_time=START, duration_days=1, interval_minutes=60, data_loss_probability=0
    )

    assert len(dataset) == 24
    for reading in dataset:
        wave = math.sin(reading.timestamp.hour * math.pi / 12)
        factor = wave * 0.3 + 1
        assert reading.temperature == round(20.0 * factor, 1)
        assert reading.humidity == round(50.0 / factor, 1)
        assert reading.pressure == round(1000.0 + wave * 2, 2)

    six_am = next(reading for reading in dataset if reading.timestamp.hour == 6)
    assert six_am.temperature == 26.0
    assert six_am.pressure == 1002.0


def test_anomalies_scale_values_by_expected_factor() -> None:
    generator = SensorSeriesGenerator(
        profiles=[_flat_profile()], seed=9, anomaly_probability=1
    )

    dataset = generator.generate_dataset(
        start_time=START, duration_days=1, interval_minutes=60, data_loss_probability=0
    )

    for reading in dataset:
        factor = math.sin(reading.timestamp.hour * math.pi / 12) * 0.3 + 1
        normal = 20.0 * factor
        ratio = reading.temperature / normal
        assert (1.28 <= ratio <= 1.52) or (1 / 1.52 <= ratio <= 1 / 1.28)


def test_readings_are_rounded() -> None:
    dataset = SensorSeriesGenerator(seed=2).generate_dataset(
        start_time=START, duration_days=1, interval_minutes=60, data_loss_probability=0
    )

    for reading in dataset:
        assert reading.temperature == round(reading.temperature, 1)
        assert reading.humidity == round(reading.humidity, 1)
        assert reading.pressure == round(reading.pressure, 2)
        assert isinstance(reading.battery, int)


def test_naive_start_is_treated_as_utc() -> None:
    dataset = SensorSeriesGenerator(seed=2).generate_dataset(
        start_time=datetime(2024, 3, 1, 12, 0, 0, 123456),
        duration_days=1,
        interval_minutes=360,
        data_loss_probability=0,
    )

    assert dataset[0].timestamp == datetime(2024, 3, 1, 12, 0, 0, 123000, tzinfo=timezone.utc)


def test_summary_is_logged(caplog) -> None:
    generator = SensorSeriesGenerator(seed=4)

    with caplog.at_level(logging.INFO, logger="services.generator"):
        generator.generate_dataset(
            start_time=START, duration_days=1, interval_minutes=60, data_loss_probability=0
        )

    records = [record for record in caplog.records if record.name == "services.generator"]
    assert records
    record = records[-1]
    assert record.getMessage() == "Data generation summary"
    assert record.expected == 120
    assert record.generated == 120
    assert record.lost == 0
    assert record.loss_rate == "0.00%"


def test_loss_rate_rounds_to_two_decimals() -> None:
    assert GenerationSummary(expected=3, generated=2, lost=1).loss_rate == 33.33
    assert GenerationSummary(expected=0, generated=0, lost=0).loss_rate == 0.0


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"duration_days": 0}, "duration_days"),
        ({"duration_days": -3}, "duration_days"),
        ({"interval_minutes": 0}, "interval_minutes"),
        ({"data_loss_probability": -0.1}, "data_loss_probability"),
        ({"data_loss_probability": 1.5}, "data_loss_probability"),
    ],
)
def test_invalid_arguments_raise(kwargs, message) -> None:
    generator = SensorSeriesGenerator(seed=1)

    with pytest.raises(ValueError, match=message):
        generator.generate_dataset(start_time=START, **kwargs)


def test_invalid_profiles_are_rejected() -> None:
    inverted = DeviceProfile(
        device_id="bad",
        location=Location(lat=0.0, lon=0.0),
        temperature_range=(30.0, 10.0),
        humidity_range=(40.0, 50.0),
        pressure_range=(1000.0, 1010.0),
        battery_drain_rate=0.1,
    )

    with pytest.raises(ValueError, match="inverted temperature_range"):
        SensorSeriesGenerator(profiles=[inverted])
    with pytest.raises(ValueError, match="At least one device profile"):
        SensorSeriesGenerator(profiles=[])
    with pytest.raises(ValueError, match="Duplicate device_id"):
        SensorSeriesGenerator(profiles=[_flat_profile("x"), _flat_profile("x")])
    with pytest.raises(ValueError, match="negative battery_drain_rate"):
        SensorSeriesGenerator(profiles=[_flat_profile(drain=-1.0)])
    with pytest.raises(ValueError, match="anomaly_probability"):
        SensorSeriesGenerator(anomaly_probability=2.0)
