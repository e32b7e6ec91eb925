"""Synthetic multi-device sensor time-series generation."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from models.records import DeviceProfile, Reading
from services.devices import DEFAULT_DEVICE_PROFILES

logger = logging.getLogger(__name__)

BATTERY_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)
DEFAULT_START_TIME = BATTERY_EPOCH
DEFAULT_DURATION_DAYS = 607
DEFAULT_INTERVAL_MINUTES = 5
DEFAULT_DATA_LOSS_PROBABILITY = 0.03
DEFAULT_ANOMALY_PROBABILITY = 0.02

ANOMALY_FACTOR_RANGE = (1.3, 1.5)
INITIAL_BATTERY = 100


@dataclass(frozen=True)
class GenerationSummary:
    """Counts reported after a generation run."""

    expected: int
    generated: int
    lost: int

    @property
    def loss_rate(self) -> float:
        """Percentage of expected readings that were dropped."""
        if not self.expected:
            return 0.0
        return round(self.lost / self.expected * 100, 2)


def diurnal_wave(hour: int) -> float:
    return math.sin(hour * math.pi / 12)


def battery_level(timestamp: datetime, drain_rate: float) -> int:
    """Battery percentage derived from absolute time since ``BATTERY_EPOCH``."""
    hours_elapsed = (timestamp - BATTERY_EPOCH).total_seconds() / 3600
    level = math.floor(INITIAL_BATTERY - hours_elapsed * drain_rate)
    return max(1, min(INITIAL_BATTERY, level))


def _normalize_start(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    # Timestamps are serialized at millisecond precision.
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def _validate_probability(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be within [0, 1], got {value}.")


def _validate_profiles(profiles: Sequence[DeviceProfile]) -> None:
    if not profiles:
        raise ValueError("At least one device profile is required.")
    seen: set[str] = set()
    for profile in profiles:
        profile.validate()
        if profile.device_id in seen:
            raise ValueError(f"Duplicate device_id {profile.device_id!r} in profiles.")
        seen.add(profile.device_id)


class SensorSeriesGenerator:
    """Builds a randomized reading series for a fixed table of devices.

    The device table and random source are injected so callers can swap in
    synthetic fleets and reproduce runs with a seed.
    """

    def __init__(
        self,
        profiles: Iterable[DeviceProfile] = DEFAULT_DEVICE_PROFILES,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        anomaly_probability: float = DEFAULT_ANOMALY_PROBABILITY,
    ) -> None:
        self.profiles: Tuple[DeviceProfile, ...] = tuple(profiles)
        _validate_profiles(self.profiles)
        _validate_probability("anomaly_probability", anomaly_probability)
        self.anomaly_probability = anomaly_probability
        self.rng = rng if rng is not None else random.Random(seed)

    def generate_dataset(
        self,
        start_time: datetime = DEFAULT_START_TIME,
        duration_days: int = DEFAULT_DURATION_DAYS,
        interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
        data_loss_probability: float = DEFAULT_DATA_LOSS_PROBABILITY,
    ) -> List[Reading]:
        dataset, _summary = self.generate_with_summary(
            start_time=start_time,
            duration_days=duration_days,
            interval_minutes=interval_minutes,
            data_loss_probability=data_loss_probability,
        )
        return dataset

    def generate_with_summary(
        self,
        start_time: datetime = DEFAULT_START_TIME,
        duration_days: int = DEFAULT_DURATION_DAYS,
        interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
        data_loss_probability: float = DEFAULT_DATA_LOSS_PROBABILITY,
    ) -> Tuple[List[Reading], GenerationSummary]:
        if duration_days <= 0:
            raise ValueError(f"duration_days must be positive, got {duration_days}.")
        if interval_minutes <= 0:
            raise ValueError(f"interval_minutes must be positive, got {interval_minutes}.")
        _validate_probability("data_loss_probability", data_loss_probability)

        start = _normalize_start(start_time)
        end = start + timedelta(days=duration_days)
        step = timedelta(minutes=interval_minutes)

        readings: List[Reading] = []
        expected = 0
        lost = 0

        current = start
        while current < end:
            for profile in self.profiles:
                expected += 1
                if self.rng.random() < data_loss_probability:
                    lost += 1
                    continue
                readings.append(self._build_reading(profile, current))
            current += step

        readings.sort(key=lambda reading: reading.timestamp)

        summary = GenerationSummary(expected=expected, generated=len(readings), lost=lost)
        logger.info(
            "Data generation summary",
            extra={
                "expected": summary.expected,
                "generated": summary.generated,
                "lost": summary.lost,
                "loss_rate": f"{summary.loss_rate:.2f}%",
            },
        )
        return readings, summary

    def _build_reading(self, profile: DeviceProfile, timestamp: datetime) -> Reading:
        wave = diurnal_wave(timestamp.hour)
        time_of_day_factor = wave * 0.3 + 1

        base_temperature = self.rng.uniform(*profile.temperature_range)
        base_humidity = self.rng.uniform(*profile.humidity_range)
        base_pressure = self.rng.uniform(*profile.pressure_range)

        temperature = self._inject_anomaly(base_temperature * time_of_day_factor)
        humidity = self._inject_anomaly(base_humidity / time_of_day_factor)
        pressure = self._inject_anomaly(base_pressure + wave * 2)

        return Reading(
            device_id=profile.device_id,
            timestamp=timestamp,
            temperature=round(temperature, 1),
            humidity=round(humidity, 1),
            pressure=round(pressure, 2),
            location=profile.location,
            battery=battery_level(timestamp, profile.battery_drain_rate),
        )

    def _inject_anomaly(self, value: float) -> float:
        if self.rng.random() >= self.anomaly_probability:
            return value
        factor = self.rng.uniform(*ANOMALY_FACTOR_RANGE)
        return value * factor if self.rng.random() > 0.5 else value / factor
