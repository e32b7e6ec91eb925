"""Aggregation logic for sensor readings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, Optional

from models.records import Reading


@dataclass
class MetricStats:
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    total: float = 0.0
    count: int = 0

    def add(self, value: float) -> None:
        self.count += 1
        self.total += value
        if self.minimum is None or value < self.minimum:
            self.minimum = value
        if self.maximum is None or value > self.maximum:
            self.maximum = value

    @property
    def mean(self) -> Optional[float]:
        if not self.count:
            return None
        return self.total / self.count


@dataclass
class DeviceStats:
    count: int = 0
    temperature: MetricStats = field(default_factory=MetricStats)
    humidity: MetricStats = field(default_factory=MetricStats)
    pressure: MetricStats = field(default_factory=MetricStats)
    battery_min: Optional[int] = None


@dataclass
class AggregationSummary:
    """Computed statistics for a batch of sensor readings."""

    row_count: int = 0
    first_timestamp: Optional[datetime] = None
    last_timestamp: Optional[datetime] = None
    per_device: Dict[str, DeviceStats] = field(default_factory=dict)

    @property
    def per_device_count(self) -> Dict[str, int]:
        return {device_id: stats.count for device_id, stats in self.per_device.items()}


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(self, readings: Iterable[Reading]) -> AggregationSummary:
        summary = AggregationSummary()

        for reading in readings:
            summary.row_count += 1
            if summary.first_timestamp is None or reading.timestamp < summary.first_timestamp:
                summary.first_timestamp = reading.timestamp
            if summary.last_timestamp is None or reading.timestamp > summary.last_timestamp:
                summary.last_timestamp = reading.timestamp

            stats = summary.per_device.setdefault(reading.device_id, DeviceStats())
            stats.count += 1
            stats.temperature.add(reading.temperature)
            stats.humidity.add(reading.humidity)
            stats.pressure.add(reading.pressure)
            if stats.battery_min is None or reading.battery < stats.battery_min:
                stats.battery_min = reading.battery

        return summary
