"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, NamedTuple, Tuple

Range = Tuple[float, float]

PARTITION_FILENAME = "sensor_data.jsonl"


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ISO-8601 UTC with millisecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    candidate = value.strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValueError(f"Invalid timestamp format: {value!r}") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


class Partition(NamedTuple):
    """A UTC calendar date as zero-padded Hive partition values."""

    year: str
    month: str
    day: str

    @property
    def date(self) -> str:
        return f"{self.year}-{self.month}-{self.day}"

    @property
    def relative_dir(self) -> str:
        return f"year={self.year}/month={self.month}/day={self.day}"

    @classmethod
    def from_date_string(cls, value: str) -> "Partition":
        return cls(year=value[0:4], month=value[5:7], day=value[8:10])


@dataclass(frozen=True, slots=True)
class Location:
    lat: float
    lon: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}


@dataclass(frozen=True, slots=True)
class DeviceProfile:
    """Static configuration for one simulated sensor."""

    device_id: str
    location: Location
    temperature_range: Range
    humidity_range: Range
    pressure_range: Range
    battery_drain_rate: float

    def validate(self) -> None:
        if not self.device_id:
            raise ValueError("Device profile is missing a device_id.")
        for name, (low, high) in (
            ("temperature_range", self.temperature_range),
            ("humidity_range", self.humidity_range),
            ("pressure_range", self.pressure_range),
        ):
            if low > high:
                raise ValueError(
                    f"Device {self.device_id!r} has an inverted {name}: [{low}, {high}]"
                )
        if self.battery_drain_rate < 0:
            raise ValueError(
                f"Device {self.device_id!r} has a negative battery_drain_rate."
            )


@dataclass(frozen=True, slots=True)
class Reading:
    """A single observation emitted by a simulated device."""

    device_id: str
    timestamp: datetime
    temperature: float
    humidity: float
    pressure: float
    location: Location
    battery: int

    def to_record(self) -> Dict[str, Any]:
        """Field order matches the catalog table columns."""
        return {
            "device_id": self.device_id,
            "timestamp": format_timestamp(self.timestamp),
            "temperature": self.temperature,
            "humidity": self.humidity,
            "pressure": self.pressure,
            "location": self.location.to_dict(),
            "battery": self.battery,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Reading":
        try:
            location = record["location"]
            return cls(
                device_id=str(record["device_id"]),
                timestamp=parse_timestamp(str(record["timestamp"])),
                temperature=float(record["temperature"]),
                humidity=float(record["humidity"]),
                pressure=float(record["pressure"]),
                location=Location(lat=float(location["lat"]), lon=float(location["lon"])),
                battery=int(record["battery"]),
            )
        except KeyError as exc:
            raise ValueError(f"Record is missing field {exc.args[0]!r}") from exc
        except (TypeError, AttributeError) as exc:
            raise ValueError(f"Record has malformed fields: {exc}") from exc
