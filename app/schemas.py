"""Pydantic schemas for the HTTP API layer and the catalog."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class LocationModel(BaseModel):
    lat: float
    lon: float


class ReadingModel(BaseModel):
    """One JSONL record as served by the query API."""

    device_id: str
    timestamp: str = Field(..., description="ISO-8601 UTC timestamp, millisecond precision.")
    temperature: float
    humidity: float
    pressure: float
    location: LocationModel
    battery: int = Field(..., ge=1, le=100)


class PartitionRecord(BaseModel):
    """A partition registered in the catalog after it was published."""

    year: str = Field(..., pattern=r"^\d{4}$")
    month: str = Field(..., pattern=r"^\d{2}$")
    day: str = Field(..., pattern=r"^\d{2}$")
    record_count: int = Field(..., ge=0)
    location: str
    registered_at: datetime

    @property
    def date(self) -> str:
        return f"{self.year}-{self.month}-{self.day}"


class PartitionReadings(BaseModel):
    year: str
    month: str
    day: str
    device_id: Optional[str] = None
    count: int = Field(..., ge=0)
    readings: List[ReadingModel] = Field(default_factory=list)


class DeviceStatsModel(BaseModel):
    """Per-device aggregates for a batch of readings."""

    count: int = Field(..., ge=0)
    temperature_min: Optional[float] = None
    temperature_max: Optional[float] = None
    temperature_mean: Optional[float] = None
    humidity_min: Optional[float] = None
    humidity_max: Optional[float] = None
    humidity_mean: Optional[float] = None
    pressure_min: Optional[float] = None
    pressure_max: Optional[float] = None
    pressure_mean: Optional[float] = None
    battery_min: Optional[int] = None


class PartitionSummary(BaseModel):
    year: str
    month: str
    day: str
    row_count: int = Field(..., ge=0)
    first_timestamp: Optional[str] = None
    last_timestamp: Optional[str] = None
    per_device: Dict[str, DeviceStatsModel] = Field(default_factory=dict)
