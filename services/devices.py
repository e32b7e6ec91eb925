"""Default simulated device fleet (five sensors around central Tokyo)."""

from __future__ import annotations

from typing import Tuple

from models.records import DeviceProfile, Location

DEFAULT_DEVICE_PROFILES: Tuple[DeviceProfile, ...] = (
    DeviceProfile(
        device_id="sensor_001",
        location=Location(lat=35.6762, lon=139.6503),
        temperature_range=(18.0, 28.0),
        humidity_range=(40.0, 70.0),
        pressure_range=(1010.0, 1020.0),
        battery_drain_rate=0.1,
    ),
    DeviceProfile(
        device_id="sensor_002",
        location=Location(lat=35.6895, lon=139.6917),
        temperature_range=(19.0, 29.0),
        humidity_range=(35.0, 65.0),
        pressure_range=(1008.0, 1018.0),
        battery_drain_rate=0.15,
    ),
    DeviceProfile(
        device_id="sensor_003",
        location=Location(lat=35.709, lon=139.7319),
        temperature_range=(17.0, 27.0),
        humidity_range=(45.0, 75.0),
        pressure_range=(1012.0, 1022.0),
        battery_drain_rate=0.08,
    ),
    DeviceProfile(
        device_id="sensor_004",
        location=Location(lat=35.658, lon=139.7016),
        temperature_range=(20.0, 30.0),
        humidity_range=(38.0, 68.0),
        pressure_range=(1009.0, 1019.0),
        battery_drain_rate=0.12,
    ),
    DeviceProfile(
        device_id="sensor_005",
        location=Location(lat=35.6284, lon=139.7364),
        temperature_range=(19.0, 29.0),
        humidity_range=(42.0, 72.0),
        pressure_range=(1011.0, 1021.0),
        battery_drain_rate=0.09,
    ),
)
