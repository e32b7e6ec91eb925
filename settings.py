from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_OUTPUT_DIR_ENV = "SENSOR_LAKE_OUTPUT_DIR"
_BUCKET_NAME_ENV = "SENSOR_LAKE_BUCKET_NAME"
_PREFIX_ENV = "SENSOR_LAKE_PREFIX"
_CATALOG_PATH_ENV = "SENSOR_LAKE_CATALOG_PATH"
_DATABASE_NAME_ENV = "SENSOR_LAKE_DATABASE_NAME"
_TABLE_NAME_ENV = "SENSOR_LAKE_TABLE_NAME"
_SEED_ENV = "SENSOR_LAKE_SEED"
_LOG_LEVEL_ENV = "LOG_LEVEL"
_JSON_LOGS_ENV = "SENSOR_LAKE_JSON_LOGS"


@dataclass(frozen=True)
class Settings:
    output_dir: str
    bucket_name: str
    prefix: str
    catalog_path: Optional[str]
    database_name: str
    table_name: str
    seed: Optional[int]
    log_level: str
    json_logs: bool


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_prefix(default: str) -> str:
    candidate = _read_str_env(_PREFIX_ENV, default).strip("/")
    return candidate or default


def _read_seed() -> Optional[int]:
    value = os.getenv(_SEED_ENV)
    if value is None:
        return None
    candidate = value.strip()
    if not candidate:
        return None
    try:
        return int(candidate)
    except ValueError:
        return None


def _read_bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in {"1", "true", "yes", "on"}:
        return True
    if candidate in {"0", "false", "no", "off"}:
        return False
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        output_dir=_read_str_env(_OUTPUT_DIR_ENV, "./data"),
        bucket_name=_read_str_env(_BUCKET_NAME_ENV, "iot-sensor-data"),
        prefix=_read_prefix("sensor-data"),
        catalog_path=_read_optional_env(_CATALOG_PATH_ENV, "./data/catalog.json"),
        database_name=_read_str_env(_DATABASE_NAME_ENV, "iot_sensor_database"),
        table_name=_read_str_env(_TABLE_NAME_ENV, "sensor_data"),
        seed=_read_seed(),
        log_level=_read_log_level("INFO"),
        json_logs=_read_bool_env(_JSON_LOGS_ENV, False),
    )
