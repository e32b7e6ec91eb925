"""Catalog table definition for the partitioned sensor dataset.

The definition mirrors the external table the query service reads: a JSON
SerDe over ``s3://<bucket>/<prefix>/`` with string partition keys
``year``/``month``/``day`` resolved through partition projection.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from app.schemas import PartitionRecord
from models.records import Partition
from settings import get_settings


class Column(BaseModel):
    name: str
    type: str


class PartitionProjection(BaseModel):
    """Integer range projection for one partition key."""

    key: str
    minimum: int
    maximum: int
    digits: Optional[int] = None

    def render(self, value: int) -> str:
        return str(value).zfill(self.digits) if self.digits else str(value)

    def contains(self, raw: str) -> bool:
        if not raw.isdigit():
            return False
        if self.digits and len(raw) != self.digits:
            return False
        return self.minimum <= int(raw) <= self.maximum


READING_COLUMNS: List[Column] = [
    Column(name="device_id", type="string"),
    Column(name="timestamp", type="string"),
    Column(name="temperature", type="double"),
    Column(name="humidity", type="double"),
    Column(name="pressure", type="double"),
    Column(name="location", type="struct<lat:double,lon:double>"),
    Column(name="battery", type="int"),
]

PARTITION_KEYS: List[Column] = [
    Column(name="year", type="string"),
    Column(name="month", type="string"),
    Column(name="day", type="string"),
]

DEFAULT_PROJECTIONS: List[PartitionProjection] = [
    PartitionProjection(key="year", minimum=2020, maximum=2030),
    PartitionProjection(key="month", minimum=1, maximum=12, digits=2),
    PartitionProjection(key="day", minimum=1, maximum=31, digits=2),
]


def _split_struct_fields(body: str) -> List[str]:
    fields: List[str] = []
    depth = 0
    current = ""
    for char in body:
        if char == "<":
            depth += 1
        elif char == ">":
            depth -= 1
        if char == "," and depth == 0:
            fields.append(current)
            current = ""
            continue
        current += char
    if current:
        fields.append(current)
    return fields


def _matches_type(value: Any, column_type: str) -> bool:
    if column_type == "string":
        return isinstance(value, str)
    if column_type == "double":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if column_type == "int":
        return isinstance(value, int) and not isinstance(value, bool)
    if column_type.startswith("struct<") and column_type.endswith(">"):
        if not isinstance(value, Mapping):
            return False
        members = {}
        for field in _split_struct_fields(column_type[len("struct<"):-1]):
            name, _, member_type = field.partition(":")
            members[name] = member_type
        if set(value) != set(members):
            return False
        return all(_matches_type(value[name], kind) for name, kind in members.items())
    raise ValueError(f"Unsupported column type {column_type!r}.")


class TableDefinition(BaseModel):
    database_name: str = "iot_sensor_database"
    table_name: str = "sensor_data"
    description: str = "IoT sensor data table with date partitions"
    bucket_name: str
    prefix: str = "sensor-data"
    classification: str = "json"
    serialization_library: str = "org.openx.data.jsonserde.JsonSerDe"
    columns: List[Column] = Field(default_factory=lambda: list(READING_COLUMNS))
    partition_keys: List[Column] = Field(default_factory=lambda: list(PARTITION_KEYS))
    projections: List[PartitionProjection] = Field(
        default_factory=lambda: list(DEFAULT_PROJECTIONS)
    )

    @property
    def storage_location(self) -> str:
        return f"s3://{self.bucket_name}/{self.prefix}/"

    @property
    def location_template(self) -> str:
        segments = "/".join(f"{key.name}=${{{key.name}}}" for key in self.partition_keys)
        return f"{self.storage_location}{segments}/"

    def table_parameters(self) -> Dict[str, str]:
        parameters = {
            "has_encrypted_data": "false",
            "classification": self.classification,
            "projection.enabled": "true",
        }
        for projection in self.projections:
            base = f"projection.{projection.key}"
            parameters[f"{base}.type"] = "integer"
            parameters[f"{base}.range"] = (
                f"{projection.render(projection.minimum)},{projection.render(projection.maximum)}"
            )
            if projection.digits:
                parameters[f"{base}.digits"] = str(projection.digits)
        parameters["storage.location.template"] = self.location_template
        return parameters

    def validate_partition(self, partition: Partition) -> None:
        values = partition._asdict()
        for projection in self.projections:
            raw = values.get(projection.key)
            if raw is None or not projection.contains(raw):
                raise ValueError(
                    f"Partition {projection.key}={raw!r} is outside the projected range "
                    f"{projection.render(projection.minimum)}..{projection.render(projection.maximum)}."
                )

    def partition_location(self, partition: Partition) -> str:
        self.validate_partition(partition)
        location = self.location_template
        for key, value in partition._asdict().items():
            location = location.replace(f"${{{key}}}", value)
        return location

    def validate_record(self, record: Mapping[str, Any]) -> None:
        expected = [column.name for column in self.columns]
        missing = [name for name in expected if name not in record]
        unexpected = [name for name in record if name not in expected]
        if missing or unexpected:
            raise ValueError(
                f"Record fields do not match table columns (missing={missing}, unexpected={unexpected})."
            )
        for column in self.columns:
            if not _matches_type(record[column.name], column.type):
                raise ValueError(
                    f"Column {column.name!r} expects {column.type}, got {record[column.name]!r}."
                )


class MockCatalog:
    """Registry of published partitions for one table."""

    def __init__(self, table: TableDefinition, persistence_path: Optional[Path] = None) -> None:
        self.table = table
        self.persistence_path = persistence_path
        self._partitions: Dict[Partition, PartitionRecord] = {}
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def register_partition(
        self,
        partition: Partition,
        record_count: int,
        location: Optional[str] = None,
    ) -> PartitionRecord:
        self.table.validate_partition(partition)
        resolved = location or self.table.partition_location(partition)
        record = PartitionRecord(
            year=partition.year,
            month=partition.month,
            day=partition.day,
            record_count=record_count,
            location=resolved,
            registered_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._partitions[partition] = record
            self._persist()
        return record.model_copy(deep=True)

    def get_partition(self, partition: Partition) -> Optional[PartitionRecord]:
        with self._lock:
            record = self._partitions.get(partition)
            if record is None:
                return None
            return record.model_copy(deep=True)

    def list_partitions(self) -> List[PartitionRecord]:
        with self._lock:
            return [
                self._partitions[key].model_copy(deep=True)
                for key in sorted(self._partitions)
            ]

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {
            "table": self.table.model_dump(mode="json"),
            "partitions": {
                key.date: record.model_dump(mode="json")
                for key, record in sorted(self._partitions.items())
            },
        }
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = {}

        for payload in data.get("partitions", {}).values():
            record = PartitionRecord.model_validate(payload)
            key = Partition(record.year, record.month, record.day)
            self._partitions[key] = record


@lru_cache
def build_default_catalog(path: Optional[str] = None) -> MockCatalog:
    settings = get_settings()
    table = TableDefinition(
        database_name=settings.database_name,
        table_name=settings.table_name,
        bucket_name=settings.bucket_name,
        prefix=settings.prefix,
    )
    catalog_path = settings.catalog_path if path is None else path
    persistence = Path(catalog_path) if catalog_path else None
    return MockCatalog(table=table, persistence_path=persistence)
