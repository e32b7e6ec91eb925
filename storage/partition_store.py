from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional

from models.records import PARTITION_FILENAME, Partition
from settings import get_settings

_KEY_PATTERN = re.compile(
    r"^year=(?P<year>\d{4})/month=(?P<month>\d{2})/day=(?P<day>\d{2})/"
    + re.escape(PARTITION_FILENAME)
    + r"$"
)


class PartitionStore:
    """Bucket stand-in holding date partitions under a key prefix.

    With ``root_path`` set, objects live only on disk under
    ``root_path/<prefix>/year=YYYY/month=MM/day=DD/sensor_data.jsonl``.
    Without it they are kept in memory.
    """

    def __init__(
        self,
        bucket_name: str,
        root_path: Optional[Path] = None,
        prefix: str = "sensor-data",
    ) -> None:
        self.bucket_name = bucket_name
        self.prefix = prefix.strip("/")
        self.root_path = root_path
        self._objects: Dict[Partition, bytes] = {}
        self._lock = Lock()
        if root_path:
            root_path.mkdir(parents=True, exist_ok=True)

    def partition_key(self, partition: Partition) -> str:
        relative = f"{partition.relative_dir}/{PARTITION_FILENAME}"
        return f"{self.prefix}/{relative}" if self.prefix else relative

    def parse_partition_key(self, key: str) -> Partition:
        candidate = key.strip("/")
        if self.prefix:
            expected = f"{self.prefix}/"
            if not candidate.startswith(expected):
                raise ValueError(f"Key {key!r} is outside prefix {self.prefix!r}.")
            candidate = candidate[len(expected):]
        match = _KEY_PATTERN.match(candidate)
        if match is None:
            raise ValueError(f"Key {key!r} is not a date partition key.")
        return Partition(match["year"], match["month"], match["day"])

    def object_uri(self, partition: Partition) -> str:
        return f"s3://{self.bucket_name}/{self.partition_key(partition)}"

    def put_partition(self, partition: Partition, data: bytes) -> str:
        key = self.partition_key(partition)
        with self._lock:
            if self.root_path is None:
                self._objects[partition] = data
            else:
                path = self.root_path / key
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(data)
        return key

    def get_partition(self, partition: Partition) -> bytes:
        if self.root_path is None:
            with self._lock:
                data = self._objects.get(partition)
            if data is not None:
                return data
        else:
            path = self.root_path / self.partition_key(partition)
            if path.exists():
                return path.read_bytes()

        raise KeyError(
            f"Partition {partition.date} not found in bucket {self.bucket_name!r}."
        )

    def list_partitions(self) -> List[Partition]:
        with self._lock:
            partitions = set(self._objects)

        if self.root_path:
            base = self.root_path / self.prefix if self.prefix else self.root_path
            if base.exists():
                for path in base.rglob(PARTITION_FILENAME):
                    key = path.relative_to(self.root_path).as_posix()
                    try:
                        partitions.add(self.parse_partition_key(key))
                    except ValueError:
                        continue

        return sorted(partitions)


@lru_cache
def build_default_store(
    bucket_name: Optional[str] = None,
    root_path: Optional[str] = None,
) -> PartitionStore:
    settings = get_settings()
    name = settings.bucket_name if bucket_name is None else bucket_name
    root = settings.output_dir if root_path is None else root_path
    return PartitionStore(bucket_name=name, root_path=Path(root), prefix=settings.prefix)
