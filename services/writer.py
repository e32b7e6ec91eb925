"""JSONL serialization for reading datasets, flat or date-partitioned."""

from __future__ import annotations

import json
import logging
from datetime import timezone
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Union

from models.records import PARTITION_FILENAME, Partition, Reading

logger = logging.getLogger(__name__)


def partition_for(reading: Reading) -> Partition:
    date = reading.timestamp.astimezone(timezone.utc).strftime("%Y-%m-%d")
    return Partition.from_date_string(date)


def encode_jsonl(readings: Iterable[Reading]) -> bytes:
    """Newline-joined compact JSON, one record per line, no trailing newline."""
    lines = (
        json.dumps(reading.to_record(), separators=(",", ":"), ensure_ascii=False)
        for reading in readings
    )
    return "\n".join(lines).encode("utf-8")


def read_jsonl(source: Union[str, Path, bytes]) -> List[Reading]:
    if isinstance(source, bytes):
        text = source.decode("utf-8")
    else:
        text = Path(source).read_text(encoding="utf-8")

    readings: List[Reading] = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON on line {line_number}: {exc.msg}") from exc
        if not isinstance(record, dict):
            raise ValueError(f"Line {line_number} is not a JSON object.")
        try:
            readings.append(Reading.from_record(record))
        except ValueError as exc:
            raise ValueError(f"Invalid record on line {line_number}: {exc}") from exc
    return readings


def group_by_date(readings: Iterable[Reading]) -> Dict[Partition, List[Reading]]:
    """Group readings by UTC date, in first-occurrence order."""
    groups: Dict[Partition, List[Reading]] = {}
    for reading in readings:
        groups.setdefault(partition_for(reading), []).append(reading)
    return groups


def serialize_flat(readings: Sequence[Reading], output_path: Union[str, Path]) -> Path:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode_jsonl(readings))
    logger.info(
        "Wrote flat dataset",
        extra={"path": str(path), "record_count": len(readings)},
    )
    return path


def serialize_partitioned(
    readings: Sequence[Reading], base_path: Union[str, Path]
) -> List[Path]:
    base = Path(base_path)
    written: List[Path] = []
    for partition, day_readings in group_by_date(readings).items():
        partition_dir = base / partition.relative_dir
        partition_dir.mkdir(parents=True, exist_ok=True)
        file_path = partition_dir / PARTITION_FILENAME
        file_path.write_bytes(encode_jsonl(day_readings))
        written.append(file_path)
        logger.info(
            "Wrote partition",
            extra={
                "partition": partition.date,
                "path": str(file_path),
                "record_count": len(day_readings),
            },
        )
    return written
