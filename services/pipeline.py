"""Generation run orchestration: synthesize, publish partitions, register them."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from catalog.table import MockCatalog, build_default_catalog
from models.records import Partition, Reading
from services.aggregator import Aggregator
from services.generator import (
    DEFAULT_DATA_LOSS_PROBABILITY,
    DEFAULT_DURATION_DAYS,
    DEFAULT_INTERVAL_MINUTES,
    DEFAULT_START_TIME,
    GenerationSummary,
    SensorSeriesGenerator,
)
from services.writer import encode_jsonl, group_by_date
from settings import get_settings
from storage.partition_store import PartitionStore, build_default_store

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    dataset: List[Reading]
    summary: GenerationSummary
    partitions: List[Partition] = field(default_factory=list)
    locations: List[str] = field(default_factory=list)
    devices: List[str] = field(default_factory=list)
    first_timestamp: Optional[datetime] = None
    last_timestamp: Optional[datetime] = None
    elapsed_ms: int = 0


class GenerationPipeline:
    """Generates a dataset and publishes one store object per UTC date."""

    def __init__(
        self,
        generator: SensorSeriesGenerator,
        store: PartitionStore,
        catalog: MockCatalog,
        aggregator: Aggregator,
    ) -> None:
        self.generator = generator
        self.store = store
        self.catalog = catalog
        self.aggregator = aggregator

    def run(
        self,
        start_time: datetime = DEFAULT_START_TIME,
        duration_days: int = DEFAULT_DURATION_DAYS,
        interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
        data_loss_probability: float = DEFAULT_DATA_LOSS_PROBABILITY,
    ) -> PipelineResult:
        started = time.perf_counter()
        dataset, summary = self.generator.generate_with_summary(
            start_time=start_time,
            duration_days=duration_days,
            interval_minutes=interval_minutes,
            data_loss_probability=data_loss_probability,
        )

        table = self.catalog.table
        groups = group_by_date(dataset)
        for partition, day_readings in groups.items():
            table.validate_partition(partition)
            table.validate_record(day_readings[0].to_record())

        result = PipelineResult(dataset=dataset, summary=summary)
        for partition, day_readings in groups.items():
            key = self.store.put_partition(partition, encode_jsonl(day_readings))
            self.catalog.register_partition(partition, record_count=len(day_readings))
            result.partitions.append(partition)
            result.locations.append(key)
            logger.info(
                "Published partition",
                extra={
                    "partition": partition.date,
                    "path": self.store.object_uri(partition),
                    "record_count": len(day_readings),
                },
            )

        aggregates = self.aggregator.aggregate(dataset)
        result.devices = sorted(aggregates.per_device)
        result.first_timestamp = aggregates.first_timestamp
        result.last_timestamp = aggregates.last_timestamp
        result.elapsed_ms = int((time.perf_counter() - started) * 1000)
        return result


def build_default_pipeline(
    seed: Optional[int] = None,
    root_path: Optional[str] = None,
    catalog_path: Optional[str] = None,
) -> GenerationPipeline:
    """Factory that wires the pipeline from settings.

    Store and catalog come from their cached factories. The pipeline itself is
    built per call so every run starts from a freshly seeded generator.
    """
    settings = get_settings()
    generator = SensorSeriesGenerator(seed=settings.seed if seed is None else seed)
    return GenerationPipeline(
        generator=generator,
        store=build_default_store(root_path=root_path),
        catalog=build_default_catalog(path=catalog_path),
        aggregator=Aggregator(),
    )
