"""HTTP route definitions for the query service."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import (
    DeviceStatsModel,
    PartitionReadings,
    PartitionRecord,
    PartitionSummary,
    ReadingModel,
)
from catalog.table import MockCatalog, TableDefinition, build_default_catalog
from models.records import Partition, Reading, format_timestamp
from services.aggregator import Aggregator, AggregationSummary
from services.writer import read_jsonl
from storage.partition_store import PartitionStore, build_default_store

router = APIRouter()


def get_store() -> PartitionStore:
    return build_default_store()


def get_catalog() -> MockCatalog:
    return build_default_catalog()


def _load_partition(
    partition: Partition, store: PartitionStore, catalog: MockCatalog
) -> List[Reading]:
    try:
        catalog.table.validate_partition(partition)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    try:
        data = store.get_partition(partition)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc.args[0]),
        ) from exc
    return read_jsonl(data)


def _to_summary_model(partition: Partition, summary: AggregationSummary) -> PartitionSummary:
    per_device = {
        device_id: DeviceStatsModel(
            count=stats.count,
            temperature_min=stats.temperature.minimum,
            temperature_max=stats.temperature.maximum,
            temperature_mean=stats.temperature.mean,
            humidity_min=stats.humidity.minimum,
            humidity_max=stats.humidity.maximum,
            humidity_mean=stats.humidity.mean,
            pressure_min=stats.pressure.minimum,
            pressure_max=stats.pressure.maximum,
            pressure_mean=stats.pressure.mean,
            battery_min=stats.battery_min,
        )
        for device_id, stats in summary.per_device.items()
    }
    return PartitionSummary(
        year=partition.year,
        month=partition.month,
        day=partition.day,
        row_count=summary.row_count,
        first_timestamp=format_timestamp(summary.first_timestamp) if summary.first_timestamp else None,
        last_timestamp=format_timestamp(summary.last_timestamp) if summary.last_timestamp else None,
        per_device=per_device,
    )


@router.get(
    "/catalog/table",
    response_model=TableDefinition,
    summary="Describe the catalog table backing the partitioned dataset.",
)
async def get_table_definition(
    catalog: MockCatalog = Depends(get_catalog),
) -> TableDefinition:
    return catalog.table


@router.get(
    "/partitions",
    response_model=List[PartitionRecord],
    summary="List partitions registered in the catalog.",
)
async def list_partitions(
    catalog: MockCatalog = Depends(get_catalog),
) -> List[PartitionRecord]:
    return catalog.list_partitions()


@router.get(
    "/partitions/{year}/{month}/{day}/readings",
    response_model=PartitionReadings,
    summary="Return the readings stored in one date partition.",
)
async def get_partition_readings(
    year: str,
    month: str,
    day: str,
    device_id: Optional[str] = Query(None, description="Only return readings for this device."),
    store: PartitionStore = Depends(get_store),
    catalog: MockCatalog = Depends(get_catalog),
) -> PartitionReadings:
    partition = Partition(year, month, day)
    readings = _load_partition(partition, store, catalog)
    if device_id is not None:
        readings = [reading for reading in readings if reading.device_id == device_id]
    return PartitionReadings(
        year=year,
        month=month,
        day=day,
        device_id=device_id,
        count=len(readings),
        readings=[ReadingModel.model_validate(reading.to_record()) for reading in readings],
    )


@router.get(
    "/partitions/{year}/{month}/{day}/summary",
    response_model=PartitionSummary,
    summary="Per-device aggregates for one date partition.",
)
async def get_partition_summary(
    year: str,
    month: str,
    day: str,
    store: PartitionStore = Depends(get_store),
    catalog: MockCatalog = Depends(get_catalog),
) -> PartitionSummary:
    partition = Partition(year, month, day)
    readings = _load_partition(partition, store, catalog)
    return _to_summary_model(partition, Aggregator().aggregate(readings))


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
