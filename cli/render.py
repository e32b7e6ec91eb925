from __future__ import annotations

from typing import Any, Iterable, Sequence

import typer

from catalog.table import MockCatalog
from models.records import Partition, format_timestamp
from services.aggregator import AggregationSummary
from services.pipeline import PipelineResult
from storage.partition_store import PartitionStore


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _fmt_float(value: float | None, digits: int = 2) -> str:
    return "-" if value is None else f"{value:.{digits}f}"


def render_pipeline_result(result: PipelineResult) -> None:
    echo_heading("Generation Summary")
    echo_key_values(
        [
            ("expected_records", result.summary.expected),
            ("generated_records", result.summary.generated),
            ("lost_records", result.summary.lost),
            ("data_loss_rate", f"{result.summary.loss_rate:.2f}%"),
        ]
    )

    typer.echo()
    echo_heading("Dataset Summary")
    if result.first_timestamp and result.last_timestamp:
        date_range = (
            f"{format_timestamp(result.first_timestamp)} to "
            f"{format_timestamp(result.last_timestamp)}"
        )
    else:
        date_range = "n/a"
    echo_key_values(
        [
            ("total_records", len(result.dataset)),
            ("files_created", len(result.locations)),
            ("date_range", date_range),
            ("devices", ", ".join(result.devices) or "none"),
            ("processing_ms", result.elapsed_ms),
        ]
    )


def render_partitions(
    store: PartitionStore, catalog: MockCatalog, partitions: Sequence[Partition]
) -> None:
    echo_heading("Partitions")
    if not partitions:
        typer.echo("No partitions found.")
        return
    for partition in partitions:
        record = catalog.get_partition(partition)
        count = record.record_count if record is not None else "unregistered"
        typer.echo(f"  - {store.partition_key(partition)} ({count})")


def render_summary(partition: Partition, summary: AggregationSummary) -> None:
    echo_heading(f"Partition {partition.date}")
    echo_key_values([("row_count", summary.row_count)])
    if not summary.per_device:
        typer.echo("No readings.")
        return
    typer.echo("per_device:")
    for device_id, stats in sorted(summary.per_device.items()):
        typer.echo(
            f"  - {device_id}: count={stats.count}"
            f" temperature_mean={_fmt_float(stats.temperature.mean)}"
            f" humidity_mean={_fmt_float(stats.humidity.mean)}"
            f" pressure_mean={_fmt_float(stats.pressure.mean)}"
            f" battery_min={stats.battery_min}"
        )
