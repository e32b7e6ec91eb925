from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from catalog.table import MockCatalog, build_default_catalog
from cli.render import render_partitions, render_pipeline_result, render_summary
from logging_config import configure_logging
from models.records import Partition, parse_timestamp
from services.aggregator import Aggregator
from services.generator import (
    DEFAULT_DATA_LOSS_PROBABILITY,
    DEFAULT_DURATION_DAYS,
    DEFAULT_INTERVAL_MINUTES,
    DEFAULT_START_TIME,
)
from services.pipeline import GenerationPipeline, build_default_pipeline
from services.writer import read_jsonl, serialize_flat
from settings import Settings, get_settings
from storage.partition_store import PartitionStore, build_default_store


@dataclass
class CLIState:
    settings: Settings
    data_dir: Path
    catalog_path: Optional[Path]

    @property
    def catalog_location(self) -> Optional[str]:
        return str(self.catalog_path) if self.catalog_path else None

    def build_store(self) -> PartitionStore:
        return build_default_store(root_path=str(self.data_dir))

    def build_catalog(self) -> MockCatalog:
        return build_default_catalog(path=self.catalog_location)

    def build_pipeline(self, seed: Optional[int] = None) -> GenerationPipeline:
        return build_default_pipeline(
            seed=seed,
            root_path=str(self.data_dir),
            catalog_path=self.catalog_location,
        )


app = typer.Typer(
    help="Generate and inspect the date-partitioned synthetic sensor dataset.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        "-d",
        help="Dataset root (defaults to SENSOR_LAKE_OUTPUT_DIR or ./data).",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL or INFO).",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging(log_level.upper() if log_level else None)
    settings = get_settings()
    if data_dir is None:
        root = Path(settings.output_dir)
        catalog_path = Path(settings.catalog_path) if settings.catalog_path else None
    else:
        root = data_dir
        catalog_path = data_dir / "catalog.json"
    ctx.obj = CLIState(settings=settings, data_dir=root, catalog_path=catalog_path)


@app.command("generate")
def generate_command(
    ctx: typer.Context,
    start: Optional[str] = typer.Option(
        None,
        "--start",
        help="First timestamp, ISO-8601 (default 2024-01-01T00:00:00Z).",
    ),
    days: int = typer.Option(DEFAULT_DURATION_DAYS, "--days", help="Number of days to simulate."),
    interval: int = typer.Option(
        DEFAULT_INTERVAL_MINUTES, "--interval", help="Minutes between readings."
    ),
    loss: float = typer.Option(
        DEFAULT_DATA_LOSS_PROBABILITY,
        "--loss",
        help="Probability that a single reading is dropped.",
    ),
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        help="Random seed for reproducible output (defaults to SENSOR_LAKE_SEED).",
    ),
    flat: Optional[Path] = typer.Option(
        None,
        "--flat",
        dir_okay=False,
        help="Also write the whole dataset to this single JSONL file.",
    ),
) -> None:
    """Generate readings and publish them as daily partitions."""
    state = _get_state(ctx)
    try:
        start_time = parse_timestamp(start) if start else DEFAULT_START_TIME
        pipeline = state.build_pipeline(seed=seed)
        typer.echo("Generating IoT sensor data...")
        result = pipeline.run(
            start_time=start_time,
            duration_days=days,
            interval_minutes=interval,
            data_loss_probability=loss,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if flat is not None:
        serialize_flat(result.dataset, flat)
        typer.echo(f"Wrote {len(result.dataset)} records to {flat}")

    typer.echo()
    render_pipeline_result(result)


@app.command("partitions")
def partitions_command(ctx: typer.Context) -> None:
    """List partitions present in the dataset root."""
    state = _get_state(ctx)
    store = state.build_store()
    catalog = state.build_catalog()
    render_partitions(store, catalog, store.list_partitions())


@app.command("summary")
def summary_command(
    ctx: typer.Context,
    year: str = typer.Argument(..., help="Four-digit year."),
    month: str = typer.Argument(..., help="Two-digit month."),
    day: str = typer.Argument(..., help="Two-digit day."),
) -> None:
    """Print per-device aggregates for one date partition."""
    state = _get_state(ctx)
    partition = Partition(year, month.zfill(2), day.zfill(2))
    try:
        data = state.build_store().get_partition(partition)
    except KeyError as exc:
        raise typer.BadParameter(f"Partition {partition.date} was not found.") from exc
    render_summary(partition, Aggregator().aggregate(read_jsonl(data)))
