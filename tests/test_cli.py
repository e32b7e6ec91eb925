from __future__ import annotations

import json
from pathlib import Path
from typing import Iterator

import pytest
from typer.testing import CliRunner

import cli.app as cli_app
from catalog.table import build_default_catalog
from cli.app import app
from settings import get_settings
from storage.partition_store import build_default_store


@pytest.fixture()
def runner() -> Iterator[CliRunner]:
    caches = (get_settings, build_default_store, build_default_catalog)
    for cache in caches:
        cache.cache_clear()
    yield CliRunner()
    for cache in caches:
        cache.cache_clear()


def _generate(runner: CliRunner, data_dir: Path, *extra: str):
    return runner.invoke(
        app,
        [
            "--data-dir",
            str(data_dir),
            "generate",
            "--days",
            "1",
            "--interval",
            "60",
            "--loss",
            "0",
            "--seed",
            "3",
            *extra,
        ],
    )


def test_generate_writes_partition_tree(runner: CliRunner, tmp_path: Path) -> None:
    result = _generate(runner, tmp_path)

    assert result.exit_code == 0, result.output
    assert "total_records: 120" in result.stdout
    assert "files_created: 1" in result.stdout
    assert "date_range: 2024-01-01T00:00:00.000Z to 2024-01-01T23:00:00.000Z" in result.stdout
    assert "sensor_001, sensor_002, sensor_003, sensor_004, sensor_005" in result.stdout
    assert "processing_ms:" in result.stdout

    partition_file = tmp_path / "sensor-data" / "year=2024" / "month=01" / "day=01" / "sensor_data.jsonl"
    lines = partition_file.read_text(encoding="utf-8").split("\n")
    assert len(lines) == 120
    assert json.loads(lines[0])["timestamp"] == "2024-01-01T00:00:00.000Z"

    catalog = json.loads((tmp_path / "catalog.json").read_text())
    assert catalog["partitions"]["2024-01-01"]["record_count"] == 120


def test_generate_with_flat_output(runner: CliRunner, tmp_path: Path) -> None:
    flat = tmp_path / "flat" / "all.jsonl"

    result = _generate(runner, tmp_path / "lake", "--flat", str(flat), "--start", "2024-02-10T00:00:00Z")

    assert result.exit_code == 0, result.output
    assert flat.exists()
    assert len(flat.read_text(encoding="utf-8").split("\n")) == 120
    assert (tmp_path / "lake" / "sensor-data" / "year=2024" / "month=02" / "day=10").is_dir()


def test_generate_is_reproducible_with_seed(runner: CliRunner, tmp_path: Path) -> None:
    first = _generate(runner, tmp_path / "a")
    second = _generate(runner, tmp_path / "b")

    assert first.exit_code == 0 and second.exit_code == 0
    relative = Path("sensor-data/year=2024/month=01/day=01/sensor_data.jsonl")
    assert (tmp_path / "a" / relative).read_bytes() == (tmp_path / "b" / relative).read_bytes()


def test_generate_rejects_invalid_arguments(runner: CliRunner, tmp_path: Path) -> None:
    result = _generate(runner, tmp_path, "--start", "yesterday-ish")
    assert result.exit_code == 2

    result = runner.invoke(app, ["--data-dir", str(tmp_path), "generate", "--days", "0"])
    assert result.exit_code == 2
    assert not (tmp_path / "sensor-data" / "year=2024").exists()


def test_partitions_and_summary_commands(runner: CliRunner, tmp_path: Path) -> None:
    assert _generate(runner, tmp_path).exit_code == 0

    listing = runner.invoke(app, ["--data-dir", str(tmp_path), "partitions"])
    assert listing.exit_code == 0
    assert "sensor-data/year=2024/month=01/day=01/sensor_data.jsonl (120)" in listing.stdout

    summary = runner.invoke(app, ["--data-dir", str(tmp_path), "summary", "2024", "1", "1"])
    assert summary.exit_code == 0
    assert "Partition 2024-01-01" in summary.stdout
    assert "row_count: 120" in summary.stdout
    assert "sensor_003: count=24" in summary.stdout


def test_summary_for_missing_partition(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(app, ["--data-dir", str(tmp_path), "summary", "2024", "05", "05"])

    assert result.exit_code == 2


def test_partitions_when_empty(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(app, ["--data-dir", str(tmp_path), "partitions"])

    assert result.exit_code == 0
    assert "No partitions found." in result.stdout


def test_generate_builds_pipeline_from_default_factory(
    runner: CliRunner, tmp_path: Path, monkeypatch
) -> None:
    calls = []
    original = cli_app.build_default_pipeline

    def tracking_factory(**kwargs):
        calls.append(kwargs)
        return original(**kwargs)

    monkeypatch.setattr(cli_app, "build_default_pipeline", tracking_factory)

    result = _generate(runner, tmp_path)

    assert result.exit_code == 0, result.output
    assert calls == [
        {
            "seed": 3,
            "root_path": str(tmp_path),
            "catalog_path": str(tmp_path / "catalog.json"),
        }
    ]
    assert build_default_store(root_path=str(tmp_path)).list_partitions() != []
