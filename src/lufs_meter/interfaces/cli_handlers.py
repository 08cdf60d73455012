"""CLI-facing handlers: decode, measure and report."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any
import json
import logging

from lufs_meter.integrator import LoudnessIntegrator, MeasurementResult
from lufs_meter.io.audio_file import read_channels
from lufs_meter.utils.config import MeterConfig, load_meter_config

LOGGER = logging.getLogger("lufs_meter.cli")


def resolve_config(config_path: Path | None) -> MeterConfig:
    if config_path is None:
        return MeterConfig()
    return load_meter_config(config_path)


def measure_file(path: Path, config: MeterConfig | None = None) -> MeasurementResult:
    channels, sample_rate = read_channels(path)
    LOGGER.info(
        "audio_decoded",
        extra={"path": str(path), "sample_rate": sample_rate, "channel_count": len(channels)},
    )
    integrator = LoudnessIntegrator(sample_rate, config)
    return integrator.measure(channels)


def block_start_times(result: MeasurementResult, config: MeterConfig | None = None) -> list[float]:
    """Start time in seconds of each block in ``result.block_loudness``."""

    geometry = LoudnessIntegrator(result.sample_rate, config).block_geometry(0)
    hop_seconds = geometry.hop_size / result.sample_rate
    return [idx * hop_seconds for idx in range(result.block_count)]


def build_report(path: Path, result: MeasurementResult) -> dict[str, Any]:
    report = {"source": str(path)}
    report.update(result.as_dict())
    return report


def write_report(report: dict[str, Any], report_json: Path) -> None:
    report_json.parent.mkdir(parents=True, exist_ok=True)
    report_json.write_text(json.dumps(report, indent=2))


def run_batch_measurement(
    paths: list[Path],
    config: MeterConfig | None,
    concurrency_limit: int,
) -> tuple[list[dict[str, Any]], dict[str, int]]:
    if not paths:
        raise ValueError("No input files were resolved.")

    def _process(path: Path, item_index: int) -> dict[str, Any]:
        try:
            result = measure_file(path, config)
            return {
                "index": item_index,
                "source": str(path),
                "status": "succeeded",
                "integrated_lufs": result.integrated_lufs,
                "max_loudness": result.max_loudness,
            }
        except Exception as error:  # noqa: BLE001
            LOGGER.warning("measurement_failed", extra={"path": str(path), "error": str(error)})
            return {
                "index": item_index,
                "source": str(path),
                "status": "failed",
                "error": str(error),
            }

    safe_concurrency = max(1, concurrency_limit)
    results: list[dict[str, Any]] = []
    with ThreadPoolExecutor(max_workers=safe_concurrency) as executor:
        futures = [
            executor.submit(_process, path, idx)
            for idx, path in enumerate(paths, start=1)
        ]
        for future in as_completed(futures):
            results.append(future.result())

    results.sort(key=lambda item: item["index"])
    success_count = sum(1 for item in results if item["status"] == "succeeded")
    summary = {
        "total": len(results),
        "succeeded": success_count,
        "failed": len(results) - success_count,
    }
    return results, summary
