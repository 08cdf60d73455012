"""CLI interface for lufs-meter."""

from pathlib import Path
import logging

import typer

from .interfaces.cli_handlers import (
    block_start_times,
    build_report,
    measure_file,
    resolve_config,
    run_batch_measurement,
    write_report,
)
from .io.audio_file import AudioDecodeError

app = typer.Typer(help="lufs-meter command line interface")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.command("measure")
def measure_command(
    source: Path = typer.Argument(..., help="Path to a WAV/FLAC/AIFF audio file"),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Optional JSON/YAML meter config (gating constants, channel weights).",
    ),
    report_json: Path | None = typer.Option(
        None,
        "--report-json",
        help="Optional path to write the measurement report as JSON.",
    ),
    blocks: bool = typer.Option(
        False,
        "--blocks",
        help="Print momentary loudness for every gating block.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Measure integrated loudness of an audio file."""

    _configure_logging(verbose)
    try:
        meter_config = resolve_config(config)
        result = measure_file(source, meter_config)
    except (AudioDecodeError, ValueError, OSError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"Integrated loudness: {result.integrated_lufs:.2f} LUFS")
    typer.echo(f"Relative threshold: {result.relative_threshold:.2f} LUFS")
    typer.echo(f"Max momentary loudness: {result.max_loudness:.2f} LUFS")
    typer.echo(f"Blocks: {result.block_count} (gated: {result.gated_block_count})")

    if blocks:
        for start_s, loudness in zip(block_start_times(result, meter_config), result.block_loudness):
            typer.echo(f"{start_s:9.3f}s  {loudness:8.2f} LUFS")

    if report_json is not None:
        write_report(build_report(source, result), report_json)
        typer.echo(f"Report written to: {report_json}")


@app.command("batch-measure")
def batch_measure_command(
    sources: list[Path] = typer.Argument(..., help="Audio files to measure"),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Optional JSON/YAML meter config shared by every file.",
    ),
    concurrency_limit: int = typer.Option(
        4,
        "--concurrency-limit",
        min=1,
        help="Maximum number of concurrent measurements.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Measure several files concurrently."""

    _configure_logging(verbose)
    try:
        meter_config = resolve_config(config)
    except (ValueError, OSError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    results, summary = run_batch_measurement(sources, meter_config, concurrency_limit)
    for item in results:
        if item["status"] == "succeeded":
            typer.echo(
                f"[OK] #{item['index']} {item['source']} "
                f"integrated={item['integrated_lufs']:.2f} LUFS "
                f"max={item['max_loudness']:.2f} LUFS"
            )
        else:
            typer.echo(f"[FAILED] #{item['index']} {item['source']} error={item['error']}")

    typer.echo(
        "Summary: "
        f"total={summary['total']} "
        f"succeeded={summary['succeeded']} "
        f"failed={summary['failed']}"
    )
    if summary["failed"]:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
