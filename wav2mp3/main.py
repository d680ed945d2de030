import logging
import typer
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from wav2mp3.config.loader import load_config
from wav2mp3.config.models import AppConfig
from wav2mp3.infrastructure.logging import setup_logging
from wav2mp3.infrastructure.event_bus import EventBus
from wav2mp3.infrastructure.file_scanner import FileScanner, DirectoryOpenError
from wav2mp3.infrastructure.encoder import FFmpegEncoder
from wav2mp3.infrastructure.housekeeping import HousekeepingService
from wav2mp3.pipeline.orchestrator import Orchestrator
from wav2mp3.pipeline.tracker import WorkerSlotTracker
from wav2mp3.ui.console import ConsoleReporter

app = typer.Typer(help="wav2mp3 - convert every WAV file in a directory to MP3, one worker per CPU core")


def apply_overrides(config: AppConfig, general: dict, encoder: dict) -> AppConfig:
    """Returns a re-validated copy of `config` with CLI values applied."""
    data = config.model_dump()
    data["general"].update({k: v for k, v in general.items() if v is not None})
    data["encoder"].update({k: v for k, v in encoder.items() if v is not None})
    return AppConfig(**data)


@app.command()
def convert(
    directory: Path = typer.Argument(..., help="Directory containing the source files"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
    threads: Optional[int] = typer.Option(None, "--threads", "-t", min=1, help="Override number of workers (default: CPU count)"),
    source_suffix: Optional[str] = typer.Option(None, "--source-suffix", help="Extension of files to convert (default .wav)"),
    target_suffix: Optional[str] = typer.Option(None, "--target-suffix", help="Extension of converted files (default .mp3)"),
    bitrate: Optional[int] = typer.Option(None, "--bitrate", "-b", help="MP3 bitrate in kbps"),
    poll_interval: Optional[float] = typer.Option(None, "--poll-interval", help="Seconds between progress lines while waiting"),
    strict: bool = typer.Option(False, "--strict", help="Exit with code 1 if any file failed to convert"),
    log_path: Optional[Path] = typer.Option(None, "--log-path", help="Path to log file"),
    debug: bool = typer.Option(False, "--debug/--no-debug", help="Enable verbose debug logging"),
):
    """Convert every source file found directly inside DIRECTORY."""
    try:
        config = apply_overrides(
            load_config(config_path),
            general={
                "threads": threads,
                "source_suffix": source_suffix,
                "target_suffix": target_suffix,
                "poll_interval_s": poll_interval,
                "fail_on_error": True if strict else None,
                "log_path": str(log_path) if log_path else None,
                "debug": True if debug else None,
            },
            encoder={"bitrate_kbps": bitrate},
        )
    except (FileNotFoundError, ValidationError, ValueError) as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    general = config.general
    logger = setup_logging(Path(general.log_path) if general.log_path else None, debug=general.debug)
    logger.info(
        f"Config: threads={general.threads or 'auto'}, {general.source_suffix} -> {general.target_suffix}, "
        f"bitrate={config.encoder.bitrate_kbps}k, debug={general.debug}"
    )

    bus = EventBus()
    tracker = WorkerSlotTracker()
    ConsoleReporter(bus, tracker)

    orchestrator = Orchestrator(
        config=config,
        event_bus=bus,
        file_scanner=FileScanner(general.source_suffix, general.target_suffix),
        encoder=FFmpegEncoder(config.encoder),
        tracker=tracker,
        housekeeper=HousekeepingService(),
    )

    try:
        summary = orchestrator.run(directory)
    except DirectoryOpenError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        typer.secho("\nConversion stopped by user (Ctrl+C)", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=130)
    except Exception as e:
        logging.getLogger(__name__).exception("Fatal error")
        typer.secho(f"Fatal Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if general.fail_on_error and summary.has_errors:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
