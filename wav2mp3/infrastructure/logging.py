import logging
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.logging import RichHandler

def setup_logging(log_path: Optional[Path] = None, debug: bool = False) -> logging.Logger:
    """
    Setup logging configuration for wav2mp3.

    With a log path every record goes to that file. Without one, records
    go to stderr through rich, and only warnings and errors are shown
    unless debug is on (stdout stays reserved for progress lines).

    Args:
        log_path: Optional path to log file (parent directories are created)
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.INFO

    if log_path:
        log_file = Path(log_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file)
    else:
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        handler.setLevel(logging.DEBUG if debug else logging.WARNING)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[handler],
        force=True  # Override any existing configuration
    )

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized: {log_path or 'stderr'} (debug={'ON' if debug else 'OFF'})")

    return logger
