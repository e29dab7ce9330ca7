"""Logging configuration for the tracker exporter.

Console logging always; an optional DEBUG log file with full timestamps
when a log directory is given.
"""

import logging
from datetime import datetime
from pathlib import Path

CONSOLE_FORMAT = "%(asctime)s [%(process)d] [%(name)s] %(levelname)s: %(message)s"


def setup_logging(level: str | int = "INFO", log_dir: str | None = None) -> Path | None:
    """Configure the root logger with a console and an optional file handler.

    Existing handlers on the root logger are cleared first so that calling
    this function multiple times (e.g. in tests) does not produce duplicate
    output.

    Args:
        level: Minimum level for console output, name or number.
        log_dir: Directory for a timestamped ``run-*.log`` capturing DEBUG+.

    Returns:
        Path to the log file, or None when only console logging is set up.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(console)

    log_file = None
    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d-%H%M%S")
        log_file = directory / f"run-{timestamp}.log"

        file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-5s [%(name)s] %(message)s")
        )
        root.addHandler(file_handler)

    # Suppress noisy third-party loggers.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

    return log_file
