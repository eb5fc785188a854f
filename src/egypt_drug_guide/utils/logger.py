"""Centralized logging configuration using loguru."""

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def configure_logging(level: Optional[str] = None, log_dir: Optional[Path] = None, file_sink: bool = True) -> None:
    """
    (Re)configure the loguru sinks used by the drug guide.

    Args:
        level: Console level. Defaults to the LOG_LEVEL environment variable or INFO.
        log_dir: Directory for the JSON log file. Defaults to DRUG_GUIDE_LOG_DIR or ./logs.
        file_sink: Whether to attach the rotating JSON file sink.
    """
    logger.remove()

    # Sink 1: Stderr (Console)
    logger.add(sys.stderr, level=level or os.getenv("LOG_LEVEL", "INFO"), format=CONSOLE_FORMAT)

    if not file_sink:
        return

    # Sink 2: File (JSON)
    directory = log_dir or Path(os.getenv("DRUG_GUIDE_LOG_DIR", "logs"))
    directory.mkdir(parents=True, exist_ok=True)
    logger.add(
        directory / "app.log",
        rotation="500 MB",
        retention="10 days",
        serialize=True,
        enqueue=True,
        level="DEBUG",
    )


configure_logging(file_sink=os.getenv("DRUG_GUIDE_LOG_FILE", "1") != "0")

__all__ = ["configure_logging", "logger"]
