"""Centralized logging setup for the organizational intelligence system.

Provides a consistent console format across all modules and an optional
error log file that collects ERROR-level records only.
"""

import logging
import sys
from pathlib import Path

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", error_log: Path | str | None = None) -> None:
    """Configure the root logger with a standard format.

    Calling this more than once is a no-op once the root logger has handlers.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        error_log: Optional file path that receives ERROR and above records.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    if root.handlers:
        return

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    if error_log is not None:
        error_path = Path(error_log)
        error_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(error_path)
        file_handler.setLevel(logging.ERROR)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.setLevel(numeric_level)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger instance.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.

    Returns:
        Configured logger instance.
    """
    return logging.getLogger(name)
