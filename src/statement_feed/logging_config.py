"""Logging setup for site builds.

Every module logs through ``get_logger`` so records land under the
``statement_feed`` namespace, which ``setup_logging`` wires to a build log
file and, for interactive runs, stdout.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Union


LOGGER_NAMESPACE = "statement_feed"
DEFAULT_LOG_DIR = Path("logs")
DEFAULT_LOG_FILE = "statement_feed.log"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_log_file(log_file: Optional[Path] = None, log_dir: Optional[Path] = None) -> Path:
    """Return where the build log goes; relative names sit under ``log_dir``."""
    log_dir = Path(log_dir) if log_dir is not None else DEFAULT_LOG_DIR
    if log_file is None:
        return log_dir / DEFAULT_LOG_FILE
    log_file = Path(log_file)
    return log_file if log_file.is_absolute() else log_dir / log_file


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def _build_handlers(log_file: Path, console: bool) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.FileHandler(log_file, encoding="utf-8")]
    if console:
        handlers.append(logging.StreamHandler(sys.stdout))
    return handlers


def _drop_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logging(
    log_file: Optional[Path] = None,
    log_dir: Optional[Path] = None,
    level: Union[int, str] = logging.INFO,
    console: bool = True,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """Route ``statement_feed`` records to a build log and optionally stdout.

    Args:
        log_file: Log file path; relative paths are placed under ``log_dir``
        log_dir: Directory for relative log files (default: logs/)
        level: Level as a number or a name such as ``"DEBUG"``
        console: Also echo records to stdout; turn off for JSON output
        format_string: Custom record format

    Returns:
        The configured namespace logger. Calling again replaces its handlers.
    """
    path = resolve_log_file(log_file, log_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    numeric_level = _coerce_level(level)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(numeric_level)
    _drop_handlers(logger)

    for handler in _build_handlers(path, console):
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    # Build output stays out of the host application's root handlers
    logger.propagate = False

    logger.info(f"Logging initialized: {path}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the ``statement_feed.<name>`` logger for a module."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
