"""Logging setup for the sync CLI: colored console output, optional log file, per-kind progress."""

import logging
import logging.handlers
import time
from typing import Any, Dict, Optional

import colorlog

LOGGER_NAME = 'content_sync'

CONSOLE_FORMAT = '%(log_color)s%(levelname)-8s%(reset)s %(message)s'
FILE_FORMAT = '%(asctime)s %(name)s %(levelname)s %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOG_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}

REDACTED = '***REDACTED***'
SECRET_KEYS = ('token', 'secret', 'password')


def level_for_verbosity(verbosity: int) -> int:
    """-v shows progress, -vv shows every skipped file and request."""
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def setup_logging(verbosity: int = 0, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the ``content_sync`` logger tree.

    Every module logs under ``content_sync.<package>.<module>``, so handlers
    are attached once, here. Calling this again replaces them.

    Args:
        verbosity: Number of ``-v`` flags
        log_file: Also write a plain-text log to this path (rotated at 5MB)

    Returns:
        The root ``content_sync`` logger
    """
    level = level_for_verbosity(verbosity)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()

    console = colorlog.StreamHandler()
    console.setFormatter(colorlog.ColoredFormatter(CONSOLE_FORMAT, log_colors=LOG_COLORS))
    logger.addHandler(console)

    if log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding='utf-8'
            )
        except OSError as e:
            logger.warning(f"Cannot write log file {log_file}: {e}")
        else:
            # The file always gets the full detail
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
            logger.addHandler(file_handler)
            logger.setLevel(logging.DEBUG)
            console.setLevel(level)

    return logger


class ProgressTracker:
    """Counts synced and failed records of one kind and logs a summary line on exit."""

    def __init__(self, total: int, kind: str = 'records', every: int = 25):
        self.total = total
        self.kind = kind
        self.every = every
        self.succeeded = 0
        self.failed = 0
        self.started: Optional[float] = None
        self.logger = logging.getLogger(f'{LOGGER_NAME}.progress')

    def __enter__(self) -> 'ProgressTracker':
        self.started = time.monotonic()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            self.logger.error(f"{self.kind.capitalize()} stopped after {self.done}/{self.total}")
            return

        summary = (
            f"{self.kind.capitalize()}: {self.succeeded}/{self.total} synced, "
            f"{self.failed} failed ({self.elapsed:.1f}s)"
        )
        if self.failed:
            self.logger.warning(summary)
        else:
            self.logger.info(summary)

    @property
    def done(self) -> int:
        return self.succeeded + self.failed

    @property
    def elapsed(self) -> float:
        return 0.0 if self.started is None else time.monotonic() - self.started

    def increment(self, success: bool = True) -> None:
        if success:
            self.succeeded += 1
        else:
            self.failed += 1

        if self.done % self.every == 0 and self.done < self.total:
            self.logger.info(f"  {self.done}/{self.total} {self.kind}")

    def get_stats(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'succeeded': self.succeeded,
            'failed': self.failed,
            'elapsed_seconds': round(self.elapsed, 3),
        }


def log_section(title: str) -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.info('-' * 60)
    logger.info(title)
    logger.info('-' * 60)


def log_config(config: Dict[str, Any]) -> None:
    """Log the resolved configuration at INFO with secrets redacted."""
    logger = logging.getLogger(LOGGER_NAME)
    log_section("Configuration")
    for section, values in redact(config).items():
        for key, value in values.items():
            if value is not None:
                logger.info(f"  {section}.{key} = {value}")


def redact(data: Any) -> Any:
    """Copy of ``data`` with the values of secret-looking keys masked."""
    if isinstance(data, dict):
        return {
            key: REDACTED if value and any(s in key.lower() for s in SECRET_KEYS) else redact(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [redact(item) for item in data]
    return data


__all__ = [
    'LOGGER_NAME',
    'ProgressTracker',
    'log_config',
    'log_section',
    'redact',
    'setup_logging'
]
