"""
Centralized logging configuration for geoartifacts.

Provides human-readable console output on the ``geoartifacts`` logger and,
when ``GEOARTIFACTS_LOG_DIR`` is set, JSON Lines records in a rotating
file. All package modules should use get_logger() instead of configuring
handlers themselves.

Usage:
    from geoartifacts.logging_config import get_logger
    log = get_logger(__name__)
"""

import json
import logging
import os
import time
from logging.handlers import RotatingFileHandler

PACKAGE_LOGGER = "geoartifacts"


class JsonFormatter(logging.Formatter):
    """Format log records as JSON Lines for machine parsing."""

    def format(self, record):
        entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S.") +
                         f"{int(record.msecs):03d}",
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }
        # Include structured extra fields if present.
        for key in ("identifier", "url", "cache_hit", "bytes",
                    "timing_seconds", "rows"):
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable single-line format."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


# Track whether the package logger has been configured to avoid duplicates.
_configured = False


def setup_logging(console_level=None, log_dir=None, file_level=logging.DEBUG):
    """Attach console and optional file handlers to the package logger.

    Subsequent calls are no-ops until reset_logging() is called.

    Parameters
    ----------
    console_level : int, optional
        Console handler log level. Default: from LOG_LEVEL env var or
        WARNING, so a library import stays quiet.
    log_dir : str, optional
        Directory for ``geoartifacts.jsonl``. Default: GEOARTIFACTS_LOG_DIR
        env var; no file logging when neither is given.
    file_level : int
        File handler log level. Default: DEBUG.
    """
    global _configured

    if _configured:
        return

    if console_level is None:
        env_level = os.environ.get("LOG_LEVEL", "WARNING").upper()
        console_level = getattr(logging, env_level, logging.WARNING)
    if log_dir is None:
        log_dir = os.environ.get("GEOARTIFACTS_LOG_DIR")

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG)

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(ConsoleFormatter())
    logger.addHandler(console)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        rotating = RotatingFileHandler(
            os.path.join(log_dir, "geoartifacts.jsonl"),
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=3,
        )
        rotating.setLevel(file_level)
        rotating.setFormatter(JsonFormatter())
        logger.addHandler(rotating)

    _configured = True


def reset_logging():
    """Reset all logging state, primarily for test isolation."""
    global _configured

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    _configured = False


def get_logger(name):
    """Get a logger for a package module, configuring handlers on first use.

    Parameters
    ----------
    name : str
        Logger name (typically ``__name__``).

    Returns
    -------
    logging.Logger
    """
    if not _configured:
        setup_logging()
    return logging.getLogger(name)


def log_fetch_summary(logger, identifier, url, cache_hit,
                      nbytes=None, timing_seconds=None):
    """Log one structured line describing a cache lookup or download."""
    status = "hit" if cache_hit else "downloaded"
    parts = [f"[{identifier}] {status}"]
    if nbytes is not None:
        parts.append(f"{nbytes / 1_048_576:.1f} MB")
    if timing_seconds is not None:
        parts.append(f"({timing_seconds:.1f}s)")

    extra = {"identifier": identifier, "url": url, "cache_hit": cache_hit}
    if nbytes is not None:
        extra["bytes"] = nbytes
    if timing_seconds is not None:
        extra["timing_seconds"] = timing_seconds

    level = logging.DEBUG if cache_hit else logging.INFO
    logger.log(level, " ".join(parts), extra=extra)


class StepTimer:
    """Context manager for timing downloads and loads.

    Usage:
        with StepTimer() as t:
            do_work()
        print(t.elapsed)
    """

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.elapsed = time.perf_counter() - self.start
