"""
Logging for xyzload.

Every module logs through get_logger(__name__). Records go to stderr so
that stdout stays free for generated tile payloads, and anything passed
as ``extra`` is appended to the line as key=value pairs:

    2026-01-01 12:00:00 - xyzload.regions - WARNING - Region not found: Atlantis | region=Atlantis code=REGION_NOT_FOUND

The level is read from Settings.log_level (LOG_LEVEL).
"""

import logging
import sys
import time
from collections.abc import Sized
from functools import lru_cache, wraps
from typing import Any

from xyzload.config import Settings, get_settings

# Attributes every LogRecord carries; anything else on a record came from extra=
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class XYZFormatter(logging.Formatter):
    """Timestamped log lines with extra fields appended."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = [
            f"{key}={value}"
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        ]
        if extras:
            line += " | " + " ".join(extras)
        return line


class StepLogger:
    """
    Times a named step and logs how it ended.

    The start is logged at DEBUG. On success the step is logged at INFO with
    elapsed_ms and the counts given to set_result; an exception is logged at
    ERROR and then propagates.

        with StepLogger(logger, "sample", regions=["France"]) as step:
            planned = plan_tile_requests(spec, table)
            step.set_result(planned)
    """

    def __init__(self, logger: logging.Logger, step_name: str, **params: Any):
        self.logger = logger
        self.step_name = step_name
        self.params = params
        self.counts: dict[str, Any] = {}
        self._started = 0.0

    def __enter__(self) -> "StepLogger":
        self._started = time.perf_counter()
        self.logger.debug(
            f"Step '{self.step_name}' started",
            extra={"step": self.step_name, "params": self.params},
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        elapsed_ms = f"{(time.perf_counter() - self._started) * 1000:.2f}"

        if exc_val is not None:
            self.logger.error(
                f"Step '{self.step_name}' failed: {exc_val}",
                extra={"step": self.step_name, "elapsed_ms": elapsed_ms},
                exc_info=True,
            )
            return False

        self.logger.info(
            f"Step '{self.step_name}' completed",
            extra={"step": self.step_name, "elapsed_ms": elapsed_ms, **self.counts},
        )
        return False

    def set_result(self, result: dict[str, Any] | Sized) -> None:
        """Record a dict of counts, or a collection whose size is logged as count."""
        if isinstance(result, dict):
            self.counts = dict(result)
        else:
            self.counts = {"count": len(result)}


def get_log_level(settings: Settings | None = None) -> int:
    """Numeric level for settings.log_level; unknown names give INFO."""
    name = (settings or get_settings()).log_level.strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


@lru_cache(maxsize=None)
def get_logger(name: str) -> logging.Logger:
    """
    Get the logger for a module, configured once per name.

    Each logger gets its own stderr handler and does not propagate, so
    records are not printed twice when the root logger is configured too.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(XYZFormatter())
        logger.addHandler(handler)
        logger.setLevel(get_log_level())
        logger.propagate = False

    return logger


def log_step(logger: logging.Logger, step_name: str):
    """Decorator that runs a function inside a StepLogger and records its result."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            with StepLogger(logger, step_name, **kwargs) as step:
                result = func(*args, **kwargs)
                step.set_result(result)
                return result
        return wrapper
    return decorator
