"""Logging utilities for safeshell.

Adds a TRACE level below DEBUG (used for every command string handed to
a backend), verbosity mapping for the CLI, timing, and a logger wrapper
that appends key=value context to each message.

The quoting, validation, building and normalization functions never log;
only the executor, the backends and the pipeline runner do.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Generator

DEFAULT_FORMAT = "%(levelname)s [%(name)s] %(message)s"
DEBUG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
TRACE_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s [%(name)s:%(funcName)s:%(lineno)d] %(message)s"

# Below DEBUG: full command strings
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

VERBOSITY_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
    3: TRACE,
}

LEVEL_NAMES = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def get_level_from_verbosity(verbosity: int) -> int:
    """Convert a count of -v flags to a logging level."""
    return VERBOSITY_LEVELS.get(min(verbosity, 3), TRACE)


def get_level_from_name(level_name: str) -> int:
    """Convert a level name to a logging level.

    Args:
        level_name: One of trace, debug, info, warning, error, critical

    Returns:
        Logging level constant

    Raises:
        ValueError: If level name is invalid
    """
    if not isinstance(level_name, str):
        raise ValueError(f"Invalid log level: {level_name!r}. Expected a level name")
    level_lower = level_name.lower()
    if level_lower not in LEVEL_NAMES:
        valid = ", ".join(LEVEL_NAMES.keys())
        raise ValueError(f"Invalid log level: {level_name}. Valid levels: {valid}")
    return LEVEL_NAMES[level_lower]


def configure_logging(
    level: int = logging.WARNING,
    format_string: str | None = None,
    debug: bool = False,
) -> None:
    """Configure root logging for safeshell.

    Args:
        level: Console logging level
        format_string: Custom format string (picked from the level if None)
        debug: Use the debug format regardless of level

    Example:
        >>> configure_logging(level=logging.INFO)
    """
    if format_string is None:
        if level <= TRACE:
            format_string = TRACE_FORMAT
        elif debug or level <= logging.DEBUG:
            format_string = DEBUG_FORMAT
        else:
            format_string = DEFAULT_FORMAT

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(format_string))
    root_logger.addHandler(console_handler)


def _format_context(context: dict[str, Any]) -> str:
    return ", ".join(f"{k}={v}" for k, v in context.items())


@contextmanager
def log_performance(
    logger: logging.Logger,
    operation: str,
    level: int = logging.INFO,
    threshold: float | None = None,
    **context: Any,
) -> Generator[None, None, None]:
    """Time a block and log how long it took.

    Args:
        logger: Logger instance to use
        operation: Description of the timed operation
        level: Log level to use
        threshold: Only log if the duration reaches this many seconds
        **context: Additional context to include in the message

    Example:
        >>> with log_performance(logger, "Pipeline", steps=3):
        ...     run_pipeline(steps)
        INFO: Pipeline completed in 0.412s (steps=3)
    """
    start_time = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start_time
        if threshold is None or duration >= threshold:
            message = f"{operation} completed in {duration:.3f}s"
            if context:
                message += f" ({_format_context(context)})"
            logger.log(level, message)


class StructuredLogger:
    """Logger that appends key=value context to every message.

    Attributes:
        logger: Underlying Python logger
        context: Context added to every message

    Example:
        >>> logger = StructuredLogger("safeshell.executor", backend="SubprocessBackend")
        >>> logger.warning("Pipe could not be opened", program="grep")
        WARNING [safeshell.executor] Pipe could not be opened (backend=SubprocessBackend, program=grep)
    """

    def __init__(self, name: str, **context: Any) -> None:
        self.logger = logging.getLogger(name)
        self.context: dict[str, Any] = context.copy()

    def add_context(self, **context: Any) -> None:
        """Add context included in all future messages."""
        self.context.update(context)

    def remove_context(self, *keys: str) -> None:
        """Remove context keys; missing keys are ignored."""
        for key in keys:
            self.context.pop(key, None)

    def clear_context(self) -> None:
        self.context.clear()

    def _format_message(self, message: str, **extra: Any) -> str:
        combined = {**self.context, **extra}
        if not combined:
            return message
        return f"{message} ({_format_context(combined)})"

    def isEnabledFor(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def log(self, level: int, message: str, **extra: Any) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(level, self._format_message(message, **extra))

    def trace(self, message: str, **extra: Any) -> None:
        self.log(TRACE, message, **extra)

    def debug(self, message: str, **extra: Any) -> None:
        self.log(logging.DEBUG, message, **extra)

    def info(self, message: str, **extra: Any) -> None:
        self.log(logging.INFO, message, **extra)

    def warning(self, message: str, **extra: Any) -> None:
        self.log(logging.WARNING, message, **extra)

    def error(self, message: str, **extra: Any) -> None:
        self.log(logging.ERROR, message, **extra)

    @contextmanager
    def scope(
        self,
        message: str,
        level: int = logging.INFO,
        **context: Any,
    ) -> Generator[None, None, None]:
        """Log entry and exit of a block with temporary extra context.

        The exit message is logged even if the block raises.
        """
        original_context = self.context.copy()
        self.add_context(**context)

        full_message = self._format_message(message)
        self.logger.log(level, f"Entering: {full_message}")
        try:
            yield
        finally:
            self.logger.log(level, f"Exiting: {full_message}")
            self.context = original_context


def get_logger(name: str, **context: Any) -> StructuredLogger:
    """Get a StructuredLogger for ``name`` with initial context."""
    return StructuredLogger(name, **context)
