"""Logging setup: RichHandler for the console, QueueHandler for files.

Features:

1.  **Rich Console Output:** ``rich.logging.RichHandler`` on one shared ``Console``.
2.  **Non-Blocking File Logging:** ``QueueHandler`` + ``QueueListener`` so file IO
    never blocks the event loop that runs the cache sweep tasks.
3.  **Compact Formatting:** ``CompactFormatter`` with single-letter level names for files.
4.  **Markup Helpers:** ``LogFormat`` wraps values in rich markup for console messages.
5.  **Configuration Driven:** levels and the optional log file come from ``AppSettings``.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# All runtime and debugging information goes through a configured
# ``logging.Logger``. ``print()`` is reserved for final CLI output and for
# failures of the logging system itself.
# ---------------------------------------------------------------------------
import logging
import queue
import sys
import traceback
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from aidj_cache.core.models.settings import AppSettings

__all__ = [
    "LEVEL_ABBREV",
    "CompactFormatter",
    "LogFormat",
    "SafeQueueListener",
    "create_console_logger",
    "create_fallback_loggers",
    "ensure_directory",
    "get_level",
    "get_loggers",
    "get_shared_console",
    "setup_file_logging",
]

CONSOLE_LOGGER_NAME = "console_logger"
ERROR_LOGGER_NAME = "error_logger"
PACKAGE_LOGGER_NAME = "aidj_cache"

# Module-level shared console container (avoids global statement)
_console_holder: dict[str, Console] = {}


def get_shared_console() -> Console:
    """Get or create the shared Rich console instance.

    Returns:
        The shared Console instance.

    """
    if "console" not in _console_holder:
        _console_holder["console"] = Console()
    return _console_holder["console"]


class SafeQueueListener(QueueListener):
    """A QueueListener wrapper that safely handles stop() calls."""

    def stop(self) -> None:
        """Stop the listener thread safely, handling cases where _thread is None."""
        try:
            if getattr(self, "_thread", None) is not None:
                super().stop()
        except (AttributeError, RuntimeError, TypeError) as e:
            print(f"Warning: Error stopping QueueListener: {e}", file=sys.stderr)


# Level abbreviations used by CompactFormatter
LEVEL_ABBREV = {
    "DEBUG": "D",
    "INFO": "I",
    "WARNING": "W",
    "ERROR": "E",
    "CRITICAL": "C",
}


class LogFormat:
    """Rich markup helpers for consistent log formatting.

    Example:
        from aidj_cache.core.logger import LogFormat as LF
        logger.info("Created cache %s with %s entries", LF.entity("lastfm"), LF.number(500))
    """

    @staticmethod
    def entity(name: str) -> str:
        """Format entity/namespace name with yellow highlighting."""
        return f"[yellow]{name}[/yellow]"

    @staticmethod
    def number(value: float) -> str:
        """Format numbers with bright white highlighting."""
        return f"[bright_white]{value}[/bright_white]"

    @staticmethod
    def duration(seconds: float) -> str:
        """Format a duration in seconds with cyan highlighting."""
        return f"[cyan]{seconds:.1f}s[/cyan]"

    @staticmethod
    def dim(text: str) -> str:
        """Format secondary text as dimmed."""
        return f"[dim]{text}[/dim]"


class CompactFormatter(logging.Formatter):
    """File formatter that abbreviates level names to a single letter."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the record with an abbreviated level name."""
        original_levelname = record.levelname
        record.levelname = LEVEL_ABBREV.get(original_levelname, original_levelname)
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


def ensure_directory(path: str, error_logger: logging.Logger | None = None) -> None:
    """Create ``path`` (and parents) if it does not exist."""
    if not path:
        return
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
    except OSError:
        if error_logger is not None:
            error_logger.exception("Error creating directory %s", path)
        else:
            print(f"ERROR: Failed to create directory {path}", file=sys.stderr)


def get_level(level_name: str | int | None, default_level: int = logging.INFO) -> int:
    """Convert a level name (or number) to a ``logging`` constant with fallback."""
    if not level_name:
        return default_level
    if isinstance(level_name, int):
        return level_name
    resolved = logging.getLevelName(str(level_name).upper())
    return resolved if isinstance(resolved, int) else default_level


def create_console_logger(level: int) -> logging.Logger:
    """Create and configure the console logger with RichHandler.

    The same handler is attached to the ``aidj_cache`` package logger, so
    store and service messages reach the console at ``level`` too. Only adds
    a handler if none is present yet; repeated calls just update the level.
    """
    console_logger = logging.getLogger(CONSOLE_LOGGER_NAME)
    if not console_logger.handlers:
        ch = RichHandler(
            level=level,
            console=get_shared_console(),
            show_path=False,
            enable_link_path=False,
            log_time_format="%H:%M:%S",
            markup=True,
        )
        console_logger.addHandler(ch)
        console_logger.propagate = False
    console_logger.setLevel(level)

    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    for handler in console_logger.handlers:
        handler.setLevel(level)
        if handler not in package_logger.handlers:
            package_logger.addHandler(handler)
    package_logger.setLevel(level)
    return console_logger


def setup_file_logging(log_file: str, level: int) -> tuple[logging.Logger, SafeQueueListener]:
    """Route the error logger and the package loggers to ``log_file`` through a queue."""
    ensure_directory(str(Path(log_file).parent))

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(
        CompactFormatter(
            "%(asctime)s %(levelname)s [%(name)s] %(module)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    file_handler.setLevel(level)

    log_queue: queue.Queue[logging.LogRecord] = queue.Queue(-1)
    listener = SafeQueueListener(log_queue, file_handler, respect_handler_level=True)
    listener.start()

    queue_handler = QueueHandler(log_queue)
    for name in (ERROR_LOGGER_NAME, PACKAGE_LOGGER_NAME, "config"):
        target = logging.getLogger(name)
        if not any(isinstance(h, QueueHandler) for h in target.handlers):
            target.addHandler(queue_handler)
        # Lower of the console and file levels
        target.setLevel(min(level, target.level) if target.level else level)

    return logging.getLogger(ERROR_LOGGER_NAME), listener


def get_loggers(settings: AppSettings) -> tuple[logging.Logger, logging.Logger, SafeQueueListener | None]:
    """Create the console and error loggers.

    Note:
        This function never raises. On setup failure it returns fallback
        loggers with basic StreamHandler configuration.

    Returns:
        Tuple of (console_logger, error_logger, listener). Listener is ``None``
        when no log file is configured or setup failed.

    """
    try:
        console_logger = create_console_logger(get_level(settings.logging.console_level))
        if settings.logging.log_file:
            error_logger, listener = setup_file_logging(settings.logging.log_file, get_level(settings.logging.file_level, logging.DEBUG))
        else:
            error_logger, listener = logging.getLogger(ERROR_LOGGER_NAME), None
            if not error_logger.handlers:
                error_logger.addHandler(logging.StreamHandler(sys.stderr))
    except (OSError, ValueError, AttributeError, TypeError) as e:
        return create_fallback_loggers(e)

    console_logger.debug("Logging setup with RichHandler complete.")
    return console_logger, error_logger, listener


def create_fallback_loggers(e: Exception) -> tuple[logging.Logger, logging.Logger, None]:
    """Configure basic logging when the rich/queue setup fails."""
    print(f"FATAL ERROR: Failed to configure logging: {e}", file=sys.stderr)
    traceback.print_exc(file=sys.stderr)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    logging.critical("Fallback basic logging configured due to error: %s", e)

    console_fallback = logging.getLogger("console_fallback")
    error_fallback = logging.getLogger("error_fallback")
    if not console_fallback.handlers:
        console_fallback.addHandler(logging.StreamHandler(sys.stdout))
    if not error_fallback.handlers:
        error_fallback.addHandler(logging.StreamHandler(sys.stderr))

    return console_fallback, error_fallback, None
