"""
Logging configuration for tubelink.

This module sets up the logging system with multiple outputs:
    - Console: Real-time messages with tqdm-compatible, colored formatting
    - log_full.log: Complete log of all events (DEBUG and above)
    - log_errors.log: Only ERROR and CRITICAL level messages
    - unmatched.log: Tracks whose video search failed, with their source URL

File outputs are only created when a log directory is configured
(output.log_directory in config.yaml or --log-dir on the command line).

Usage:
    from tubelink.core.logger import setup_logging, get_logger

    setup_logging(log_dir)  # Call once at startup
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Resolving playlist")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


# Log file name prefixes (a timestamp is appended per run)
LOG_FULL_PREFIX = "log_full"
LOG_ERRORS_PREFIX = "log_errors"
UNMATCHED_PREFIX = "unmatched"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that colors the level name on console output.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        colored_levelname = f"{color}{record.levelname}{Colors.RESET}"
        return f"{colored_levelname}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to console without breaking progress bars.

    Uses tqdm.write(), which prints above any active bar instead of
    tearing through it. Thread-safe: tqdm.write() handles synchronization,
    which matters because collection members log from worker threads.
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        """
        Initialize the tqdm-compatible handler.

        Args:
            stream: Output stream for log messages. Defaults to stderr
                    so stdout carries only the resolved links.
        """
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


# Extra fields log_unmatched_track() attaches to its records
UNMATCHED_FIELDS = ("unmatched_label", "unmatched_url", "unmatched_reason")


def has_unmatched_fields(record: logging.LogRecord) -> bool:
    return all(hasattr(record, name) for name in UNMATCHED_FIELDS)


class UnmatchedReportFormatter(logging.Formatter):
    """
    Formats unmatched-track records as three-line report entries:

        "Song Title" by "Artist Name"
        https://open.spotify.com/track/xxxxx
        No videos found for "Song Title" by "Artist Name"

    Entries are separated by a blank line (the handler's terminator).
    """

    def format(self, record: logging.LogRecord) -> str:
        return (
            f"{record.unmatched_label}\n"
            f"{record.unmatched_url}\n"
            f"{record.unmatched_reason}\n"
        )


class UnmatchedTrackHandler(logging.FileHandler):
    """
    File handler writing the unmatched-tracks report.

    Only records produced by log_unmatched_track() reach the file; every
    other record is filtered out. Writes are serialized by the handler
    lock, so worker threads can report concurrently.
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__(report_path, mode="w", encoding="utf-8")
        self.addFilter(has_unmatched_fields)
        self.setFormatter(UnmatchedReportFormatter())


class ErrorOnlyFilter(logging.Filter):
    """Filter that only allows ERROR and CRITICAL level records."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(log_dir: Path | None = None, verbose: bool = False) -> None:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after
    the configuration is loaded but before any other operations.

    Args:
        log_dir: Directory where log files will be created, or None
                 for console-only logging.
        verbose: Show DEBUG messages on the console.

    Behavior:
        1. Configure root logger level to DEBUG
        2. Create console handler (TqdmLoggingHandler), INFO or DEBUG
        3. If log_dir is given:
           a. Create it if it doesn't exist
           b. log_full_{timestamp}.log - everything
           c. log_errors_{timestamp}.log - ERROR+ via ErrorOnlyFilter
           d. unmatched_{timestamp}.log - UnmatchedTrackHandler

    Thread Safety:
        NOT thread-safe. Call it once from the main thread before
        starting any worker threads.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    # urllib3 is chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    if log_dir is None:
        return

    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    full_handler = logging.FileHandler(
        log_dir / f"{LOG_FULL_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_handler = logging.FileHandler(
        log_dir / f"{LOG_ERRORS_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    unmatched_handler = UnmatchedTrackHandler(log_dir / f"{UNMATCHED_PREFIX}_{timestamp}.log")
    root_logger.addHandler(unmatched_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Note:
        Loggers obtained before setup_logging() is called have no
        handlers of their own and propagate to the root logger.
    """
    return logging.getLogger(name)


def format_found_message(label: str, url: str, cached: bool = False) -> str:
    """Format a 'Found' message with colors."""
    suffix = f" {Colors.YELLOW}[cached]{Colors.RESET}" if cached else ""
    return (
        f"{Colors.GREEN}Found{Colors.RESET}: "
        f"{label} -> "
        f"{Colors.CYAN}{url}{Colors.RESET}{suffix}"
    )


def format_not_found_message(label: str, reason: str) -> str:
    """Format a 'No match' message with colors."""
    return (
        f"{Colors.RED}No match{Colors.RESET}: "
        f"{label} "
        f"({reason})"
    )


def format_unresolved_message(url: str, reason: str) -> str:
    """Format an 'Unresolved' message for a page whose track couldn't be read."""
    return (
        f"{Colors.RED}Unresolved{Colors.RESET}: "
        f"{url} "
        f"({reason})"
    )


def log_unmatched_track(
    logger: logging.Logger,
    label: str,
    source_url: str,
    reason: str
) -> None:
    """
    Log a track for which no video was found.

    Logs a WARNING with the extra fields UnmatchedTrackHandler picks up
    to write unmatched.log.

    Args:
        logger: The logger to use for the message.
        label: Search phrase of the track, or a placeholder label when
               the track itself couldn't be determined.
        source_url: Page URL the track came from.
        reason: Description of why no video was found.

    Example:
        log_unmatched_track(
            logger,
            label='"Song Title" by "Artist Name"',
            source_url="https://open.spotify.com/track/xxx",
            reason="No videos found"
        )
    """
    logger.warning(
        f"No video for {label}: {reason}",
        extra={
            "unmatched_label": label,
            "unmatched_url": source_url,
            "unmatched_reason": reason,
        }
    )


def shutdown_logging() -> None:
    """
    Flush and close all handlers and detach them from the root logger.

    Typically called in a finally block at application exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except (OSError, ValueError):
            pass
        root_logger.removeHandler(handler)
