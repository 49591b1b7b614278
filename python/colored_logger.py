import logging
import os
import sys
from typing import Optional, TextIO

# Custom levels used by the archive engine
PROGRESS_LEVEL = 22
SUCCESS_LEVEL = 25
FAILURE_LEVEL = 45

logging.addLevelName(PROGRESS_LEVEL, "PROGRESS")
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")
logging.addLevelName(FAILURE_LEVEL, "FAILURE")

LEVEL_NAMES = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "PROGRESS": PROGRESS_LEVEL,
    "SUCCESS": SUCCESS_LEVEL,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "FAILURE": FAILURE_LEVEL,
    "CRITICAL": logging.CRITICAL,
}


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the whole line according to the record level."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "PROGRESS": "\033[94m",  # Bright Blue
        "SUCCESS": "\033[92m",  # Bright Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "FAILURE": "\033[91m",  # Bright Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def __init__(
        self, fmt: str = None, datefmt: str = None, stream: Optional[TextIO] = None
    ):
        super().__init__(fmt, datefmt)
        self.stream = stream or sys.stderr

    def _use_color(self) -> bool:
        if os.environ.get("NO_COLOR"):
            return False
        isatty = getattr(self.stream, "isatty", None)
        return bool(isatty and isatty())

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        if self._use_color():
            level_color = self.COLORS.get(record.levelname, "")
            return f"{level_color}{message}{self.COLORS['RESET']}"

        return message


def resolve_level(level) -> int:
    """Turn a level name such as ``"debug"`` or a number into a logging level."""
    if isinstance(level, int):
        return level
    return LEVEL_NAMES.get(str(level).strip().upper(), logging.INFO)


def setup_colored_logging(level=logging.INFO, stream: Optional[TextIO] = None) -> None:
    """
    Configure the root logger with a single colored console handler.

    Args:
        level: Logging level, as a number or a level name
        stream: Output stream (default: stderr)
    """
    stream = stream or sys.stderr
    formatter = ColoredFormatter(
        fmt="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=stream,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(resolve_level(level))

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)


class EnhancedLogger:
    """Logger wrapper that adds progress, success and failure methods."""

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def progress(self, msg, *args, **kwargs):
        """Log with PROGRESS level (bright blue) - per-entry progress."""
        self._logger.log(PROGRESS_LEVEL, msg, *args, **kwargs)

    def success(self, msg, *args, **kwargs):
        """Log with SUCCESS level (bright green) - completed archives."""
        self._logger.log(SUCCESS_LEVEL, msg, *args, **kwargs)

    def failure(self, msg, *args, **kwargs):
        """Log with FAILURE level (bright red) - failed archive requests."""
        self._logger.log(FAILURE_LEVEL, msg, *args, **kwargs)

    # debug/info/warning/error/exception come straight from the wrapped logger
    def __getattr__(self, name):
        return getattr(self._logger, name)


def get_colored_logger(name: str) -> EnhancedLogger:
    """
    Get an enhanced logger for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        EnhancedLogger wrapping ``logging.getLogger(name)``
    """
    return EnhancedLogger(logging.getLogger(name))
