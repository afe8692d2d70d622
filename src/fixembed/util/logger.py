"""
Logging setup shared by every FixEmbed module.

Each named logger gets two handlers: a prompt_toolkit console handler at INFO
(colored when stderr is a terminal) and a size-capped rotating file under
``<FIXEMBED_HOME>/logs`` at DEBUG. All loggers of one process write to the same
session file.
"""

import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import ANSI


def resolve_logs_dir() -> Path:
    """``$FIXEMBED_HOME/logs`` when the variable is set, else ``logs/`` at the project root."""
    home = os.getenv("FIXEMBED_HOME")
    base = Path(home) if home else Path(__file__).parents[3]
    return (base / "logs").resolve()


LOGS_DIR: Path = resolve_logs_dir()
LOGS_DIR.mkdir(parents=True, exist_ok=True)

LOG_FORMAT: str = "[%(asctime)s] [%(levelname)s] [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
DATE_FORMAT: str = "%Y-%m-%d %H-%M-%S"

LOG_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[38;5;88m",
}
RESET_COLOR = "\033[0m"

LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 3

CONSOLE_LEVEL = logging.INFO
FILE_LEVEL = logging.DEBUG

# Discord gateway reconnects and aiosqlite statement tracing flood the console
NOISY_LOGGERS = (
    "discord", "discord.gateway", "discord.client", "discord.http",
    "websockets", "aiohttp", "aiosqlite",
)

_session_log: Path | None = None


class ColorFormatter(logging.Formatter):
    """Wraps each formatted record in the ANSI color of its level."""

    def format(self, record: logging.LogRecord) -> str:
        color = LOG_COLORS.get(record.levelname, "")
        message = super().format(record)
        return f"{color}{message}{RESET_COLOR}" if color else message


class PromptToolkitHandler(logging.Handler):
    """
    Console handler printing through ``print_formatted_text``.

    prompt_toolkit translates the ANSI sequences for Windows consoles as well,
    so the same formatter works on every platform.
    """

    def __init__(self, formatter: logging.Formatter | None = None):
        super().__init__()
        if formatter:
            self.setFormatter(formatter)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            print_formatted_text(ANSI(self.format(record)))
        except Exception:
            self.handleError(record)


def should_use_color() -> bool:
    try:
        return sys.stderr.isatty()
    except Exception:
        return False


plain_formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
console_formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT) if should_use_color() else plain_formatter


def get_log_filepath() -> Path:
    """Path of this process's log file, named after the time of the first call."""
    global _session_log
    if _session_log is None:
        _session_log = LOGS_DIR / f"fixembed-{datetime.now().strftime(DATE_FORMAT)}.log"
    return _session_log


def setup_logger(logger_name: str) -> logging.Logger:
    """Attach the console and file handlers to ``logger_name`` once."""
    logger = logging.getLogger(logger_name)
    if logger.handlers:
        return logger

    logger.setLevel(min(CONSOLE_LEVEL, FILE_LEVEL))
    logger.propagate = False

    console_handler = PromptToolkitHandler(formatter=console_formatter)
    console_handler.setLevel(CONSOLE_LEVEL)
    logger.addHandler(console_handler)

    file_handler = RotatingFileHandler(
        get_log_filepath(),
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(FILE_LEVEL)
    file_handler.setFormatter(plain_formatter)
    logger.addHandler(file_handler)

    return logger


def get_logger(logger_name: str) -> logging.Logger:
    """Logger for a FixEmbed module, e.g. ``get_logger("config_store")``."""
    return setup_logger(logger_name)


def handle_exception(exception_type, exception_instance, exception_traceback) -> None:
    """``sys.excepthook`` that logs uncaught exceptions; Ctrl+C keeps the default behavior."""
    if issubclass(exception_type, KeyboardInterrupt):
        sys.__excepthook__(exception_type, exception_instance, exception_traceback)
        return
    logging.error("Uncaught exception", exc_info=(exception_type, exception_instance, exception_traceback))


def silence_noisy_loggers() -> None:
    for name in NOISY_LOGGERS:
        noisy = logging.getLogger(name)
        noisy.setLevel(logging.ERROR)
        noisy.propagate = False
        noisy.handlers = []


silence_noisy_loggers()
sys.excepthook = handle_exception
