"""Logging configuration for git-assistant"""
import logging
import sys
from pathlib import Path
from typing import Optional

LOG_DIR = Path.home() / '.git-assistant'
LOG_FILE_NAME = 'git-assistant.log'

# Libraries that log on every git call or every frame at DEBUG
NOISY_LOGGERS = ('git', 'asyncio', 'textual')

# Module prefixes dropped from logger names, in order
_NAME_PREFIXES = ('git_assistant.', 'services.', 'git.')


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to log levels in terminal output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def format(self, record):
        """Format log record with colors if in a terminal."""
        if sys.stderr.isatty():
            levelname = record.levelname
            if levelname in self.COLORS:
                # Copy so the file handler sees the plain level name
                record = logging.makeLogRecord(record.__dict__)
                record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        return super().format(record)


def log_file_path(log_dir: Optional[Path] = None) -> Path:
    """Where the debug and TUI log is written."""
    return (log_dir or LOG_DIR) / LOG_FILE_NAME


def setup_logging(verbose: bool = False, debug: bool = False, tui_mode: bool = False,
                  log_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Configure logging for the application.

    Args:
        verbose: If True, show INFO level messages
        debug: If True, show DEBUG level messages and detailed formatting
        tui_mode: If True, log to a file only (the TUI owns the terminal)
        log_dir: Directory for the log file (defaults to ~/.git-assistant)

    Returns:
        Path of the log file when one was opened, otherwise None
    """
    # Determine log level
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    root_logger = logging.getLogger()
    # The file handler in TUI mode wants everything; handlers filter further
    root_logger.setLevel(logging.DEBUG if tui_mode else level)

    # Remove any existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # GitPython logs every command it spawns; our client already logs them
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    log_file = None
    if tui_mode or debug:
        log_file = log_file_path(log_dir)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='w')  # Overwrite each run
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        root_logger.addHandler(file_handler)

    # Console handler (stderr, so command output on stdout stays clean)
    if not tui_mode:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)

        if debug:
            formatter = ColoredFormatter(
                fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
        else:
            formatter = ColoredFormatter(fmt='[%(name)s] %(message)s')

        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    return log_file


def short_name(name: str) -> str:
    """Shorten a module name for log output.

    ``git_assistant.services.git.client`` becomes ``client``. The ``git.``
    prefix is dropped as well so our loggers never nest under GitPython's
    ``git`` logger and inherit the level it is quieted to.
    """
    for prefix in _NAME_PREFIXES:
        if name.startswith(prefix):
            name = name[len(prefix):]
    return name


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the specified module.

    Args:
        name: Name of the module (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(short_name(name))
