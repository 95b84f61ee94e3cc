"""Logging for Hearth: one rich console handler on the package logger, optional file log.

Module loggers (``hearth.core.catalog`` and friends) carry no handlers or
level of their own, so the level set on ``hearth`` decides what reaches both
the console and the file.
"""
import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

console = Console()

BASE_LOGGER = "hearth"
LOG_DIR = Path.home() / ".local" / "state" / "hearth"
LOG_FILE = LOG_DIR / "hearth.log"

_file_logging_configured = False


def _base_logger() -> logging.Logger:
    """Return the ``hearth`` logger, attaching the console handler on first use."""
    base = logging.getLogger(BASE_LOGGER)
    if not any(isinstance(h, RichHandler) for h in base.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setLevel(logging.INFO)
        handler.setFormatter(logging.Formatter("%(message)s"))
        base.addHandler(handler)
        base.setLevel(logging.INFO)
    return base


def setup_file_logging(log_file: str = None, verbose: bool = False):
    """Write Hearth logs to a file as well as the console.

    Args:
        log_file: Path to log file (defaults to ~/.local/state/hearth/hearth.log)
        verbose: Log debug records to the file and the console
    """
    global _file_logging_configured

    if _file_logging_configured:
        return

    target = Path(log_file).expanduser() if log_file else LOG_FILE
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        target = Path("/tmp/hearth.log")

    level = logging.DEBUG if verbose else logging.INFO
    base = _base_logger()
    base.setLevel(level)
    for handler in base.handlers:
        if isinstance(handler, RichHandler):
            handler.setLevel(level)

    file_handler = logging.FileHandler(target)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    base.addHandler(file_handler)

    _file_logging_configured = True
    base.info(f"Hearth logging initialized: {target}")


def get_logger(name: str) -> logging.Logger:
    """Logger for a Hearth module; output goes through the ``hearth`` handlers."""
    _base_logger()
    return logging.getLogger(name)
