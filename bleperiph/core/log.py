"""
Core logging functionality for bleperiph.

One file per log type under the per-user data directory, plus the
``print_and_log`` helper used throughout the package.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

from . import config

# Re-export log type constants for external modules
LOG__GENERAL = config.LOG__GENERAL
LOG__DEBUG = config.LOG__DEBUG
LOG__DISPATCH = config.LOG__DISPATCH
LOG__ADVERTISING = config.LOG__ADVERTISING

_LOG_PATHS: Dict[str, Path] = {
    LOG__GENERAL: config.LOG_DIR / "general.log",
    LOG__DEBUG: config.LOG_DIR / "debug.log",
    LOG__DISPATCH: config.LOG_DIR / "dispatch.log",
    LOG__ADVERTISING: config.LOG_DIR / "advertising.log",
}

_formatter = logging.Formatter("%(asctime)s %(message)s")

# Create and configure handlers
_handlers: Dict[str, logging.Handler] = {}
for log_type, path in _LOG_PATHS.items():
    handler = logging.FileHandler(path, mode="a", encoding="utf-8", delay=True)
    handler.setFormatter(_formatter)
    _handlers[log_type] = handler

# Root logger for bleperiph
_logger = logging.getLogger("bleperiph")
_logger.setLevel(logging.INFO)
_logger.addHandler(_handlers[LOG__GENERAL])

# Clean up temporary variables
del log_type, path, handler


def _emit(line: str, log_type: str) -> None:
    """Write one record straight to the handler for *log_type*."""
    record = logging.LogRecord(
        name=f"bleperiph.{log_type.lower()}",
        level=logging.INFO,
        pathname=__file__,
        lineno=0,
        msg=line.rstrip("\n"),
        args=(),
        exc_info=None,
    )
    _handlers.get(log_type, _handlers[LOG__GENERAL]).handle(record)


def logging__debug_log(msg: str) -> None:
    """Write to debug log."""
    _emit(msg, LOG__DEBUG)


def logging__general_log(msg: str) -> None:
    """Write to general log."""
    _emit(msg, LOG__GENERAL)


def logging__dispatch_log(msg: str) -> None:
    """Write to dispatch log (inbound read/write calls)."""
    _emit(msg, LOG__DISPATCH)


def logging__advertising_log(msg: str) -> None:
    """Write to advertising log."""
    _emit(msg, LOG__ADVERTISING)


# Map log type to function for convenience
_log_func_map = {
    LOG__GENERAL: logging__general_log,
    LOG__DEBUG: logging__debug_log,
    LOG__DISPATCH: logging__dispatch_log,
    LOG__ADVERTISING: logging__advertising_log,
}


def logging__log_event(log_type: str, string_to_log: str) -> None:
    """Log an event to the specified log type."""
    _log_func_map.get(log_type, logging__general_log)(string_to_log)


def print_and_log(output_string: str, log_type: str = LOG__GENERAL) -> None:
    """Print to stdout and log to the specified log type."""
    if log_type not in (LOG__DEBUG, LOG__DISPATCH):
        print(output_string)
    logging__log_event(log_type, output_string)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger with the specified name.

    Records end up in the general log file.
    """
    if name:
        return _logger.getChild(name)
    return _logger
