#!/usr/bin/env python3
"""
Rippler Logging Configuration

Centralized logging setup for consistent formatting across the project.
Console output goes to stderr so that command output on stdout stays clean.

Usage:
    from shared.log import get_logger

    logger = get_logger(__name__)
    logger.info("Opening session...")
    logger.warning("Remote error", extra={"command": "account_info", "session": 3})
"""

from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import Optional, Dict, Any
import os


# ========================================
#           LOGGING FORMATTERS
# ========================================

class GenericFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy; other handlers format the same record
        record = logging.makeLogRecord(record.__dict__)

        # Session context passed through `extra`
        context = []

        if hasattr(record, 'session'):
            context.append(f"session={record.session}")
        if hasattr(record, 'command'):
            context.append(f"cmd={record.command}")
        if hasattr(record, 'uri'):
            context.append(f"uri={record.uri}")
        if getattr(record, 'msg_type', None):
            context.append(f"msg={record.msg_type}")
        if getattr(record, 'msg_status', None):
            context.append(f"status={record.msg_status}")
        if getattr(record, 'msg_error', None):
            context.append(f"error={record.msg_error}")

        if context:
            record.msg = f"[{' '.join(context)}] {record.getMessage()}"
            record.args = None

        return super().format(record)


class ColoredFormatter(GenericFormatter):
    """Colored formatter for console output"""

    # ANSI Color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        if record.levelname in self.COLORS:
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.COLORS['RESET']}"

        return super().format(record)


# ========================================
#           LOGGING CONFIGURATION
# ========================================

_loggers_configured = set()

def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a configured logger for the given module.

    Args:
        name: Usually __name__ from the calling module
        level: Override log level ("DEBUG", "INFO", "WARNING", "ERROR")

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure each logger once
    if name not in _loggers_configured:
        _configure_logger(logger, level)
        _loggers_configured.add(name)

    return logger


def set_log_level(level: str) -> None:
    """Apply a level to every logger handed out by get_logger."""
    log_level = _get_log_level(level)
    for name in _loggers_configured:
        logging.getLogger(name).setLevel(log_level)


def _configure_logger(logger: logging.Logger, level: Optional[str] = None) -> None:
    """Configure a logger with appropriate handlers and formatters"""

    logger.setLevel(_get_log_level(level))

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    _add_console_handler(logger, colored=_is_development())
    if os.getenv('RIPPLER_LOG_FILE'):
        _add_file_handler(logger, Path(os.environ['RIPPLER_LOG_FILE']))

    # Prevent duplicate messages from parent loggers
    logger.propagate = False


def _get_log_level(level: Optional[str] = None) -> int:
    """Determine appropriate log level"""

    level = level or os.getenv('RIPPLER_LOG_LEVEL')
    if level:
        return getattr(logging, level.upper(), logging.WARNING)

    return logging.DEBUG if _is_development() else logging.WARNING


def _is_development() -> bool:
    """Detect if we're in development mode"""
    return os.getenv('RIPPLER_ENV', '').lower() in ['dev', 'development']


def _add_console_handler(logger: logging.Logger, colored: bool = True) -> None:
    """Add console handler with appropriate formatter"""

    fmt = '[%(levelname)-8s][%(asctime)s][%(name)-5s]: %(message)s'
    handler = logging.StreamHandler(sys.stderr)

    if colored and _supports_color():
        formatter = ColoredFormatter(
            fmt=fmt,
            datefmt='%H:%M:%S'
        )
    else:
        formatter = GenericFormatter(
            fmt=fmt,
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _add_file_handler(logger: logging.Logger, log_file: Path) -> None:
    """Add file handler when RIPPLER_LOG_FILE is set"""

    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)

    formatter = GenericFormatter(
        fmt='%(asctime)s | %(name)-30s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _supports_color() -> bool:
    """Check if terminal supports color output"""

    # stderr must be a terminal
    if not (hasattr(sys.stderr, "isatty") and sys.stderr.isatty()):
        return False

    # TERM should not be dumb
    if os.getenv("TERM", "") == "dumb":
        return False

    if sys.platform == "win32":
        # On modern Windows terminals, ANSI colors are supported
        return os.getenv("ANSICON") is not None or os.getenv("WT_SESSION") is not None or os.getenv("TERM_PROGRAM") == "vscode" or "WindowsTerminal" in os.getenv("TERM", "")

    return True
# ========================================
#           CONVENIENCE FUNCTIONS
# ========================================

def configure_root_logging(level: str = "WARNING") -> None:
    """
    Configure root logging for the entire application.
    Call this once at application startup.

    Args:
        level: Root log level ("DEBUG", "INFO", "WARNING", "ERROR")
    """
    root_logger = logging.getLogger()
    _configure_logger(root_logger, level)
    set_log_level(level)


def log_ledger_message(logger: logging.Logger, level: str, message: str,
                       document: Optional[Dict[str, Any]] = None,
                       **context: Any) -> None:
    """
    Log a ledger protocol message with structured context.

    Args:
        logger: Logger instance
        level: Log level ("debug", "info", "warning", "error")
        message: Log message
        document: Parsed reply/event for automatic context extraction
        **context: Additional context fields

    Example:
        log_ledger_message(logger, "debug", "Received frame",
                           document=reply, session=4)
    """

    extra_context = {}

    if document:
        extra_context.update({
            'msg_type': document.get('type'),
            'msg_status': document.get('status'),
            'msg_error': document.get('error'),
        })

    extra_context.update(context)

    log_func = getattr(logger, level.lower())
    log_func(message, extra=extra_context)
