"""
Core logging module with structured logging and correlation ID tracking.

Architecture:
- Named log streams (system, schedule, trading, notify)
- JSON formatting for the rotating file handlers
- Human-readable console formatting for operators
- Correlation ID propagation so every line of one closing run can be traced
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional
from contextvars import ContextVar
import uuid

# Context variable for correlation ID
_correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)


# ============================================================================
# LOG STREAM DEFINITIONS
# ============================================================================

class LogStream:
    """Log stream identifiers."""
    SYSTEM = "system"       # Startup, shutdown, configuration
    SCHEDULE = "schedule"   # Window decisions, day rollover, trigger edges
    TRADING = "trading"     # Position closes, order cancels
    NOTIFY = "notify"       # Telegram / Discord delivery


ALL_STREAMS = (LogStream.SYSTEM, LogStream.SCHEDULE, LogStream.TRADING, LogStream.NOTIFY)

LOGGER_PREFIX = "eodcloser"


# ============================================================================
# CORRELATION ID MANAGEMENT
# ============================================================================

def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """
    Set correlation ID for current context.

    Args:
        correlation_id: Optional correlation ID. If None, generates new UUID.

    Returns:
        The correlation ID that was set
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
    _correlation_id.set(correlation_id)
    return correlation_id


def get_correlation_id() -> Optional[str]:
    """Get correlation ID for current context."""
    return _correlation_id.get()


class LogContext:
    """
    Context manager for scoped correlation ID.

    Usage:
        with LogContext("closing-2026-03-09"):
            logger.info("Closing positions")  # Includes correlation_id
    """

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id
        self.previous_id = None

    def __enter__(self):
        self.previous_id = get_correlation_id()
        return set_correlation_id(self.correlation_id)

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.previous_id:
            set_correlation_id(self.previous_id)
        else:
            _correlation_id.set(None)


# ============================================================================
# CUSTOM LOG RECORD FACTORY
# ============================================================================

_original_factory = logging.getLogRecordFactory()


def _correlation_id_factory(*args, **kwargs):
    record = _original_factory(*args, **kwargs)
    record.correlation_id = get_correlation_id()
    return record


logging.setLogRecordFactory(_correlation_id_factory)


# ============================================================================
# LOGGER SETUP
# ============================================================================

_loggers_initialized = False


def setup_logging(
    log_dir: Path = Path("logs"),
    log_level: str = "INFO",
    console_level: str = "INFO",
    json_logs: bool = True,
    max_bytes: int = 10_000_000,  # 10MB
    backup_count: int = 5,
    force: bool = False,
) -> None:
    """
    Initialize logging infrastructure.

    Creates one rotating log file per stream:
    - logs/system/system.log
    - logs/schedule/schedule.log
    - logs/trading/trading.log
    - logs/notify/notify.log

    Args:
        log_dir: Base directory for logs
        log_level: File logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        console_level: Console logging level
        json_logs: If True, use JSON formatting in files
        max_bytes: Max bytes per log file before rotation
        backup_count: Number of backup files to keep
        force: Re-initialize even if already configured
    """
    global _loggers_initialized

    if _loggers_initialized and not force:
        return

    log_dir = Path(log_dir)
    for stream in ALL_STREAMS:
        (log_dir / stream).mkdir(parents=True, exist_ok=True)

    from .formatters import JSONFormatter, ConsoleFormatter

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)  # Capture everything, filter at handler level
    root.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, console_level.upper()))
    console_handler.setFormatter(ConsoleFormatter())
    root.addHandler(console_handler)

    file_level = getattr(logging, log_level.upper())

    for stream in ALL_STREAMS:
        handler = logging.handlers.RotatingFileHandler(
            log_dir / stream / f"{stream}.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        handler.setLevel(file_level)

        if json_logs:
            handler.setFormatter(JSONFormatter())
        else:
            handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(correlation_id)s - %(message)s'
            ))

        logger = logging.getLogger(f"{LOGGER_PREFIX}.{stream}")
        for old in list(logger.handlers):
            logger.removeHandler(old)
            old.close()
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        logger.propagate = True  # Also send to root logger (console)

    _loggers_initialized = True

    get_logger(LogStream.SYSTEM).info(
        "Logging system initialized",
        extra={
            "log_dir": str(log_dir),
            "log_level": log_level,
            "console_level": console_level,
            "json_logs": json_logs,
        }
    )


def get_logger(stream: str) -> logging.Logger:
    """
    Get logger for specific stream.

    Example:
        logger = get_logger(LogStream.TRADING)
        logger.info("Position closed", extra={"symbol": "SPY"})
    """
    return logging.getLogger(f"{LOGGER_PREFIX}.{stream}")
