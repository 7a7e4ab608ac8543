"""
Logging infrastructure for the EOD closer.

Features:
- JSON structured logging in rotating files
- Correlation ID tracking (one ID per trigger run)
- Separate streams for system, schedule, trading and notification events
"""

from .logger import (
    get_logger,
    setup_logging,
    LogContext,
    set_correlation_id,
    get_correlation_id,
    LogStream,
)

from .formatters import (
    JSONFormatter,
    ConsoleFormatter,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "LogContext",
    "set_correlation_id",
    "get_correlation_id",
    "LogStream",
    "JSONFormatter",
    "ConsoleFormatter",
]
