"""
End-of-day action dispatch.
"""

from .report import ActionFailure, ClosingReport
from .messages import format_closing_result, format_pre_alert
from .closer import EndOfDayDispatcher

__all__ = [
    "ActionFailure",
    "ClosingReport",
    "format_closing_result",
    "format_pre_alert",
    "EndOfDayDispatcher",
]
