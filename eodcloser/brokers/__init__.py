"""
Trading account connectors.
"""

from .base import (
    TradingAccount,
    OpenPosition,
    PendingOrder,
    CloseResult,
    CancelResult,
    BrokerConnectionError,
)

from .simulated import SimulatedTradingAccount

__all__ = [
    "TradingAccount",
    "OpenPosition",
    "PendingOrder",
    "CloseResult",
    "CancelResult",
    "BrokerConnectionError",
    "SimulatedTradingAccount",
]
