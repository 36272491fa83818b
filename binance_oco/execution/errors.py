"""
Error taxonomy for the OCO trade.

Fatal errors end the trade (ConformanceError at startup, PlacementError and
UnexpectedTerminalStatus once live). CancelError is not fatal: the cancel is
retried on the next qualifying price tick.
"""

from typing import Optional


class OcoError(Exception):
    """Base class for all trade errors."""


class ConfigError(OcoError):
    """Invalid configuration or trade parameters."""


class PairNotFoundError(OcoError):
    """Trading pair missing from exchange info."""


class ConformanceError(OcoError):
    """Value violates exchange step/tick/minimum rules."""

    def __init__(self, label: str, message: str):
        super().__init__(f"{label} {message}")
        self.label = label


class PlacementError(OcoError):
    """Exchange rejected or failed a place-order call."""

    def __init__(self, role: str, message: str, code: Optional[int] = None):
        super().__init__(f"{role} order placement failed: {message}")
        self.role = role
        self.code = code


class CancelError(OcoError):
    """Exchange rejected or failed a cancel-order call."""

    def __init__(self, role: str, message: str, code: Optional[int] = None):
        super().__init__(f"{role} order cancel failed: {message}")
        self.role = role
        self.code = code


class UnexpectedTerminalStatus(OcoError):
    """Order ended as CANCELED/REJECTED/EXPIRED without us asking for it."""

    def __init__(self, role: str, order_id: int, status: str, reason: str = ""):
        msg = f"{role} order #{order_id} {status}"
        if reason:
            msg += f" (reason: {reason})"
        super().__init__(msg)
        self.role = role
        self.order_id = order_id
        self.status = status
        self.reason = reason
