"""Execution: OCO controller, order routing, Binance adapter."""

from binance_oco.execution.router import ExecutionRouter
from binance_oco.execution.controller import handle_event
from binance_oco.execution.orders import ControllerState, TradeIntent, TradeParams, TradeResult

__all__ = ["ExecutionRouter", "handle_event", "ControllerState", "TradeIntent", "TradeParams", "TradeResult"]
