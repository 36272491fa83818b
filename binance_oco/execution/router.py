"""
Execution Router

Executes controller commands against the exchange and turns the
responses into controller events. Place/cancel are never retried;
read-only lookups (price, exchange info) get a short backoff.
"""

import itertools
import logging
import time
from decimal import Decimal
from typing import Any, Dict, List, Optional

import requests
from binance.exceptions import BinanceAPIException, BinanceRequestException

from binance_oco.execution.errors import CancelError, PlacementError
from binance_oco.execution.exchange import ExchangeClient
from binance_oco.execution.orders import (
    CancelAcked,
    CancelFailed,
    CancelOrder,
    Event,
    OrderPlaced,
    PairRules,
    PlaceOrder,
    PlacementFailed,
)
from binance_oco.monitoring.metrics import MetricsCollector
from binance_oco.utils.precision import format_decimal

logger = logging.getLogger(__name__)

TRANSPORT_ERRORS = (BinanceAPIException, BinanceRequestException, requests.RequestException)


def _error_detail(exc: Exception):
    """(message, code) from a python-binance or requests exception."""
    if isinstance(exc, BinanceAPIException):
        return exc.message, exc.code
    return str(exc), None


class ExecutionRouter:
    """
    Order routing for a single pair.

    Implements:
    1. PlaceOrder -> exchange.place_order -> OrderPlaced | PlacementFailed
    2. CancelOrder -> exchange.cancel_order -> CancelAcked | CancelFailed
    3. Snapshot lookups used once at startup (price, pair rules)
    """

    def __init__(
        self,
        pair: str,
        exchange: ExchangeClient,
        metrics: Optional[MetricsCollector] = None,
        dry_run: bool = False,
    ):
        """
        Initialize execution router.

        Args:
            pair: Trading pair, e.g. "BNBBTC"
            exchange: Exchange client
            metrics: Optional metrics collector
            dry_run: Log commands instead of sending them
        """
        self.pair = pair
        self.exchange = exchange
        self.metrics = metrics or MetricsCollector()
        self.dry_run = dry_run
        self._dry_run_ids = itertools.count(1)

    def execute(self, command) -> List[Event]:
        """Run one PlaceOrder/CancelOrder command and return its response events."""
        if isinstance(command, PlaceOrder):
            return [self.place(command)]
        if isinstance(command, CancelOrder):
            return [self.cancel(command)]
        raise TypeError(f"Router cannot execute {command!r}")

    def place(self, order: PlaceOrder) -> Event:
        desc = f"{order.side} {order.order_type} {format_decimal(order.quantity)} {self.pair}"
        if order.price is not None:
            desc += f" @ {format_decimal(order.price)}"
        if order.stop_price is not None:
            desc += f" (stop {format_decimal(order.stop_price)})"
        logger.info("[Router] Placing %s order: %s", order.role, desc)
        self.metrics.increment("orders_placed")

        if self.dry_run:
            status = "FILLED" if order.order_type == "MARKET" else "NEW"
            return OrderPlaced(order.role, next(self._dry_run_ids), status)

        try:
            response = self.exchange.place_order(
                self.pair, order.side, order.order_type, order.quantity, order.price, order.stop_price
            )
        except TRANSPORT_ERRORS as e:
            message, code = _error_detail(e)
            logger.error("[Router] %s order error: %s", order.role, message)
            self.metrics.increment("placement_errors")
            return PlacementFailed(order.role, PlacementError(order.role, message, code))

        return self._placed_event(order, response)

    def _placed_event(self, order: PlaceOrder, response: Dict[str, Any]) -> OrderPlaced:
        order_id = int(response.get("orderId", 0))
        status = response.get("status", "NEW")
        fills = response.get("fills") or []
        fee_asset = fills[0].get("commissionAsset") if fills else None
        logger.info("[Router] %s order #%s %s", order.role, order_id, status)
        return OrderPlaced(order.role, order_id, status, fee_asset)

    def cancel(self, command: CancelOrder) -> Event:
        logger.info("[Router] Cancelling %s order #%s", command.role, command.order_id)
        self.metrics.increment("cancels_issued")

        if self.dry_run:
            return CancelAcked(command.role)

        try:
            response = self.exchange.cancel_order(self.pair, command.order_id)
        except TRANSPORT_ERRORS as e:
            message, code = _error_detail(e)
            logger.warning("[Router] %s cancel error: %s", self.pair, message)
            self.metrics.increment("cancel_errors")
            return CancelFailed(command.role, CancelError(command.role, message, code))

        logger.info("[Router] %s cancel response: %s", self.pair, response.get("status", response))
        return CancelAcked(command.role)

    # ------------------------
    # Snapshot lookups
    # ------------------------
    def current_price(self) -> Decimal:
        price = self._with_retries(self.exchange.get_current_price, self.pair)
        logger.info("[Router] %s price: %s", self.pair, format_decimal(price))
        return price

    def pair_rules(self) -> PairRules:
        return self._with_retries(self.exchange.get_pair_rules, self.pair)

    def _with_retries(self, func, *args, **kwargs):
        """Call a read-only exchange function with retries/backoff."""
        max_attempts = 3
        delay = 0.5
        for attempt in range(1, max_attempts + 1):
            try:
                return func(*args, **kwargs)
            except TRANSPORT_ERRORS as e:
                self.metrics.increment("api_errors")
                if attempt == max_attempts:
                    raise
                logger.warning("[Router] %s failed (attempt %d/%d): %s", func.__name__, attempt, max_attempts, e)
                time.sleep(delay)
                delay *= 2
