"""
Market Event Reactor: single consumer of price ticks and order updates.

Websocket threads only enqueue raw messages. The reactor loop turns each
message into a controller event, applies it, executes the resulting
commands through the router and feeds the router's responses back in
before looking at the next stream message.
"""

import logging
import queue
from collections import deque
from decimal import Decimal
from typing import Any, Dict, Optional

from binance_oco.core.config import Config
from binance_oco.execution.controller import handle_event, phase, sell_sub_state
from binance_oco.execution.orders import (
    CancelFailed,
    CancelOrder,
    ControllerState,
    EntryFilled,
    Event,
    Finish,
    Notify,
    OrderTerminated,
    PlaceOrder,
    PriceTick,
    Start,
    StopFilled,
    TargetFilled,
    TradeIntent,
    TradeResult,
    ZERO,
)
from binance_oco.execution.router import ExecutionRouter
from binance_oco.monitoring.notifier import TelegramNotifier
from binance_oco.utils.state_store import StateStore

logger = logging.getLogger(__name__)

IGNORED_STATUSES = ("NEW", "PARTIALLY_FILLED")


class Reactor:
    """
    Drives one OCO trade from start to a terminal outcome.

    Usage:
        reactor = Reactor(config, intent, router, notifier, store)
        result = reactor.run()  # blocks until SETTLED / CANCELLED / FAILED
    """

    def __init__(
        self,
        config: Config,
        intent: TradeIntent,
        router: ExecutionRouter,
        notifier: Optional[TelegramNotifier] = None,
        store: Optional[StateStore] = None,
    ):
        """
        Initialize reactor.

        Args:
            config: System configuration
            intent: Normalized trade intent
            router: Execution router for the intent's pair
            notifier: Notification sink (optional)
            store: Trade journal (optional)
        """
        self.config = config
        self.intent = intent
        self.router = router
        self.notifier = notifier
        self.store = store
        self.metrics = router.metrics
        self.fees = config.fees.schedule()
        self.state = ControllerState.initial(intent)
        self.inbox: "queue.Queue[Dict[str, Any]]" = queue.Queue()
        self.running = False
        self.result: Optional[TradeResult] = None

    # ------------------------
    # Stream side (any thread)
    # ------------------------
    def on_message(self, msg: Dict[str, Any]):
        """Websocket callback; safe to call from any thread."""
        self.inbox.put(msg)

    # ------------------------
    # Reactor thread
    # ------------------------
    def start(self):
        """Place the entry (or the sell side when no entry is requested)."""
        current_price = None
        if self.intent.buy_price is not None and self.intent.buy_price > ZERO:
            current_price = self.router.current_price()
        self.dispatch(Start(current_price))

    def dispatch(self, event: Event):
        """Apply an event plus every response event its commands produce."""
        pending = deque([event])
        while pending and not self.state.done:
            ev = pending.popleft()
            self._journal("in", ev)
            if isinstance(ev, CancelFailed):
                logger.warning("[Reactor] %s", ev.error)

            before = phase(self.state)
            self.state, commands = handle_event(self.state, ev, self.fees)
            after = phase(self.state)
            if after != before:
                logger.info("[Reactor] %s -> %s %s", before, after, sell_sub_state(self.state))

            for cmd in commands:
                self._journal("out", cmd)
                if isinstance(cmd, (PlaceOrder, CancelOrder)):
                    pending.extend(self.router.execute(cmd))
                elif isinstance(cmd, Notify):
                    if self.notifier is not None:
                        self.notifier.notify(self.intent.pair, cmd.kind)
                elif isinstance(cmd, Finish):
                    self.result = TradeResult(cmd.outcome, cmd.error)

    def handle_message(self, msg: Dict[str, Any]):
        """Translate one raw stream message and dispatch it."""
        event = self.translate(msg)
        if event is not None:
            self.dispatch(event)

    def translate(self, msg: Dict[str, Any]) -> Optional[Event]:
        """
        Raw websocket message -> controller event.

        Returns None for messages that need no reaction (other symbols,
        unknown order ids, NEW/PARTIALLY_FILLED updates, stream errors).
        """
        kind = msg.get("e")

        if kind == "error":
            logger.warning("[Reactor] Stream error: %s", msg.get("m", msg))
            self.metrics.increment("stream_errors")
            return None

        if kind == "trade":
            if msg.get("s") != self.intent.pair:
                return None
            self.metrics.increment("ticks")
            price = Decimal(str(msg["p"]))
            logger.debug("[Reactor] %s trade update. price: %s", self.intent.pair, price)
            return PriceTick(price)

        if kind == "executionReport":
            self.metrics.increment("order_updates")
            order_id = int(msg["i"])
            status = msg.get("X", "")
            logger.info(
                "[Reactor] %s %s %s ORDER #%s (%s) price: %s, quantity: %s",
                msg.get("s"), msg.get("S"), msg.get("o"), order_id, status, msg.get("p"), msg.get("q"),
            )

            role = self.state.role_of(order_id)
            if role is None or status in IGNORED_STATUSES:
                return None

            if status == "FILLED":
                if role == "ENTRY":
                    return EntryFilled(order_id, msg.get("N"))
                if role == "STOP":
                    return StopFilled(order_id)
                return TargetFilled(order_id)

            logger.error("[Reactor] Order %s. Reason: %s", status, msg.get("r"))
            return OrderTerminated(role, order_id, status, msg.get("r") or "")

        return None

    def run_forever(self, poll_sec: float = 1.0) -> Optional[TradeResult]:
        """
        Subscribe to streams, start the trade and process events until done.

        Blocks until a terminal outcome or stop(). Returns None if stopped
        before the trade finished.
        """
        self.running = True
        exchange = self.router.exchange
        logger.info("[Reactor] Started. pair=%s", self.intent.pair)
        exchange.start_streams(self.intent.pair, self.on_message)
        try:
            self.start()
            while self.running and not self.state.done:
                try:
                    msg = self.inbox.get(timeout=poll_sec)
                except queue.Empty:
                    continue
                self.handle_message(msg)
        finally:
            exchange.stop_streams()
            self.running = False

        if self.result is not None:
            logger.info("[Reactor] Trade finished: %s", self.result.outcome)
            self._save_outcome()
        return self.result

    def stop(self):
        """Stop the reactor loop."""
        logger.info("[Reactor] Stopping...")
        self.running = False

    # ------------------------
    # Helpers
    # ------------------------
    def _journal(self, direction: str, obj):
        if self.store is not None:
            self.store.journal(direction, obj)

    def _save_outcome(self):
        if self.store is None:
            return
        self.store.save_outcome({
            "pair": self.intent.pair,
            "outcome": self.result.outcome,
            "error": str(self.result.error) if self.result.error else None,
            "stop_sell_amount": str(self.state.stop_sell_amount),
            "target_sell_amount": str(self.state.target_sell_amount),
            "metrics": self.metrics.snapshot(),
        })
