"""
Order Lifecycle Controller

Pure OCO state machine: handle_event(state, event) -> (state, commands).

Flow:
1. Start: choose entry (none / market / limit / stop-entry)
2. Entry fill: adjust sell amounts for fees once, place the sell side
3. Sell side: stop-limit first, target limit when price reaches target
   (cancel stop -> place target), back to stop when price falls to stop.
   With both legs resting (scale-out), reaching the target cancels the
   stop and falling to the stop cancels the target.
4. Stop or target fill settles the trade

No I/O happens here. Commands are executed by the router and their
responses come back as events.
"""

from dataclasses import replace
from typing import List, Literal, Tuple

from binance_oco.execution.errors import UnexpectedTerminalStatus
from binance_oco.execution.fees import DEFAULT_FEES, FeeSchedule, recalculate_sell_amounts
from binance_oco.execution.orders import (
    CancelAcked,
    CancelFailed,
    CancelOrder,
    Command,
    ControllerState,
    EntryFilled,
    Event,
    Finish,
    Notify,
    OrderPlaced,
    OrderTerminated,
    Outcome,
    PlaceOrder,
    PlacementFailed,
    PriceTick,
    Role,
    Start,
    StopFilled,
    TargetFilled,
    ZERO,
)

Transition = Tuple[ControllerState, List[Command]]

Phase = Literal[
    "NO_ENTRY_NEEDED",
    "ENTRY_PENDING",
    "ENTRY_FILLED",
    "SELL_PENDING",
    "SETTLED",
    "CANCELLED",
    "FAILED",
]

TERMINAL_STATUSES = ("CANCELED", "REJECTED", "EXPIRED")


def phase(state: ControllerState) -> Phase:
    """Coarse lifecycle phase, for logging."""
    if state.outcome is not None:
        return state.outcome
    if state.stop_order_id or state.target_order_id:
        return "SELL_PENDING"
    if state.intent.buy_price is None:
        return "NO_ENTRY_NEEDED"
    return "ENTRY_FILLED" if state.entry_filled else "ENTRY_PENDING"


def sell_sub_state(state: ControllerState) -> str:
    """STOP_ONLY / TARGET_ONLY / BOTH, or "" when no sell order rests."""
    if state.stop_order_id and state.target_order_id:
        return "BOTH"
    if state.stop_order_id:
        return "STOP_ONLY"
    if state.target_order_id:
        return "TARGET_ONLY"
    return ""


def handle_event(state: ControllerState, event: Event, fees: FeeSchedule = DEFAULT_FEES) -> Transition:
    """
    Apply one event to the state.

    Args:
        state: Current controller state
        event: Next event from the reactor
        fees: Fee schedule used for the one-time post-fill adjustment

    Returns:
        (new_state, commands) where commands are to be executed in order
    """
    if state.done:
        return state, []

    if isinstance(event, Start):
        return _start(state, event)
    if isinstance(event, PriceTick):
        return _on_price_tick(state, event)
    if isinstance(event, OrderPlaced):
        return _on_order_placed(state, event, fees)
    if isinstance(event, PlacementFailed):
        return _fail(state, event.error)
    if isinstance(event, CancelAcked):
        return _on_cancel_acked(state, event)
    if isinstance(event, CancelFailed):
        return replace(state, is_cancelling=False, is_replacing_stop=False), []
    if isinstance(event, EntryFilled):
        if not state.entry_order_id or event.order_id != state.entry_order_id:
            return state, []
        return _entry_filled(state, event.fee_asset, fees)
    if isinstance(event, StopFilled):
        if not state.stop_order_id or event.order_id != state.stop_order_id:
            return state, []
        return _sell_filled(state, "STOP")
    if isinstance(event, TargetFilled):
        if not state.target_order_id or event.order_id != state.target_order_id:
            return state, []
        return _sell_filled(state, "TARGET")
    if isinstance(event, OrderTerminated):
        return _on_order_terminated(state, event)
    raise TypeError(f"Unknown event: {event!r}")


# ------------------------
# Entry
# ------------------------

def _start(state: ControllerState, event: Start) -> Transition:
    intent = state.intent
    if intent.buy_price is None:
        return _place_sell_order(state)

    if intent.buy_price == ZERO:
        return state, [PlaceOrder("ENTRY", "BUY", "MARKET", intent.amount)]

    if event.current_price is None:
        raise ValueError("current price is required to choose between limit and stop entry")

    if intent.buy_price > event.current_price:
        # Breakout entry: buy once price rises through buy_price
        state = replace(state, is_stop_entry=True)
        order = PlaceOrder(
            "ENTRY",
            "BUY",
            "STOP_LOSS_LIMIT",
            intent.amount,
            price=intent.buy_limit_price or intent.buy_price,
            stop_price=intent.buy_price,
        )
    else:
        state = replace(state, is_limit_entry=True)
        order = PlaceOrder("ENTRY", "BUY", "LIMIT", intent.amount, price=intent.buy_price)
    return state, [order]


def _entry_filled(state: ControllerState, fee_asset, fees: FeeSchedule) -> Transition:
    if state.entry_filled:
        return state, []
    state = replace(state, entry_order_id=0, entry_filled=True)
    state = recalculate_sell_amounts(state, fee_asset, fees)
    state, commands = _place_sell_order(state)
    return state, [Notify("entered")] + commands


# ------------------------
# Sell side
# ------------------------

def _stop_order(state: ControllerState) -> PlaceOrder:
    intent = state.intent
    return PlaceOrder(
        "STOP",
        "SELL",
        "STOP_LOSS_LIMIT",
        state.stop_sell_amount,
        price=intent.limit_price or intent.stop_price,
        stop_price=intent.stop_price,
    )


def _place_sell_order(state: ControllerState) -> Transition:
    if state.intent.stop_price is not None:
        return state, [_stop_order(state)]
    if state.intent.target_price is not None:
        return _place_target_order(state)
    return _finish(state, "SETTLED")


def _place_target_order(state: ControllerState) -> Transition:
    intent = state.intent
    commands: List[Command] = [
        PlaceOrder("TARGET", "SELL", "LIMIT", state.target_sell_amount, price=intent.target_price)
    ]
    if intent.stop_price is not None and state.target_sell_amount != state.stop_sell_amount:
        # Scale out: keep the remainder protected by a smaller stop
        state = replace(state, stop_sell_amount=state.stop_sell_amount - state.target_sell_amount)
        commands.append(_stop_order(state))
    return state, commands


def _on_order_placed(state: ControllerState, event: OrderPlaced, fees: FeeSchedule) -> Transition:
    if event.status in TERMINAL_STATUSES:
        return _fail(state, UnexpectedTerminalStatus(event.role, event.order_id, event.status))

    if event.role == "ENTRY":
        if event.status == "FILLED":
            return _entry_filled(state, event.fee_asset, fees)
        return replace(state, entry_order_id=event.order_id), []

    if event.role == "STOP":
        state = replace(state, stop_order_id=event.order_id)
    else:
        state = replace(state, target_order_id=event.order_id)
    if event.status == "FILLED":
        return _sell_filled(state, event.role)
    return state, []


def _sell_filled(state: ControllerState, role: Role) -> Transition:
    if role == "STOP":
        state = replace(state, stop_order_id=0)
        notify = Notify("stop_hit")
    else:
        state = replace(state, target_order_id=0)
        notify = Notify("target_hit")
    state, commands = _finish(state, "SETTLED")
    return state, [notify] + commands


# ------------------------
# Price-driven cancellation
# ------------------------

def _on_price_tick(state: ControllerState, event: PriceTick) -> Transition:
    if state.is_cancelling:
        return state, []

    intent = state.intent
    price = event.price

    if state.entry_order_id:
        if intent.cancel_price is None:
            return state, []
        if (state.is_stop_entry and price <= intent.cancel_price) or (
            state.is_limit_entry and price >= intent.cancel_price
        ):
            return _cancel(state, "ENTRY", state.entry_order_id)
        return state, []

    if not intent.is_oco:
        return state, []

    if state.stop_order_id and price >= intent.target_price:
        return _cancel(state, "STOP", state.stop_order_id)
    if state.target_order_id and price <= intent.stop_price:
        return _cancel(state, "TARGET", state.target_order_id)
    return state, []


def _cancel(state: ControllerState, role: Role, order_id: int) -> Transition:
    return replace(state, is_cancelling=True), [CancelOrder(role, order_id)]


def _on_cancel_acked(state: ControllerState, event: CancelAcked) -> Transition:
    state = replace(state, is_cancelling=False)

    if event.role == "ENTRY":
        state = replace(state, entry_order_id=0)
        state, commands = _finish(state, "CANCELLED")
        return state, [Notify("cancelled")] + commands

    if event.role == "STOP":
        state = replace(state, stop_order_id=0)
        if state.is_replacing_stop:
            state = replace(state, is_replacing_stop=False)
            return state, [_stop_order(state)]
        if state.target_order_id:
            # Target already rests on its own quantity
            return state, []
        return _place_target_order(state)

    state = replace(state, target_order_id=0)
    if state.target_sell_amount != state.stop_sell_amount:
        # Only the stop survives, so it protects the whole position again
        state = replace(state, stop_sell_amount=state.stop_sell_amount + state.target_sell_amount)
    if state.stop_order_id:
        # Resting stop covers only the remainder; swap it for the merged amount
        return _cancel(replace(state, is_replacing_stop=True), "STOP", state.stop_order_id)
    return state, [_stop_order(state)]


def _on_order_terminated(state: ControllerState, event: OrderTerminated) -> Transition:
    if state.role_of(event.order_id) != event.role:
        return state, []
    if event.status == "CANCELED" and state.is_cancelling:
        # Stream echo of the cancel we requested
        return state, []
    return _fail(state, UnexpectedTerminalStatus(event.role, event.order_id, event.status, event.reason))


# ------------------------
# Terminal
# ------------------------

def _finish(state: ControllerState, outcome: Outcome) -> Transition:
    return replace(state, outcome=outcome), [Finish(outcome)]


def _fail(state: ControllerState, error: Exception) -> Transition:
    return replace(state, outcome="FAILED", error=error), [Finish("FAILED", error)]
