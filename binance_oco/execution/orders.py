"""
Order data structures: trade intent, pair rules, controller state,
and the events/commands exchanged with the controller.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal, Optional, Union


Role = Literal["ENTRY", "STOP", "TARGET"]
Side = Literal["BUY", "SELL"]
OrderType = Literal["MARKET", "LIMIT", "STOP_LOSS_LIMIT"]
OrderStatus = Literal["NEW", "PARTIALLY_FILLED", "FILLED", "CANCELED", "REJECTED", "EXPIRED"]
Outcome = Literal["SETTLED", "CANCELLED", "FAILED"]
NotifyKind = Literal["entered", "stop_hit", "target_hit", "cancelled"]

ZERO = Decimal("0")


@dataclass(frozen=True)
class PairRules:
    """Conformance rules for one pair (LOT_SIZE, PRICE_FILTER, MIN_NOTIONAL)."""

    step_size: Decimal
    min_qty: Decimal
    tick_size: Decimal
    min_price: Decimal
    min_notional: Decimal

    @classmethod
    def from_symbol_info(cls, symbol_info: dict) -> "PairRules":
        """Build from a Binance exchangeInfo symbol entry."""
        filters = {f["filterType"]: f for f in symbol_info.get("filters", [])}
        lot = filters["LOT_SIZE"]
        price = filters["PRICE_FILTER"]
        notional = filters.get("MIN_NOTIONAL") or filters.get("NOTIONAL") or {}
        return cls(
            step_size=Decimal(lot["stepSize"]),
            min_qty=Decimal(lot["minQty"]),
            tick_size=Decimal(price["tickSize"]),
            min_price=Decimal(price["minPrice"]),
            min_notional=Decimal(notional.get("minNotional", "0")),
        )


@dataclass
class TradeParams:
    """
    Raw trade parameters as given on the command line (strings or numbers).

    Converted to a TradeIntent by ParameterNormalizer.normalize_intent.
    """

    pair: str
    amount: Optional[str] = None
    quote_amount: Optional[str] = None  # alternative to amount for priced entries
    buy_price: Optional[str] = None
    buy_limit_price: Optional[str] = None
    stop_price: Optional[str] = None
    limit_price: Optional[str] = None
    target_price: Optional[str] = None
    cancel_price: Optional[str] = None
    scale_out_amount: Optional[str] = None
    non_bnb_fees: bool = False


@dataclass(frozen=True)
class TradeIntent:
    """
    Normalized trade parameters.

    buy_price None means the position is already held; ZERO means market entry.
    """

    pair: str
    amount: Decimal
    buy_price: Optional[Decimal] = None
    buy_limit_price: Optional[Decimal] = None
    stop_price: Optional[Decimal] = None
    limit_price: Optional[Decimal] = None  # stop-limit sell price
    target_price: Optional[Decimal] = None
    scale_out_amount: Optional[Decimal] = None
    cancel_price: Optional[Decimal] = None
    non_bnb_fees: bool = False
    step_size: Optional[Decimal] = None  # LOT_SIZE step for post-fee sell amounts

    @property
    def is_oco(self) -> bool:
        return self.stop_price is not None and self.target_price is not None


@dataclass(frozen=True)
class ControllerState:
    """
    Everything the OCO state machine knows. Order ids are 0 when no order
    is outstanding for that role.
    """

    intent: TradeIntent
    stop_sell_amount: Decimal
    target_sell_amount: Decimal
    entry_order_id: int = 0
    stop_order_id: int = 0
    target_order_id: int = 0
    is_cancelling: bool = False
    is_stop_entry: bool = False
    is_limit_entry: bool = False
    is_replacing_stop: bool = False  # cancelling the stop to re-place it for the merged amount
    entry_filled: bool = False  # fee adjustment already applied
    outcome: Optional[Outcome] = None
    error: Optional[Exception] = None

    @classmethod
    def initial(cls, intent: TradeIntent) -> "ControllerState":
        return cls(
            intent=intent,
            stop_sell_amount=intent.amount,
            target_sell_amount=intent.scale_out_amount or intent.amount,
        )

    @property
    def done(self) -> bool:
        return self.outcome is not None

    def role_of(self, order_id: int) -> Optional[Role]:
        """Map an exchange order id to the role it currently plays."""
        if not order_id:
            return None
        if order_id == self.entry_order_id:
            return "ENTRY"
        if order_id == self.stop_order_id:
            return "STOP"
        if order_id == self.target_order_id:
            return "TARGET"
        return None


# ------------------------
# Events (controller inputs)
# ------------------------

@dataclass(frozen=True)
class Start:
    """Kick off the trade. current_price is only needed for a priced entry."""

    current_price: Optional[Decimal] = None


@dataclass(frozen=True)
class PriceTick:
    price: Decimal


@dataclass(frozen=True)
class OrderPlaced:
    """Response to a PlaceOrder command."""

    role: Role
    order_id: int
    status: str = "NEW"
    fee_asset: Optional[str] = None  # commission asset of the first fill


@dataclass(frozen=True)
class PlacementFailed:
    role: Role
    error: Exception


@dataclass(frozen=True)
class CancelAcked:
    role: Role


@dataclass(frozen=True)
class CancelFailed:
    role: Role
    error: Exception


@dataclass(frozen=True)
class EntryFilled:
    order_id: int
    fee_asset: Optional[str] = None


@dataclass(frozen=True)
class StopFilled:
    order_id: int


@dataclass(frozen=True)
class TargetFilled:
    order_id: int


@dataclass(frozen=True)
class OrderTerminated:
    """Order reached CANCELED/REJECTED/EXPIRED on the exchange."""

    role: Role
    order_id: int
    status: str
    reason: str = ""


Event = Union[
    Start, PriceTick, OrderPlaced, PlacementFailed, CancelAcked, CancelFailed,
    EntryFilled, StopFilled, TargetFilled, OrderTerminated,
]


# ------------------------
# Commands (controller outputs)
# ------------------------

@dataclass(frozen=True)
class PlaceOrder:
    role: Role
    side: Side
    order_type: OrderType
    quantity: Decimal
    price: Optional[Decimal] = None  # None for MARKET
    stop_price: Optional[Decimal] = None  # trigger for STOP_LOSS_LIMIT


@dataclass(frozen=True)
class CancelOrder:
    role: Role
    order_id: int


@dataclass(frozen=True)
class Notify:
    kind: NotifyKind


@dataclass(frozen=True)
class Finish:
    outcome: Outcome
    error: Optional[Exception] = None


Command = Union[PlaceOrder, CancelOrder, Notify, Finish]


@dataclass
class TradeResult:
    """Terminal result handed back to the host process."""

    outcome: Outcome
    error: Optional[Exception] = None

    @property
    def exit_code(self) -> int:
        return 1 if self.outcome == "FAILED" else 0
