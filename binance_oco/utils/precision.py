"""
Precision helpers for Binance step/tick/notional conformance.

Quantities round down to stepSize, prices round to the nearest tickSize.
All arithmetic is Decimal so values sent to the exchange are exact.
"""

from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Optional, Union

from binance_oco.execution.errors import ConfigError, ConformanceError
from binance_oco.execution.orders import PairRules, TradeIntent, TradeParams, ZERO


Number = Union[str, int, float, Decimal]


def to_decimal(value: Number) -> Decimal:
    """Convert via str so floats don't carry binary noise into Decimal."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_step(value: Decimal, step: Decimal) -> Decimal:
    """Round down to a multiple of step."""
    if step <= 0:
        return value
    return (value / step).to_integral_value(rounding=ROUND_DOWN) * step


def round_ticks(value: Decimal, tick: Decimal) -> Decimal:
    """Round to the nearest multiple of tick."""
    if tick <= 0:
        return value
    return (value / tick).to_integral_value(rounding=ROUND_HALF_UP) * tick


def format_decimal(value: Decimal) -> str:
    """
    Plain decimal string for the exchange (no exponent, no trailing zeros).

    Args:
        value: Price or quantity

    Returns:
        e.g. Decimal("0.00100000") -> "0.001", Decimal("1E+1") -> "10"
    """
    text = format(value.normalize(), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


class ParameterNormalizer:
    """
    Rounds and validates trade parameters against a pair's conformance rules.

    Every check raises ConformanceError; nothing is placed until all pass.
    """

    def __init__(self, rules: PairRules):
        self.rules = rules

    def normalize_quantity(self, label: str, raw: Number) -> Decimal:
        qty = round_step(to_decimal(raw), self.rules.step_size)
        if qty < self.rules.min_qty:
            raise ConformanceError(
                label,
                f"{format_decimal(qty)} does not meet minimum order amount {format_decimal(self.rules.min_qty)}.",
            )
        return qty

    def normalize_price(self, label: str, raw: Number) -> Decimal:
        price = round_ticks(to_decimal(raw), self.rules.tick_size)
        if price < self.rules.min_price:
            raise ConformanceError(
                label,
                f"{format_decimal(price)} does not meet minimum order price {format_decimal(self.rules.min_price)}.",
            )
        return price

    def check_notional(self, label: str, price: Decimal, quantity: Decimal) -> None:
        if price * quantity < self.rules.min_notional:
            raise ConformanceError(
                label,
                f"does not meet minimum order value {format_decimal(self.rules.min_notional)}.",
            )

    def normalize_intent(self, params: TradeParams) -> TradeIntent:
        """
        Turn raw parameters into a validated TradeIntent.

        Raises:
            ConfigError: No amount given
            ConformanceError: Any value below exchange minimums
        """
        amount_raw: Optional[Decimal] = None
        if params.quote_amount and params.buy_price and to_decimal(params.buy_price) > 0:
            amount_raw = to_decimal(params.quote_amount) / to_decimal(params.buy_price)
        elif params.amount:
            amount_raw = to_decimal(params.amount)
        if amount_raw is None:
            raise ConfigError("You must specify amount with -a or via -q")

        amount = self.normalize_quantity("Amount", amount_raw)

        scale_out_amount = None
        if params.scale_out_amount:
            scale_out_amount = self.normalize_quantity("Scale out amount", params.scale_out_amount)

        buy_price = None
        buy_limit_price = None
        if params.buy_price is not None and params.buy_price != "":
            buy_price = to_decimal(params.buy_price)
            if buy_price != ZERO:
                buy_price = self.normalize_price("Buy price", buy_price)
                self.check_notional("Buy order", buy_price, amount)
                if params.buy_limit_price:
                    buy_limit_price = self.normalize_price("Buy limit price", params.buy_limit_price)

        stop_price = None
        limit_price = None
        stop_sell_amount = amount
        if params.stop_price:
            stop_price = self.normalize_price("Stop price", params.stop_price)
            if params.limit_price:
                limit_price = self.normalize_price("Limit price", params.limit_price)
                self.check_notional("Stop order", limit_price, stop_sell_amount)
            else:
                self.check_notional("Stop order", stop_price, stop_sell_amount)

        target_price = None
        target_sell_amount = scale_out_amount or amount
        if params.target_price:
            target_price = self.normalize_price("Target price", params.target_price)
            self.check_notional("Target order", target_price, target_sell_amount)

            remaining = amount - target_sell_amount
            if remaining != ZERO and stop_price is not None:
                self.normalize_quantity(f"Stop amount after scale out ({format_decimal(remaining)})", remaining)
                self.check_notional("Stop order after scale out", stop_price, remaining)

        cancel_price = None
        if params.cancel_price:
            cancel_price = self.normalize_price("Cancel price", params.cancel_price)

        return TradeIntent(
            pair=params.pair.upper(),
            amount=amount,
            buy_price=buy_price,
            buy_limit_price=buy_limit_price,
            stop_price=stop_price,
            limit_price=limit_price,
            target_price=target_price,
            scale_out_amount=scale_out_amount,
            cancel_price=cancel_price,
            non_bnb_fees=params.non_bnb_fees,
            step_size=self.rules.step_size,
        )
