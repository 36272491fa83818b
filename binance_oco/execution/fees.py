"""
Fee-adjusted sell amounts.

Binance takes the trading fee out of the bought asset unless it is paid in
BNB, so the sellable quantity after a buy fill depends on the commission asset.
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional

from binance_oco.execution.orders import ControllerState
from binance_oco.utils.precision import round_step

NON_BNB_TRADING_FEE = Decimal("0.001")
FEE_DISCOUNT_ASSET = "BNB"


@dataclass(frozen=True)
class FeeSchedule:
    rate: Decimal = NON_BNB_TRADING_FEE
    discount_asset: str = FEE_DISCOUNT_ASSET


DEFAULT_FEES = FeeSchedule()


def adjust_for_fee(
    fee_asset: Optional[str],
    sell_amount: Decimal,
    non_bnb_fees: bool = False,
    fees: FeeSchedule = DEFAULT_FEES,
) -> Decimal:
    """
    Sellable quantity after the buy fee.

    Args:
        fee_asset: Commission asset reported on the fill
        sell_amount: Quantity we intended to sell
        non_bnb_fees: Assume the fee was not paid in the discount asset
        fees: Fee rate and discount asset

    Returns:
        sell_amount unchanged when the fee went to the discount asset,
        otherwise sell_amount * (1 - rate)
    """
    if fee_asset == fees.discount_asset and not non_bnb_fees:
        return sell_amount
    return sell_amount * (Decimal(1) - fees.rate)


def recalculate_sell_amounts(
    state: ControllerState,
    fee_asset: Optional[str],
    fees: FeeSchedule = DEFAULT_FEES,
) -> ControllerState:
    """
    Apply adjust_for_fee to both pending sell legs. Only called on entry fill.

    When the intent carries a step size the results are rounded down to it,
    so the sell orders pass LOT_SIZE.
    """
    intent = state.intent
    stop_amount = adjust_for_fee(fee_asset, state.stop_sell_amount, intent.non_bnb_fees, fees)
    target_amount = adjust_for_fee(fee_asset, state.target_sell_amount, intent.non_bnb_fees, fees)
    if intent.step_size:
        stop_amount = round_step(stop_amount, intent.step_size)
        target_amount = round_step(target_amount, intent.step_size)
    return replace(state, stop_sell_amount=stop_amount, target_sell_amount=target_amount)
