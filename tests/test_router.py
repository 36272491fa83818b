from decimal import Decimal as D
from unittest.mock import MagicMock

import pytest
import requests

from binance_oco.execution.errors import CancelError, PlacementError
from binance_oco.execution.exchange import BinanceExchange
from binance_oco.execution.orders import (
    CancelAcked,
    CancelFailed,
    CancelOrder,
    Notify,
    OrderPlaced,
    PlaceOrder,
    PlacementFailed,
)
from binance_oco.execution.router import ExecutionRouter
from binance_oco.core.config import BinanceConfig


def test_place_returns_order_placed_with_fee_asset(exchange):
    exchange.fee_asset = "ETH"
    router = ExecutionRouter("BNBBTC", exchange)
    event = router.place(PlaceOrder("ENTRY", "BUY", "MARKET", D("1")))
    assert event == OrderPlaced("ENTRY", 100, "FILLED", "ETH")
    assert router.metrics.get("orders_placed") == 1


def test_place_error_becomes_placement_failed(exchange):
    exchange.fail_place_roles = {"LIMIT"}
    router = ExecutionRouter("BNBBTC", exchange)
    event = router.place(PlaceOrder("TARGET", "SELL", "LIMIT", D("1"), price=D("0.003")))
    assert isinstance(event, PlacementFailed)
    assert isinstance(event.error, PlacementError)
    assert event.error.code == -2010
    assert router.metrics.get("placement_errors") == 1


def test_cancel_ack_and_failure(exchange):
    router = ExecutionRouter("BNBBTC", exchange)
    assert router.cancel(CancelOrder("STOP", 7)) == CancelAcked("STOP")
    exchange.fail_cancels = 1
    event = router.cancel(CancelOrder("STOP", 7))
    assert isinstance(event, CancelFailed)
    assert isinstance(event.error, CancelError)
    assert exchange.cancelled == [7]


def test_dry_run_sends_nothing(exchange):
    router = ExecutionRouter("BNBBTC", exchange, dry_run=True)
    first = router.place(PlaceOrder("ENTRY", "BUY", "MARKET", D("1")))
    second = router.place(PlaceOrder("STOP", "SELL", "STOP_LOSS_LIMIT", D("1"), D("0.001"), D("0.001")))
    assert first == OrderPlaced("ENTRY", 1, "FILLED")
    assert second == OrderPlaced("STOP", 2, "NEW")
    assert router.cancel(CancelOrder("STOP", 2)) == CancelAcked("STOP")
    assert exchange.placed == [] and exchange.cancelled == []


def test_execute_rejects_non_exchange_commands(exchange):
    with pytest.raises(TypeError):
        ExecutionRouter("BNBBTC", exchange).execute(Notify("entered"))


def test_current_price_retries_transport_errors(exchange, monkeypatch):
    monkeypatch.setattr("binance_oco.execution.router.time.sleep", lambda s: None)
    exchange.price_failures = 2
    router = ExecutionRouter("BNBBTC", exchange)
    assert router.current_price() == D("0.0018")
    assert router.metrics.get("api_errors") == 2


def test_current_price_gives_up_after_three_attempts(exchange, monkeypatch):
    monkeypatch.setattr("binance_oco.execution.router.time.sleep", lambda s: None)
    exchange.price_failures = 3
    with pytest.raises(requests.ConnectionError):
        ExecutionRouter("BNBBTC", exchange).current_price()


def test_binance_exchange_builds_order_params():
    client = MagicMock()
    client.create_order.return_value = {"orderId": 1, "status": "NEW"}
    ex = BinanceExchange(BinanceConfig(api_key="k", api_secret="s"), client=client)

    ex.place_order("BNBBTC", "SELL", "STOP_LOSS_LIMIT", D("6.000"), D("0.00100000"), D("0.0010"))
    client.create_order.assert_called_with(
        symbol="BNBBTC",
        side="SELL",
        type="STOP_LOSS_LIMIT",
        quantity="6",
        newOrderRespType="FULL",
        price="0.001",
        timeInForce="GTC",
        stopPrice="0.001",
    )

    ex.place_order("BNBBTC", "BUY", "MARKET", D("1"))
    client.create_order.assert_called_with(
        symbol="BNBBTC", side="BUY", type="MARKET", quantity="1", newOrderRespType="FULL"
    )


def test_binance_exchange_pair_rules_and_price():
    from binance_oco.execution.errors import PairNotFoundError
    from conftest import BNBBTC_SYMBOL_INFO

    client = MagicMock()
    client.get_symbol_info.side_effect = lambda symbol: BNBBTC_SYMBOL_INFO if symbol == "BNBBTC" else None
    client.get_symbol_ticker.return_value = {"symbol": "BNBBTC", "price": "0.00181000"}
    ex = BinanceExchange(BinanceConfig(), client=client)

    assert ex.get_pair_rules("BNBBTC").step_size == D("0.01")
    assert ex.get_current_price("BNBBTC") == D("0.00181")
    with pytest.raises(PairNotFoundError):
        ex.get_pair_rules("XXXBTC")
