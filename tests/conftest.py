"""Shared fakes: an in-memory exchange and a recording notifier."""

import itertools
import json
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pytest
from binance.exceptions import BinanceAPIException

from binance_oco.execution.errors import PairNotFoundError
from binance_oco.execution.orders import PairRules

BNBBTC_SYMBOL_INFO = {
    "symbol": "BNBBTC",
    "filters": [
        {"filterType": "PRICE_FILTER", "minPrice": "0.00000010", "maxPrice": "100000.00000000", "tickSize": "0.00000010"},
        {"filterType": "LOT_SIZE", "minQty": "0.01000000", "maxQty": "100000.00000000", "stepSize": "0.01000000"},
        {"filterType": "MIN_NOTIONAL", "minNotional": "0.00010000"},
    ],
}


def api_error(code: int, msg: str) -> BinanceAPIException:
    return BinanceAPIException(None, 400, f'{{"code": {code}, "msg": "{msg}"}}')


class FakeExchange:
    """In-memory ExchangeClient with deterministic order ids starting at 100."""

    def __init__(self, price: str = "0.0018", fee_asset: str = "BNB", fill_market: bool = True):
        self.price = Decimal(price)
        self.fee_asset = fee_asset
        self.fill_market = fill_market
        self.placed = []
        self.cancelled = []
        self.fail_place_roles = set()  # order types that raise
        self.fail_cancels = 0
        self.price_failures = 0
        self.scripted = []  # messages pushed when streams start
        self.callback = None
        self.streams_stopped = False
        self._ids = itertools.count(100)

    def place_order(self, pair, side, order_type, quantity, price=None, stop_price=None):
        if order_type in self.fail_place_roles:
            raise api_error(-2010, "Account has insufficient balance for requested action.")
        order_id = next(self._ids)
        self.placed.append({
            "orderId": order_id,
            "pair": pair,
            "side": side,
            "type": order_type,
            "quantity": quantity,
            "price": price,
            "stop_price": stop_price,
        })
        filled = order_type == "MARKET" and self.fill_market
        return {
            "orderId": order_id,
            "status": "FILLED" if filled else "NEW",
            "type": order_type,
            "fills": [{"commissionAsset": self.fee_asset}] if filled else [],
        }

    def cancel_order(self, pair, order_id):
        if self.fail_cancels:
            self.fail_cancels -= 1
            raise api_error(-2011, "Unknown order sent.")
        self.cancelled.append(order_id)
        return {"orderId": order_id, "status": "CANCELED"}

    def get_current_price(self, pair):
        if self.price_failures:
            self.price_failures -= 1
            import requests
            raise requests.ConnectionError("connection reset")
        return self.price

    def get_pair_rules(self, pair):
        if pair != "BNBBTC":
            raise PairNotFoundError(f"Could not pull exchange info for {pair}")
        return PairRules.from_symbol_info(BNBBTC_SYMBOL_INFO)

    def start_streams(self, pair, on_message):
        self.callback = on_message
        for msg in self.scripted:
            on_message(msg)

    def stop_streams(self):
        self.streams_stopped = True


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, pair: str, kind: str) -> bool:
        self.sent.append((pair, kind))
        return True


def trade_msg(price: str, pair: str = "BNBBTC") -> dict:
    return {"e": "trade", "s": pair, "p": price, "q": "1.00"}


def report_msg(order_id: int, status: str, fee_asset: Optional[str] = None, reason: str = "NONE") -> dict:
    return {
        "e": "executionReport",
        "s": "BNBBTC",
        "S": "SELL",
        "o": "LIMIT",
        "i": order_id,
        "p": "0.003",
        "q": "1.00",
        "X": status,
        "N": fee_asset,
        "r": reason,
    }


@pytest.fixture
def rules() -> PairRules:
    return PairRules.from_symbol_info(BNBBTC_SYMBOL_INFO)


@pytest.fixture
def exchange() -> FakeExchange:
    return FakeExchange()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


def read_journal(directory) -> list:
    """Records of journal.jsonl in a StateStore directory."""
    path = Path(directory) / "journal.jsonl"
    return [json.loads(line) for line in path.read_text().splitlines()]
