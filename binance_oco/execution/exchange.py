"""
Binance spot exchange adapter.

REST via python-binance Client, push streams via ThreadedWebsocketManager
(trade socket for price ticks, user data socket for execution reports).
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Protocol

from binance import ThreadedWebsocketManager
from binance.client import Client
from binance.enums import TIME_IN_FORCE_GTC

from binance_oco.execution.errors import PairNotFoundError
from binance_oco.execution.orders import PairRules
from binance_oco.utils.precision import format_decimal

if TYPE_CHECKING:
    from binance_oco.core.config import BinanceConfig

StreamCallback = Callable[[Dict[str, Any]], None]


class ExchangeClient(Protocol):
    """What the router and reactor need from an exchange."""

    def place_order(
        self,
        pair: str,
        side: str,
        order_type: str,
        quantity: Decimal,
        price: Optional[Decimal] = None,
        stop_price: Optional[Decimal] = None,
    ) -> Dict[str, Any]: ...

    def cancel_order(self, pair: str, order_id: int) -> Dict[str, Any]: ...

    def get_current_price(self, pair: str) -> Decimal: ...

    def get_pair_rules(self, pair: str) -> PairRules: ...

    def start_streams(self, pair: str, on_message: StreamCallback) -> None: ...

    def stop_streams(self) -> None: ...


class BinanceExchange:
    """ExchangeClient backed by python-binance."""

    def __init__(self, config: "BinanceConfig", client: Optional[Client] = None):
        self.config = config
        self.client = client or Client(config.api_key, config.api_secret, testnet=config.testnet)
        self.twm: Optional[ThreadedWebsocketManager] = None

    def place_order(
        self,
        pair: str,
        side: str,
        order_type: str,
        quantity: Decimal,
        price: Optional[Decimal] = None,
        stop_price: Optional[Decimal] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "symbol": pair,
            "side": side,
            "type": order_type,
            "quantity": format_decimal(quantity),
            "newOrderRespType": "FULL",
        }
        if order_type != "MARKET":
            params["price"] = format_decimal(price)
            params["timeInForce"] = TIME_IN_FORCE_GTC
        if stop_price is not None:
            params["stopPrice"] = format_decimal(stop_price)
        return self.client.create_order(**params)

    def cancel_order(self, pair: str, order_id: int) -> Dict[str, Any]:
        return self.client.cancel_order(symbol=pair, orderId=order_id)

    def get_current_price(self, pair: str) -> Decimal:
        ticker = self.client.get_symbol_ticker(symbol=pair)
        return Decimal(ticker["price"])

    def get_pair_rules(self, pair: str) -> PairRules:
        info = self.client.get_symbol_info(pair)
        if not info:
            raise PairNotFoundError(f"Could not pull exchange info for {pair}")
        return PairRules.from_symbol_info(info)

    def start_streams(self, pair: str, on_message: StreamCallback) -> None:
        self.twm = ThreadedWebsocketManager(
            api_key=self.config.api_key,
            api_secret=self.config.api_secret,
            testnet=self.config.testnet,
        )
        self.twm.start()
        self.twm.start_trade_socket(callback=on_message, symbol=pair)
        self.twm.start_user_socket(callback=on_message)

    def stop_streams(self) -> None:
        if self.twm is not None:
            self.twm.stop()
            self.twm = None
