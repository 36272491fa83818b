"""
Binance OCO Trader

Enters a single spot position (market, limit or stop-entry) and protects it
with a stop-loss / target pair where filling one side cancels the other.

Components:
- Parameter Normalizer: Step/tick rounding and exchange minimums
- Fee Calculator: Sell amounts after the buy fee (BNB vs. non-BNB)
- Order Lifecycle Controller: Pure OCO state machine
- Market Event Reactor: Price ticks + order updates -> controller -> router
- Execution Router: Commands -> Binance REST calls -> response events
- Monitoring: Logging, metrics, Telegram notifications
- State Store: JSONL trade journal
"""

__version__ = "0.1.0"

from binance_oco.core.config import Config
from binance_oco.core.reactor import Reactor

__all__ = [
    "Config",
    "Reactor",
]
