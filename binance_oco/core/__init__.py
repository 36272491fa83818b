"""Core system components: config, event reactor."""

from binance_oco.core.config import Config
from binance_oco.core.reactor import Reactor

__all__ = [
    "Config",
    "Reactor",
]
