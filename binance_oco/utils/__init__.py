"""Utilities: Precision helpers, state store."""

from binance_oco.utils.precision import ParameterNormalizer, format_decimal, round_step, round_ticks
from binance_oco.utils.state_store import StateStore

__all__ = [
    "ParameterNormalizer",
    "format_decimal",
    "round_step",
    "round_ticks",
    "StateStore",
]
