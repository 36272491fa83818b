"""
Configuration management for the OCO trader.

Supports loading from YAML/dict and environment variable overrides.
Trade parameters themselves come from the command line, not from here.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal

from binance_oco.execution.errors import ConfigError
from binance_oco.execution.fees import FEE_DISCOUNT_ASSET, NON_BNB_TRADING_FEE, FeeSchedule


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


@dataclass
class BinanceConfig:
    """Binance API credentials and network."""

    api_key: str = ""  # from APIKEY
    api_secret: str = ""  # from APISECRET
    testnet: bool = False


@dataclass
class FeeConfig:
    """Trading fee assumptions for post-fill sell amounts."""

    non_bnb_trading_fee: str = str(NON_BNB_TRADING_FEE)  # 0.1% taken from the bought asset
    discount_asset: str = FEE_DISCOUNT_ASSET  # fees paid in this asset don't reduce the position

    def schedule(self) -> FeeSchedule:
        return FeeSchedule(rate=Decimal(str(self.non_bnb_trading_fee)), discount_asset=self.discount_asset)


@dataclass
class MonitoringConfig:
    """Logging, journal and metrics output."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_dir: str = ""  # empty = console only
    journal_enabled: bool = True
    journal_dir: str = "data/journal"


@dataclass
class NotifierConfig:
    """Telegram notifications on entry, stop, target and cancel."""

    telegram_bot_token: str = ""  # from TELEGRAM_BOT_TOKEN
    telegram_chat_id: str = ""  # from TELEGRAM_CHAT_ID
    timeout_sec: float = 10.0

    @property
    def enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)


@dataclass
class Config:
    """
    Complete system configuration.

    Environment variables (override config file):
    - APIKEY / APISECRET: Binance API credentials
    - BINANCE_TESTNET: "true" to trade on the spot testnet
    - TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID: notification target
    """

    binance: BinanceConfig = field(default_factory=BinanceConfig)
    fees: FeeConfig = field(default_factory=FeeConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    notifier: NotifierConfig = field(default_factory=NotifierConfig)

    def __post_init__(self):
        """Load environment variable overrides."""
        if os.getenv("APIKEY"):
            self.binance.api_key = os.getenv("APIKEY", "")

        if os.getenv("APISECRET"):
            self.binance.api_secret = os.getenv("APISECRET", "")

        if os.getenv("BINANCE_TESTNET"):
            self.binance.testnet = _env_flag("BINANCE_TESTNET")

        if os.getenv("TELEGRAM_BOT_TOKEN"):
            self.notifier.telegram_bot_token = os.getenv("TELEGRAM_BOT_TOKEN", "")

        if os.getenv("TELEGRAM_CHAT_ID"):
            self.notifier.telegram_chat_id = os.getenv("TELEGRAM_CHAT_ID", "")

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        """Load config from YAML file."""
        import yaml

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not load config {path}: {e}") from e
        if data is not None and not isinstance(data, dict):
            raise ConfigError(f"Config {path} must be a mapping")
        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Load config from dictionary."""
        from dataclasses import is_dataclass, fields

        def build(dc_type, data):
            if not is_dataclass(dc_type):
                return data
            kwargs = {}
            for f in fields(dc_type):
                if f.name in data:
                    val = data[f.name]
                    sub_type = f.default_factory if callable(f.default_factory) else None
                    if sub_type is not None and is_dataclass(sub_type) and isinstance(val, dict):
                        kwargs[f.name] = build(sub_type, val)
                    else:
                        kwargs[f.name] = val
            return dc_type(**kwargs)

        return build(cls, data)

    def validate(self) -> list[str]:
        """
        Validate configuration parameters.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.binance.api_key:
            errors.append("APIKEY environment variable required")

        if not self.binance.api_secret:
            errors.append("APISECRET environment variable required")

        try:
            rate = Decimal(str(self.fees.non_bnb_trading_fee))
            if not (Decimal(0) <= rate < Decimal(1)):
                errors.append("fees.non_bnb_trading_fee must be in [0, 1)")
        except ArithmeticError:
            errors.append(f"fees.non_bnb_trading_fee is not a number: {self.fees.non_bnb_trading_fee!r}")

        if self.monitoring.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            errors.append("monitoring.log_level must be DEBUG, INFO, WARNING or ERROR")

        if bool(self.notifier.telegram_bot_token) != bool(self.notifier.telegram_chat_id):
            errors.append("TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID must be set together")

        return errors
