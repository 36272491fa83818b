"""
Main entry point for the OCO trader.

Wires config -> exchange -> pair rules -> normalized intent -> reactor,
runs one trade and maps its outcome to a process exit code.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from binance_oco.core.config import Config
from binance_oco.core.reactor import Reactor
from binance_oco.execution.errors import ConfigError, OcoError
from binance_oco.execution.exchange import BinanceExchange, ExchangeClient
from binance_oco.execution.orders import TradeParams, TradeResult
from binance_oco.execution.router import TRANSPORT_ERRORS, ExecutionRouter
from binance_oco.monitoring.logs import setup_logging
from binance_oco.monitoring.metrics import MetricsCollector
from binance_oco.monitoring.notifier import TelegramNotifier
from binance_oco.utils.precision import ParameterNormalizer
from binance_oco.utils.state_store import StateStore

logger = logging.getLogger(__name__)

EXAMPLE = (
    "example: binance-oco -p BNBBTC -a 1 -b 0.002 -s 0.001 -t 0.003\n"
    "  Place a buy order for 1 BNB @ 0.002 BTC. Once filled, place a stop-limit sell @ 0.001 BTC.\n"
    "  If a price of 0.003 BTC is reached, cancel stop-limit order and place a limit sell @ 0.003 BTC."
)


class OcoTradingSystem:
    """
    Orchestrates one OCO trade.

    Startup failures (config, missing pair, conformance) raise before any
    order is placed. Once live, the reactor reports a TradeResult.
    """

    def __init__(
        self,
        config: Config,
        params: TradeParams,
        dry_run: bool = False,
        exchange: Optional[ExchangeClient] = None,
    ):
        """
        Initialize trading system.

        Args:
            config: System configuration
            params: Raw trade parameters from the command line
            dry_run: Log orders instead of sending them
            exchange: Exchange client (defaults to BinanceExchange)
        """
        self.config = config
        self.params = params

        errors = config.validate()
        if errors:
            raise ConfigError("Configuration validation failed: " + "; ".join(errors))

        self.exchange = exchange or BinanceExchange(config.binance)
        self.metrics = MetricsCollector()
        self.router = ExecutionRouter(params.pair.upper(), self.exchange, self.metrics, dry_run=dry_run)

        rules = self.router.pair_rules()
        self.intent = ParameterNormalizer(rules).normalize_intent(params)
        logger.info("[Init] Trade intent: %s", self.intent)

        self.store = StateStore(config.monitoring.journal_dir, enabled=config.monitoring.journal_enabled)
        last = self.store.last_outcome(self.intent.pair)
        if last.get("outcome") == "FAILED":
            # A failed run can leave stop/target orders resting on the exchange
            logger.warning("[Init] Previous %s trade ended FAILED: %s", self.intent.pair, last.get("error"))
        self.notifier = TelegramNotifier(config.notifier)
        self.reactor = Reactor(config, self.intent, self.router, self.notifier, self.store)

    def run(self) -> Optional[TradeResult]:
        """Run the trade (blocks until a terminal outcome)."""
        try:
            return self.reactor.run_forever()
        except KeyboardInterrupt:
            logger.info("[Main] Shutdown signal received")
            self.reactor.stop()
            return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="binance-oco",
        description="Enter a Binance spot position and manage a stop-loss / target OCO pair on it.",
        epilog=EXAMPLE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-p", "--pair", required=True, help="Set trading pair eg. BNBBTC")
    parser.add_argument("-a", "--amount", help="Set amount to buy/sell")
    parser.add_argument(
        "-q", "--amountquote", dest="quote_amount",
        help="Set amount to buy in quote coin (alternative to -a for limit buy orders only)",
    )
    parser.add_argument("-b", "-e", "--buy", "--entry", dest="buy_price", help="Set buy price (0 for market buy)")
    parser.add_argument(
        "-B", "-E", "--buy-limit", "--entry-limit", dest="buy_limit_price",
        help="Set buy stop-limit order limit price (if different from buy price)",
    )
    parser.add_argument("-s", "--stop", dest="stop_price", help="Set stop-limit order stop price")
    parser.add_argument(
        "-l", "--limit", dest="limit_price",
        help="Set sell stop-limit order limit price (if different from stop price)",
    )
    parser.add_argument("-t", "--target", dest="target_price", help="Set target limit order sell price")
    parser.add_argument("-c", "--cancel", dest="cancel_price", help="Set price at which to cancel buy order")
    parser.add_argument(
        "-S", "--scaleOutAmount", dest="scale_out_amount",
        help="Set amount to sell (scale out) at target price (if different from amount)",
    )
    parser.add_argument(
        "-F", "--non-bnb-fees", dest="non_bnb_fees", action="store_true",
        help="Calculate stop/target sell amounts assuming not paying fees using BNB",
    )
    parser.add_argument("--config", type=str, default="", help="Path to YAML config file")
    parser.add_argument("--dry-run", action="store_true", help="Run without placing/cancelling any orders")
    return parser


def params_from_args(args: argparse.Namespace) -> TradeParams:
    return TradeParams(
        pair=args.pair.upper(),
        amount=args.amount,
        quote_amount=args.quote_amount,
        buy_price=args.buy_price,
        buy_limit_price=args.buy_limit_price,
        stop_price=args.stop_price,
        limit_price=args.limit_price,
        target_price=args.target_price,
        cancel_price=args.cancel_price,
        scale_out_amount=args.scale_out_amount,
        non_bnb_fees=args.non_bnb_fees,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    # Load .env if present (before Config) to populate APIKEY/APISECRET
    load_dotenv(dotenv_path=Path.cwd() / ".env")

    try:
        config = Config.from_yaml(args.config) if args.config else Config()
    except ConfigError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    # Logging isn't configured until the config is known to be valid
    errors = config.validate()
    if errors:
        print("[ERROR] Configuration validation failed:", file=sys.stderr)
        for err in errors:
            print(f"  - {err}", file=sys.stderr)
        return 1

    params = params_from_args(args)
    setup_logging(config.monitoring, params.pair)

    if not (params.amount or params.quote_amount):
        logger.error("You must specify amount with -a or via -q")
        return 1

    try:
        system = OcoTradingSystem(config, params, dry_run=args.dry_run)
    except OcoError as e:
        logger.error("[Init] %s", e)
        return 1
    except TRANSPORT_ERRORS as e:
        logger.error("[Init] Could not pull exchange info: %s", e)
        return 1

    result = system.run()
    if result is None:
        return 130
    if result.error is not None:
        logger.error("[Main] %s", result.error)
    logger.info("[Main] Metrics: %s", system.metrics.snapshot())
    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
