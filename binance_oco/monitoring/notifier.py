"""
Telegram notifier.

Sends one short message per semantic trade event. Delivery failures are
logged and dropped; they never affect the trade.
"""

import logging
from typing import TYPE_CHECKING

import requests

if TYPE_CHECKING:
    from binance_oco.core.config import NotifierConfig

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org/bot{token}/sendMessage"

MESSAGES = {
    "entered": "{pair} filled buy order",
    "stop_hit": "{pair} stopped out",
    "target_hit": "{pair} hit target price",
    "cancelled": "{pair} buy order cancelled",
}


class TelegramNotifier:
    """Output collaborator for trade notifications."""

    def __init__(self, config: "NotifierConfig", session: requests.Session = None):
        self.config = config
        self.session = session or requests.Session()

    def notify(self, pair: str, kind: str) -> bool:
        """
        Send the message for kind ("entered", "stop_hit", "target_hit", "cancelled").

        Returns:
            True if Telegram accepted the message
        """
        text = MESSAGES[kind].format(pair=pair)
        logger.info("[Notifier] %s", text)
        if not self.config.enabled:
            return False

        url = TELEGRAM_API.format(token=self.config.telegram_bot_token)
        try:
            resp = self.session.post(
                url,
                json={"chat_id": self.config.telegram_chat_id, "text": text},
                timeout=self.config.timeout_sec,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning("[Notifier] Telegram send failed: %s", e)
            return False
        return True
