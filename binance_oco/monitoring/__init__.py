"""Monitoring & Alerts: logging, metrics, Telegram notifications."""

from binance_oco.monitoring.metrics import MetricsCollector
from binance_oco.monitoring.notifier import TelegramNotifier
from binance_oco.monitoring.logs import setup_logging

__all__ = ["MetricsCollector", "TelegramNotifier", "setup_logging"]
