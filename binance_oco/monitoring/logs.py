"""Logging setup: console always, plus a per-run file when monitoring.log_dir is set."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from binance_oco.core.config import MonitoringConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def setup_logging(config: "MonitoringConfig", pair: str = "") -> Optional[Path]:
    """
    Configure the root logger.

    Returns:
        Path of the log file, or None when logging to console only
    """
    root = logging.getLogger()
    root.setLevel(config.log_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(console)

    if not config.log_dir:
        return None

    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    path = log_dir / f"oco_{pair.lower() or 'trade'}_{stamp}.log"
    file_handler = logging.FileHandler(path)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)
    return path
