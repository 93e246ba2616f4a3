"""Alert logging - formats and outputs alerts to console and file."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from ..detection.engine import InsiderAlert


class AlertFormatter(logging.Formatter):
    """Custom formatter for alert messages."""

    ALERT_FORMAT = """
================================================================================
{timestamp} | ALERT | POTENTIAL INSIDER TRADE
--------------------------------------------------------------------------------
  Wallet:      {wallet}
  Wallet Age:  {wallet_age} ({confidence})
  Bet Amount:  ${amount:,.2f}
  Market:      {market}
  Position:    {outcome}
  Block:       {block}
  Tx:          {tx_hash}
================================================================================
"""

    def format(self, record: logging.LogRecord) -> str:
        if hasattr(record, "alert"):
            return self._format_alert(record.alert)
        return super().format(record)

    def _format_alert(self, alert: InsiderAlert) -> str:
        return self.ALERT_FORMAT.format(
            timestamp=alert.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            wallet=alert.wallet_address,
            wallet_age=alert.wallet_age.description,
            confidence=alert.wallet_age.confidence.value,
            amount=alert.trade_amount_usd,
            market=alert.market.question,
            outcome=alert.outcome,
            block=alert.block_height,
            tx_hash=alert.transaction_hash or "Unknown",
        )


class AlertLogger:
    """Handles alert output to console and file."""

    def __init__(
        self,
        log_file: str | Path,
        log_level: str = "INFO",
        max_file_size_mb: int = 10,
        backup_count: int = 5,
        logger_name: str = "insider_tracker.alerts",
    ):
        self.log_file = Path(log_file)
        self.log_level = getattr(logging, log_level.upper(), logging.INFO)
        self.max_file_size = max_file_size_mb * 1024 * 1024
        self.backup_count = backup_count

        self._logger = logging.getLogger(logger_name)
        self._setup_logging()

    def _setup_logging(self):
        """Configure logging handlers."""
        self._logger.setLevel(self.log_level)
        self._logger.handlers.clear()
        self._logger.propagate = False

        # Ensure log directory exists
        self.log_file.parent.mkdir(parents=True, exist_ok=True)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.log_level)
        console_handler.setFormatter(AlertFormatter())
        self._logger.addHandler(console_handler)

        # File handler with rotation
        file_handler = RotatingFileHandler(
            self.log_file,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
        )
        file_handler.setLevel(self.log_level)
        file_handler.setFormatter(AlertFormatter())
        self._logger.addHandler(file_handler)

    def close(self):
        for handler in self._logger.handlers:
            handler.close()
        self._logger.handlers.clear()

    def log_alert(self, alert: InsiderAlert):
        """Log an alert to console and file."""
        record = self._logger.makeRecord(
            name=self._logger.name,
            level=logging.WARNING,
            fn="",
            lno=0,
            msg="Alert triggered",
            args=(),
            exc_info=None,
        )
        record.alert = alert
        self._logger.handle(record)

    async def send_alert(self, alert: InsiderAlert) -> None:
        """Notifier interface."""
        self.log_alert(alert)


def setup_app_logging(level: str = "INFO"):
    """Set up application-wide logging."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    # Configure root logger
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    logging.getLogger("web3").setLevel(logging.WARNING)
