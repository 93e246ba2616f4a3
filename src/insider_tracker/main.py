"""Main entry point for Polymarket Insider Tracker."""

import argparse
import asyncio
import logging
import signal
import sys
import time
from pathlib import Path

from .alerting import AlertLogger, DiscordNotifier, setup_app_logging
from .api import GammaApiClient, PolygonRpcClient
from .config import Config, load_config
from .detection import (
    AlertState,
    BalanceBisectionLookup,
    BlockScanner,
    SurveillanceEngine,
    WalletAgeEstimator,
)
from .errors import ConnectivityError
from .health import HealthServer

logger = logging.getLogger(__name__)


class InsiderTracker:
    """Main application class that orchestrates all components."""

    def __init__(self, config: Config):
        self.config = config
        self._started_at = time.monotonic()

        # Initialize components
        self.chain = PolygonRpcClient(
            config.chain.rpc_url,
            exchange_address=config.chain.exchange_address,
            timeout=config.chain.request_timeout_seconds,
        )
        self.gamma_api = GammaApiClient(
            config.api.gamma_api_base,
            timeout=config.api.request_timeout_seconds,
        )
        self.state = AlertState(
            max_stored_alerts=config.alerts.max_stored_alerts,
            max_tracked_wallets=config.alerts.max_tracked_wallets,
        )
        self.alert_logger = AlertLogger(
            log_file=config.logging.file,
            log_level=config.logging.level,
            max_file_size_mb=config.logging.max_file_size_mb,
            backup_count=config.logging.backup_count,
        )
        self.discord = DiscordNotifier(config.alerts.discord_webhook)

        self.scanner = BlockScanner(
            self.chain,
            max_chunk=config.scanner.max_block_range,
            next_block_poll_seconds=config.scanner.next_block_poll_seconds,
        )
        self.estimator = WalletAgeEstimator(
            BalanceBisectionLookup(
                self.chain,
                established_tx_count=config.detection.established_tx_count,
                search_window_blocks=config.detection.age_search_window_blocks,
                max_probes=config.detection.age_search_probes,
            ),
            self.state,
            new_account_days=config.detection.new_account_days,
        )

        # Surveillance engine
        self.engine = SurveillanceEngine(
            scanner=self.scanner,
            estimator=self.estimator,
            markets=self.gamma_api,
            state=self.state,
            min_bet_amount=config.detection.min_bet_amount,
            pacing_seconds=config.alerts.pacing_seconds,
        )
        self.engine.add_notifier(self.alert_logger)
        self.engine.add_notifier(self.discord)

        self.health_server = HealthServer(
            self.health_status,
            host=config.server.host,
            port=config.server.port,
        )

    def health_status(self) -> dict:
        """Status snapshot served on /health."""
        stats = self.engine.stats
        return {
            "status": "healthy",
            "uptime": int(time.monotonic() - self._started_at),
            "lastBlock": stats["last_block"],
            "config": {
                "minBetAmount": self.config.detection.min_bet_amount,
                "newAccountDays": self.config.detection.new_account_days,
                "discordEnabled": self.discord.is_configured,
            },
            "stats": {
                "alertsSent": stats["alerts_stored"],
                "walletsTracked": stats["wallets_tracked"],
                "alertsGenerated": stats["alerts_generated"],
                "blocksScanned": stats["blocks_scanned"],
                "eventsSeen": stats["events_seen"],
                "scanErrors": stats["scan_errors"],
            },
        }

    async def run(self, stop_event: asyncio.Event):
        """Connect to the chain, then scan until the stop event is set."""
        logger.info("Starting Polymarket Insider Tracker...")
        logger.info(
            f"Min bet amount: ${self.config.detection.min_bet_amount:,.0f}, "
            f"new account threshold: {self.config.detection.new_account_days} days, "
            f"Discord alerts: {'enabled' if self.discord.is_configured else 'disabled'}"
        )

        await self.health_server.start()

        await self.scanner.initialize(
            wait_for_next_block=self.config.scanner.wait_for_next_block
        )
        logger.info("Connected to Polygon, monitoring new blocks")

        await self.engine.run(
            stop_event,
            interval_seconds=self.config.scanner.check_interval_seconds,
        )

    async def stop(self):
        """Release network resources and log final stats."""
        logger.info("Stopping Polymarket Insider Tracker...")

        await self.health_server.stop()
        await self.chain.close()
        await self.gamma_api.close()
        await self.discord.close()
        self.alert_logger.close()

        stats = self.engine.stats
        logger.info(
            f"Final stats: {stats['blocks_scanned']} blocks scanned, "
            f"{stats['events_seen']} fills seen, "
            f"{stats['alerts_generated']} alerts generated"
        )


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Polymarket Insider Tracker - Alert on large trades from new wallets"
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args()


async def main_async(args) -> int:
    """Async main function."""
    # Load configuration
    config_path = Path(args.config)
    if not config_path.exists():
        logger.error(f"Configuration file not found: {config_path}")
        return 1

    config = load_config(config_path)

    # Override log level if debug flag is set
    if args.debug:
        config.logging.level = "DEBUG"

    # Set up logging
    setup_app_logging(config.logging.level)

    tracker = InsiderTracker(config)

    # Handle shutdown signals
    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def signal_handler():
        logger.info("Received shutdown signal")
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, signal_handler)

    # The in-flight tick finishes before the tracker task returns
    tracker_task = asyncio.create_task(tracker.run(shutdown_event))
    shutdown_task = asyncio.create_task(shutdown_event.wait())
    await asyncio.wait(
        {tracker_task, shutdown_task},
        return_when=asyncio.FIRST_COMPLETED,
    )
    shutdown_event.set()

    exit_code = 0
    try:
        await tracker_task
    except ConnectivityError as e:
        logger.error(f"Failed to connect to blockchain: {e}")
        exit_code = 1
    except Exception as e:
        logger.error(f"Tracker stopped on unexpected error: {e}", exc_info=True)
        exit_code = 1
    finally:
        shutdown_task.cancel()
        await tracker.stop()

    return exit_code


def main():
    """Main entry point."""
    args = parse_args()

    try:
        sys.exit(asyncio.run(main_async(args)))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
