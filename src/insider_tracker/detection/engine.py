"""Surveillance engine - runs scanned fills through the alert pipeline."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Protocol

from ..api.chain import FillEvent
from ..api.gamma_api import Market
from ..errors import ConnectivityError
from .alert_state import AlertState
from .heuristics import (
    dedup_key,
    derive_condition_id,
    outcome_from_asset_id,
    trade_amount_usd,
)
from .scanner import BlockScanner
from .wallet_age import Clock, WalletAgeEstimator, WalletAgeRecord, utc_now

logger = logging.getLogger(__name__)


@dataclass
class InsiderAlert:
    """A large trade from a new wallet on an open market."""

    created_at: datetime
    market: Market
    trade_amount_usd: float
    outcome: str
    wallet_address: str
    wallet_age: WalletAgeRecord
    condition_id: str
    order_hash: str
    transaction_hash: str
    block_height: int


class Notifier(Protocol):
    """Alert sink. Delivery is best-effort."""

    async def send_alert(self, alert: InsiderAlert) -> None:
        ...


class MarketSource(Protocol):
    async def get_market(self, condition_id: str) -> Market | None:
        ...


# Terminal states of an event in the pipeline
FILTERED_AMOUNT = "filtered_amount"
FILTERED_DEDUP = "filtered_dedup"
FILTERED_AGE = "filtered_age"
FILTERED_MARKET = "filtered_market"
FAILED = "failed"
ALERTED = "alerted"


class SurveillanceEngine:
    """
    Orchestrates scanning, filtering and alerting.

    A single worker runs each tick to completion before the next one is
    scheduled, so the cursor, alert state and wallet cache are never
    accessed concurrently.
    """

    def __init__(
        self,
        scanner: BlockScanner,
        estimator: WalletAgeEstimator,
        markets: MarketSource,
        state: AlertState,
        min_bet_amount: float = 10_000,
        pacing_seconds: float = 2.0,
        notifiers: list[Notifier] | None = None,
        clock: Clock = utc_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.scanner = scanner
        self.estimator = estimator
        self.markets = markets
        self.state = state
        self.min_bet_amount = min_bet_amount
        self.pacing_seconds = pacing_seconds
        self.notifiers: list[Notifier] = notifiers or []
        self.clock = clock
        self._sleep = sleep
        self._ticks = 0
        self._scan_errors = 0
        self._outcomes = {
            outcome: 0
            for outcome in (
                FILTERED_AMOUNT,
                FILTERED_DEDUP,
                FILTERED_AGE,
                FILTERED_MARKET,
                FAILED,
                ALERTED,
            )
        }

    def add_notifier(self, notifier: Notifier):
        """Add an alert sink."""
        self.notifiers.append(notifier)
        logger.info(f"Added notifier: {type(notifier).__name__}")

    async def run(self, stop_event: asyncio.Event, interval_seconds: float = 30.0):
        """Run ticks until the stop event is set."""
        while not stop_event.is_set():
            await self.tick(stop_event)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                pass

    async def tick(self, stop_event: asyncio.Event | None = None) -> list[InsiderAlert]:
        """
        Scan the next block range and process every fill in it.

        Args:
            stop_event: Checked between events; a set event ends the tick early

        Returns:
            Alerts emitted during this tick
        """
        self._ticks += 1

        try:
            events = await self.scanner.scan_next()
        except ConnectivityError as e:
            self._scan_errors += 1
            logger.warning(f"Error scanning blockchain, will retry: {e}")
            return []
        except Exception as e:
            self._scan_errors += 1
            logger.error(f"Unexpected error scanning blockchain, will retry: {e}", exc_info=True)
            return []

        alerts: list[InsiderAlert] = []
        for event in events:
            if stop_event is not None and stop_event.is_set():
                logger.info("Shutdown requested, stopping tick early")
                break

            try:
                alert = await self.process_event(event)
            except Exception as e:
                self._outcomes[FAILED] += 1
                logger.error(
                    f"Error processing fill {event.order_hash}: {e}",
                    exc_info=True,
                )
                continue

            if alert:
                alerts.append(alert)
                await self._sleep(self.pacing_seconds)

        return alerts

    async def process_event(self, event: FillEvent) -> InsiderAlert | None:
        """Run a single fill through the filters and emit an alert if it passes."""
        amount = trade_amount_usd(event)
        if amount < self.min_bet_amount:
            self._outcomes[FILTERED_AMOUNT] += 1
            return None

        key = dedup_key(event, amount, self.clock().date())
        if not self.state.should_alert(key):
            self._outcomes[FILTERED_DEDUP] += 1
            logger.info("Skipping: already alerted for this trade today")
            return None

        wallet = event.maker
        logger.info(
            f"Large trade detected: ${amount:,.2f} from {wallet[:6]}...{wallet[-4:]}"
        )

        wallet_age = await self.estimator.estimate(wallet)
        if not wallet_age.is_new:
            self._outcomes[FILTERED_AGE] += 1
            logger.info(f"Skipping: wallet is not new ({wallet_age.description})")
            return None

        logger.info(f"New wallet large trade: ${amount:,.2f} - {wallet_age.description}")

        condition_id = derive_condition_id(event.maker_asset_id)
        try:
            market = await self.markets.get_market(condition_id)
        except ConnectivityError as e:
            self._outcomes[FILTERED_MARKET] += 1
            logger.warning(f"Skipping: market lookup failed: {e}")
            return None

        if market is None:
            self._outcomes[FILTERED_MARKET] += 1
            logger.info("Skipping: could not find market info")
            return None

        if not market.is_tradeable:
            self._outcomes[FILTERED_MARKET] += 1
            logger.info(f"Skipping: market is closed or inactive ({market.slug})")
            return None

        alert = InsiderAlert(
            created_at=self.clock(),
            market=market,
            trade_amount_usd=amount,
            outcome=outcome_from_asset_id(event.maker_asset_id),
            wallet_address=wallet,
            wallet_age=wallet_age,
            condition_id=condition_id,
            order_hash=event.order_hash,
            transaction_hash=event.transaction_hash,
            block_height=event.block_height,
        )

        await self._notify(alert)

        # Committed even if delivery failed, so a flaky sink cannot cause repeats
        self.state.mark_alerted(key)
        self._outcomes[ALERTED] += 1

        return alert

    async def _notify(self, alert: InsiderAlert):
        for notifier in self.notifiers:
            try:
                await notifier.send_alert(alert)
            except Exception as e:
                logger.error(
                    f"Error in notifier {type(notifier).__name__}: {e}",
                    exc_info=True,
                )

    @property
    def stats(self) -> dict:
        """Get engine statistics."""
        return {
            "ticks": self._ticks,
            "scan_errors": self._scan_errors,
            "alerts_generated": self._outcomes[ALERTED],
            "outcomes": dict(self._outcomes),
            "alerts_stored": self.state.alerts_stored,
            "wallets_tracked": self.state.wallets_tracked,
            **self.scanner.stats,
        }
