"""Wallet age estimation - how long has a trading wallet existed on chain."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Protocol

from ..api.chain import PolygonRpcClient
from ..errors import AgeSearchError
from .alert_state import AlertState

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Confidence(str, Enum):
    """How an age estimate was obtained."""

    EXACT = "exact"
    HEURISTIC = "heuristic"
    UNKNOWN = "unknown"


@dataclass
class WalletAgeRecord:
    """Result of a wallet age estimate."""

    address: str
    first_seen: datetime | None
    age_in_days: int | None  # None for established wallets with no search
    is_new: bool
    confidence: Confidence
    transaction_count: int | None = None
    note: str | None = None

    @property
    def description(self) -> str:
        """Human readable summary used in alerts."""
        if self.note:
            return self.note
        if self.age_in_days is None:
            return f"Established wallet ({self.transaction_count} transactions)"
        if self.age_in_days == 0:
            return "Brand New - First Trade Today!"
        return f"{self.age_in_days} days old"


@dataclass
class AgeLookupResult:
    """Raw outcome of an age lookup strategy."""

    first_seen: datetime | None
    transaction_count: int | None
    confidence: Confidence = Confidence.HEURISTIC


class AgeLookup(Protocol):
    """Strategy for finding when a wallet first appeared on chain."""

    async def lookup(self, address: str) -> AgeLookupResult:
        """
        Find a wallet's first-seen time.

        Returns a result with first_seen=None for wallets judged
        established without a search. Raises AgeSearchError when the
        search fails after the transaction count is known, and any other
        error when the lookup fails before that.
        """
        ...


class BalanceBisectionLookup:
    """
    Approximate first-funded block by bisecting historical balances.

    Only wallets with few transactions are searched. The search covers a
    fixed lookback window (10k blocks is roughly 5 hours on Polygon) with
    a fixed number of balance probes, so a wallet funded before the window
    starts resolves to the start of the window. This trades precision for
    a small, bounded number of RPC calls per unknown wallet.
    """

    def __init__(
        self,
        chain: PolygonRpcClient,
        established_tx_count: int = 10,
        search_window_blocks: int = 10_000,
        max_probes: int = 5,
    ):
        self.chain = chain
        self.established_tx_count = established_tx_count
        self.search_window_blocks = search_window_blocks
        self.max_probes = max_probes

    async def lookup(self, address: str) -> AgeLookupResult:
        tx_count = await self.chain.transaction_count(address)

        if tx_count > self.established_tx_count:
            return AgeLookupResult(first_seen=None, transaction_count=tx_count)

        try:
            first_block = await self.find_first_funded_block(address)
            first_seen = await self.chain.block_timestamp(first_block)
        except Exception as e:
            raise AgeSearchError(f"first-funded search failed: {e}", tx_count) from e

        return AgeLookupResult(first_seen=first_seen, transaction_count=tx_count)

    async def find_first_funded_block(self, address: str) -> int:
        """Bisect [current - window, current] toward the first block with a nonzero balance."""
        current = await self.chain.current_height()
        window = min(self.search_window_blocks, current)

        low = current - window
        high = current
        for _ in range(self.max_probes):
            if low >= high:
                break
            mid = (low + high) // 2
            balance = await self.chain.balance_at(address, mid)
            if balance > 0:
                high = mid
            else:
                low = mid + 1

        return high


class WalletAgeEstimator:
    """
    Estimates wallet age, cached first and fail-open.

    First-seen timestamps are cached in the shared AlertState, so repeat
    lookups cost no RPC calls and the reported age grows with wall time.
    Any failure during a lookup reports the wallet as new with UNKNOWN
    confidence: a false positive is cheaper than a missed insider trade.
    """

    def __init__(
        self,
        lookup: AgeLookup,
        state: AlertState,
        new_account_days: int = 7,
        clock: Clock = utc_now,
    ):
        self.lookup = lookup
        self.state = state
        self.new_account_days = new_account_days
        self.clock = clock

    def _age_in_days(self, first_seen: datetime) -> int:
        return max((self.clock() - first_seen).days, 0)

    def _record(
        self,
        address: str,
        first_seen: datetime,
        confidence: Confidence = Confidence.HEURISTIC,
        transaction_count: int | None = None,
    ) -> WalletAgeRecord:
        age = self._age_in_days(first_seen)
        return WalletAgeRecord(
            address=address,
            first_seen=first_seen,
            age_in_days=age,
            is_new=age <= self.new_account_days,
            confidence=confidence,
            transaction_count=transaction_count,
        )

    def _unknown(
        self, address: str, note: str, transaction_count: int | None = None
    ) -> WalletAgeRecord:
        return WalletAgeRecord(
            address=address,
            first_seen=None,
            age_in_days=0,
            is_new=True,
            confidence=Confidence.UNKNOWN,
            transaction_count=transaction_count,
            note=note,
        )

    async def estimate(self, address: str) -> WalletAgeRecord:
        """
        Estimate how long a wallet has existed.

        Args:
            address: Wallet address

        Returns:
            WalletAgeRecord with is_new set against the configured threshold
        """
        cached = self.state.cached_wallet(address)
        if cached is not None:
            logger.debug(f"Cache hit for {address[:10]}...")
            return self._record(
                address, cached.first_seen, confidence=Confidence(cached.confidence)
            )

        try:
            result = await self.lookup.lookup(address)
        except AgeSearchError as e:
            logger.warning(f"Could not date low-activity wallet {address}: {e}")
            return self._unknown(
                address,
                "New Wallet (Low Transaction Count)",
                transaction_count=e.transaction_count,
            )
        except Exception as e:
            logger.warning(f"Could not determine age of {address}: {e}", exc_info=True)
            return self._unknown(address, "Unknown Age (Error checking blockchain)")

        if result.first_seen is None:
            return WalletAgeRecord(
                address=address,
                first_seen=None,
                age_in_days=None,
                is_new=False,
                confidence=result.confidence,
                transaction_count=result.transaction_count,
            )

        self.state.remember_wallet(address, result.first_seen, result.confidence.value)
        return self._record(
            address,
            result.first_seen,
            confidence=result.confidence,
            transaction_count=result.transaction_count,
        )
