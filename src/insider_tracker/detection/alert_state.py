"""In-memory alert state - alerted dedup keys and wallet first-seen cache."""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime

logger = logging.getLogger(__name__)


class FifoCache:
    """
    Insertion-ordered map with a size cap.

    When an insert pushes the size over capacity, the oldest inserted
    entry is evicted. Re-inserting an existing key keeps its original
    position.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._items: OrderedDict = OrderedDict()

    def __contains__(self, key) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def get(self, key, default=None):
        return self._items.get(key, default)

    def put(self, key, value=None):
        """Insert a key, evicting the oldest entry if over capacity."""
        self._items[key] = value
        while len(self._items) > self.capacity:
            evicted, _ = self._items.popitem(last=False)
            logger.debug(f"Evicted oldest entry: {evicted}")


@dataclass
class CachedWallet:
    """Cached wallet first-seen time."""

    address: str
    first_seen: datetime
    confidence: str  # how first_seen was obtained


class AlertState:
    """
    Owns all mutable surveillance state for one process lifetime.

    Both collections are bounded FIFO caches. They are touched only by
    the surveillance engine's single worker; status readers only use the
    size properties.
    """

    def __init__(self, max_stored_alerts: int = 5000, max_tracked_wallets: int = 5000):
        self._alerted = FifoCache(max_stored_alerts)
        self._wallets = FifoCache(max_tracked_wallets)

    # Alert dedup

    def should_alert(self, key: str) -> bool:
        """True if no alert has been recorded for this key."""
        return key not in self._alerted

    def mark_alerted(self, key: str):
        """Record that an alert was emitted for this key."""
        self._alerted.put(key)

    # Wallet first-seen cache

    def cached_wallet(self, address: str) -> CachedWallet | None:
        return self._wallets.get(address.lower())

    def first_seen(self, address: str) -> datetime | None:
        cached = self.cached_wallet(address)
        return cached.first_seen if cached else None

    def remember_wallet(self, address: str, first_seen: datetime, confidence: str = "heuristic"):
        address = address.lower()
        self._wallets.put(address, CachedWallet(address, first_seen, confidence))

    @property
    def alerts_stored(self) -> int:
        return len(self._alerted)

    @property
    def wallets_tracked(self) -> int:
        return len(self._wallets)
