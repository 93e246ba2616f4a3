"""Surveillance pipeline: scanning, wallet age, dedup and alerting."""

from .alert_state import AlertState, FifoCache
from .engine import InsiderAlert, Notifier, SurveillanceEngine
from .scanner import BlockCursor, BlockScanner
from .wallet_age import (
    AgeLookup,
    AgeLookupResult,
    BalanceBisectionLookup,
    Confidence,
    WalletAgeEstimator,
    WalletAgeRecord,
)

__all__ = [
    "AlertState",
    "FifoCache",
    "InsiderAlert",
    "Notifier",
    "SurveillanceEngine",
    "BlockCursor",
    "BlockScanner",
    "AgeLookup",
    "AgeLookupResult",
    "BalanceBisectionLookup",
    "Confidence",
    "WalletAgeEstimator",
    "WalletAgeRecord",
]
