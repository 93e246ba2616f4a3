"""Polymarket Insider Tracker - on-chain alerts for large trades from new wallets."""

__version__ = "0.1.0"
