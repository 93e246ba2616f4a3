"""Configuration loader for Polymarket Insider Tracker."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

import yaml

from .api.chain import CTF_EXCHANGE_ADDRESS


@dataclass
class ChainConfig:
    rpc_url: str = "https://polygon-rpc.com"
    exchange_address: str = CTF_EXCHANGE_ADDRESS
    request_timeout_seconds: float = 30.0


@dataclass
class DetectionConfig:
    min_bet_amount: float = 10_000
    new_account_days: int = 7
    # Wallet age lookup
    established_tx_count: int = 10
    age_search_window_blocks: int = 10_000
    age_search_probes: int = 5


@dataclass
class ScannerConfig:
    check_interval_seconds: float = 30.0
    max_block_range: int = 50
    wait_for_next_block: bool = True
    next_block_poll_seconds: float = 3.0


@dataclass
class AlertsConfig:
    discord_webhook: str = ""
    max_stored_alerts: int = 5000
    max_tracked_wallets: int = 5000
    pacing_seconds: float = 2.0


@dataclass
class ApiConfig:
    gamma_api_base: str = "https://gamma-api.polymarket.com"
    request_timeout_seconds: float = 10.0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: str = "logs/alerts.log"
    max_file_size_mb: int = 10
    backup_count: int = 5


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3000


@dataclass
class Config:
    chain: ChainConfig = field(default_factory=ChainConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    alerts: AlertsConfig = field(default_factory=AlertsConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


def apply_env_overrides(config: Config, environ: Mapping[str, str] | None = None) -> Config:
    """
    Override file settings with deployment environment variables.

    CHECK_INTERVAL is in milliseconds, the rest are in config units.
    """
    env = os.environ if environ is None else environ

    if env.get("POLYGON_RPC"):
        config.chain.rpc_url = env["POLYGON_RPC"]
    if env.get("DISCORD_WEBHOOK"):
        config.alerts.discord_webhook = env["DISCORD_WEBHOOK"]
    if env.get("MIN_BET_AMOUNT"):
        config.detection.min_bet_amount = float(env["MIN_BET_AMOUNT"])
    if env.get("NEW_ACCOUNT_DAYS"):
        config.detection.new_account_days = int(env["NEW_ACCOUNT_DAYS"])
    if env.get("CHECK_INTERVAL"):
        config.scanner.check_interval_seconds = int(env["CHECK_INTERVAL"]) / 1000
    if env.get("PORT"):
        config.server.port = int(env["PORT"])

    return config


def load_config(
    config_path: str | Path = "config.yaml",
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Load configuration from YAML file, then apply environment overrides."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    config = Config(
        chain=ChainConfig(**raw.get("chain", {})),
        detection=DetectionConfig(**raw.get("detection", {})),
        scanner=ScannerConfig(**raw.get("scanner", {})),
        alerts=AlertsConfig(**raw.get("alerts", {})),
        api=ApiConfig(**raw.get("api", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        server=ServerConfig(**raw.get("server", {})),
    )
    return apply_env_overrides(config, environ)
