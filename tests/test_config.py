"""Tests for configuration loading."""

import pytest

from insider_tracker.config import Config, apply_env_overrides, load_config


def test_load_config_fills_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "detection:\n"
        "  min_bet_amount: 25000\n"
        "scanner:\n"
        "  max_block_range: 20\n"
    )

    config = load_config(path, environ={})

    assert config.detection.min_bet_amount == 25000
    assert config.detection.new_account_days == 7
    assert config.scanner.max_block_range == 20
    assert config.alerts.max_stored_alerts == 5000
    assert config.server.port == 3000


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")

    assert load_config(path, environ={}) == Config()


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_env_overrides():
    config = apply_env_overrides(
        Config(),
        {
            "POLYGON_RPC": "https://rpc.example",
            "DISCORD_WEBHOOK": "https://discord.example/hook",
            "MIN_BET_AMOUNT": "5000",
            "NEW_ACCOUNT_DAYS": "3",
            "CHECK_INTERVAL": "15000",
            "PORT": "8080",
        },
    )

    assert config.chain.rpc_url == "https://rpc.example"
    assert config.alerts.discord_webhook == "https://discord.example/hook"
    assert config.detection.min_bet_amount == 5000
    assert config.detection.new_account_days == 3
    assert config.scanner.check_interval_seconds == 15
    assert config.server.port == 8080


def test_blank_env_values_are_ignored():
    config = apply_env_overrides(Config(), {"MIN_BET_AMOUNT": "", "PORT": ""})
    assert config == Config()
