"""Tests for config loading — camelCase file keys, defaults, fatal errors."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from hookpool.config import HookpoolSettings, load_config
from hookpool.errors import ConfigError


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path: Path):
    """Keep HOOKPOOL_* variables and any local .env out of these tests."""
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("HOOKPOOL_"):
            monkeypatch.delenv(key)


def _write(tmp_path: Path, data) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestDefaults:
    def test_defaults(self):
        settings = HookpoolSettings()
        assert settings.webhooks_file == Path("webhooks.txt")
        assert settings.scan_every_ms == 5000
        assert settings.desired_per_channel == 2
        assert settings.send_delay_min == 300
        assert settings.send_delay_max == 800
        assert settings.webhook_name == "autowebhook"
        assert settings.create_burst == 25
        assert settings.burst_window_ms == 10000

    def test_minimal_file(self, tmp_path: Path):
        settings = load_config(_write(tmp_path, {"token": "abc", "guildId": "123"}))
        assert settings.token == "abc"
        assert settings.guild_id == "123"
        assert settings.create_burst == 25


class TestLoadConfig:
    def test_camel_case_keys_mapped(self, tmp_path: Path):
        settings = load_config(_write(tmp_path, {
            "token": "abc",
            "guildId": 123456789012345678,
            "webhooksFile": "out/hooks.txt",
            "scanEveryMs": 15000,
            "desiredPerChannel": 3,
            "sendDelayMin": 100,
            "sendDelayMax": 200,
            "webhookName": "relay",
            "createBurst": 5,
            "burstWindowMs": 2000,
        }))
        assert settings.guild_id == "123456789012345678"
        assert settings.webhooks_file == Path("out/hooks.txt")
        assert settings.scan_every_ms == 15000
        assert settings.desired_per_channel == 3
        assert (settings.send_delay_min, settings.send_delay_max) == (100, 200)
        assert settings.webhook_name == "relay"
        assert settings.create_burst == 5
        assert settings.burst_window_ms == 2000

    def test_falsy_values_fall_back_to_defaults(self, tmp_path: Path):
        settings = load_config(_write(tmp_path, {
            "token": "abc", "guildId": "1", "createBurst": 0, "webhookName": "", "scanEveryMs": None,
        }))
        assert settings.create_burst == 25
        assert settings.webhook_name == "autowebhook"
        assert settings.scan_every_ms == 5000

    def test_env_fills_in_missing_token(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("HOOKPOOL_TOKEN", "from-env")
        settings = load_config(_write(tmp_path, {"guildId": "1"}))
        assert settings.token == "from-env"

    def test_env_overrides_value_set_in_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("HOOKPOOL_SCAN_EVERY_MS", "15000")
        monkeypatch.setenv("HOOKPOOL_WEBHOOK_NAME", "from-env")
        settings = load_config(_write(tmp_path, {
            "token": "abc", "guildId": "1", "scanEveryMs": 5000, "webhookName": "from-file",
            "createBurst": 5,
        }))
        assert settings.scan_every_ms == 15000
        assert settings.webhook_name == "from-env"
        assert settings.create_burst == 5

    def test_dotenv_overrides_file_and_env_overrides_dotenv(self, tmp_path: Path, monkeypatch):
        (tmp_path / ".env").write_text(
            "HOOKPOOL_SCAN_EVERY_MS=7000\nHOOKPOOL_CREATE_BURST=9\n", encoding="utf-8"
        )
        monkeypatch.setenv("HOOKPOOL_CREATE_BURST", "11")
        settings = load_config(_write(tmp_path, {
            "token": "abc", "guildId": "1", "scanEveryMs": 5000, "createBurst": 5,
        }))
        assert settings.scan_every_ms == 7000
        assert settings.create_burst == 11

    def test_invalid_env_override_is_config_error(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("HOOKPOOL_SEND_DELAY_MIN", "900")
        with pytest.raises(ConfigError, match="sendDelayMax"):
            load_config(_write(tmp_path, {"token": "abc", "guildId": "1", "sendDelayMax": 500}))

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Missing"):
            load_config(tmp_path / "nope.json")

    def test_malformed_json(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Malformed"):
            load_config(path)

    @pytest.mark.parametrize("data", [{"token": "abc"}, {"guildId": "1"}, {}])
    def test_missing_credentials(self, tmp_path: Path, data):
        with pytest.raises(ConfigError, match="set token and guildId"):
            load_config(_write(tmp_path, data))

    def test_inverted_delay_bounds_rejected(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="sendDelayMax"):
            load_config(_write(tmp_path, {
                "token": "abc", "guildId": "1", "sendDelayMin": 900, "sendDelayMax": 100,
            }))

    def test_masked_token(self):
        assert HookpoolSettings(token="abcdefgh1234").masked_token == "********1234"
