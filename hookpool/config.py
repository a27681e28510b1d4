"""Runtime configuration — JSON file plus HOOKPOOL_* environment overrides.

The JSON file uses the historical camelCase keys (``guildId``,
``desiredPerChannel``, ...).  ``load_config`` maps them onto the
snake_case fields of ``HookpoolSettings``.  Falsy values in the file
(``0``, ``""``, ``null``) fall back to the defaults.

Examples
--------
Minimal ``config.json``::

    {"token": "Bot-token-here", "guildId": "123456789012345678"}

``HOOKPOOL_*`` variables (and ``.env``) take precedence over the file::

    export HOOKPOOL_LOG_LEVEL=DEBUG
    export HOOKPOOL_SCAN_EVERY_MS=15000
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import (
    BaseSettings,
    DotEnvSettingsSource,
    EnvSettingsSource,
    SettingsConfigDict,
)

from hookpool.errors import ConfigError

DEFAULT_CONFIG_PATH = Path("config.json")

# camelCase file key -> settings field
CONFIG_KEYS: dict[str, str] = {
    "token": "token",
    "guildId": "guild_id",
    "webhooksFile": "webhooks_file",
    "messagesFile": "messages_file",
    "scanEveryMs": "scan_every_ms",
    "desiredPerChannel": "desired_per_channel",
    "sendDelayMin": "send_delay_min",
    "sendDelayMax": "send_delay_max",
    "webhookName": "webhook_name",
    "createBurst": "create_burst",
    "burstWindowMs": "burst_window_ms",
    "logLevel": "log_level",
    "apiBase": "api_base",
}


class HookpoolSettings(BaseSettings):
    """Effective settings for one hookpool process."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="HOOKPOOL_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Credentials and target
    token: str = ""
    guild_id: str = ""

    # Files
    webhooks_file: Path = Path("webhooks.txt")
    messages_file: Path = Path("messages.txt")

    # Reconciliation
    scan_every_ms: int = Field(default=5000, ge=1)
    desired_per_channel: int = Field(default=2, ge=0)
    webhook_name: str = "autowebhook"
    create_burst: int = Field(default=25, ge=1)
    burst_window_ms: int = Field(default=10000, ge=1)

    # Dispatch pacing
    send_delay_min: int = Field(default=300, ge=0)
    send_delay_max: int = Field(default=800, ge=0)

    # Runtime
    log_level: str = "INFO"
    api_base: str = "https://discord.com/api/v10"

    @model_validator(mode="after")
    def _check_delay_bounds(self) -> HookpoolSettings:
        if self.send_delay_max < self.send_delay_min:
            raise ValueError(
                f"sendDelayMax ({self.send_delay_max}) must be >= "
                f"sendDelayMin ({self.send_delay_min})"
            )
        return self

    @property
    def masked_token(self) -> str:
        """The token with everything but the last four characters hidden."""
        if len(self.token) <= 4:
            return "*" * len(self.token)
        return "*" * 8 + self.token[-4:]


def _normalize(raw: dict[str, Any]) -> dict[str, Any]:
    """Map camelCase keys to field names and drop falsy values."""
    values: dict[str, Any] = {}
    for key, value in raw.items():
        field_name = CONFIG_KEYS.get(key, key)
        if field_name not in HookpoolSettings.model_fields:
            continue
        if value is None or value == "" or value == 0:
            continue
        # IDs are snowflakes; JSON files sometimes carry them as numbers
        if field_name == "guild_id":
            value = str(value)
        values[field_name] = value
    return values


def _environment_values() -> dict[str, Any]:
    """Field values set through ``.env`` or ``HOOKPOOL_*`` variables.

    Real environment variables win over ``.env``, as they do when
    ``HookpoolSettings`` reads its own sources.
    """
    values: dict[str, Any] = {}
    for source in (DotEnvSettingsSource(HookpoolSettings), EnvSettingsSource(HookpoolSettings)):
        values.update(source())
    return values


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> HookpoolSettings:
    """Load and validate settings from a JSON config file.

    Raises
    ------
    ConfigError
        If the file is missing or malformed, a value fails validation, or
        the token or guild id is absent.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Missing {config_path}")

    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Malformed {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Malformed {config_path}: expected a JSON object")

    try:
        # environment overrides the file, the file overrides defaults
        settings = HookpoolSettings(**{**_normalize(raw), **_environment_values()})
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigError(f"Invalid {config_path}: {errors}") from exc

    if not settings.token or not settings.guild_id:
        raise ConfigError(f"set token and guildId in {config_path}")

    return settings
