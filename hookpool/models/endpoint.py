"""Webhook endpoint model — the unit the registry tracks."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

WEBHOOK_URL_BASE = "https://discord.com/api/webhooks"
TEXT_CHANNEL_TYPE = 0  # GUILD_TEXT


def webhook_url(webhook_id: str, token: str) -> str:
    """Build the fully-qualified delivery address for a webhook."""
    return f"{WEBHOOK_URL_BASE}/{webhook_id}/{token}"


class Endpoint(BaseModel):
    """One webhook bound to one channel.

    ``url`` is derived from ``id`` and ``token`` and doubles as the
    registry key.  ``loop_active`` is the only mutable field; it is set
    by the reconciliation driver when it launches a dispatch loop.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str
    token: str
    url: str
    channel_id: str
    loop_active: bool = False

    @classmethod
    def from_webhook(cls, webhook_id: str, token: str, channel_id: str) -> Endpoint:
        return cls(
            id=webhook_id,
            token=token,
            url=webhook_url(webhook_id, token),
            channel_id=channel_id,
        )


class Channel(BaseModel):
    """A guild channel as returned by ``GET /guilds/{id}/channels``."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    type: int = 0

    @property
    def is_text(self) -> bool:
        return self.type == TEXT_CHANNEL_TYPE


class Webhook(BaseModel):
    """A webhook as returned by the channel webhook endpoints.

    ``token`` is ``None`` for webhooks this bot cannot address (channel
    follower webhooks, or ones created by other applications).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    channel_id: str
    name: str | None = None
    token: str | None = None

    def to_endpoint(self) -> Endpoint | None:
        """Return a registry entry, or ``None`` when the webhook has no token."""
        if not self.token:
            return None
        return Endpoint.from_webhook(self.id, self.token, self.channel_id)
