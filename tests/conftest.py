"""Shared test fixtures for hookpool."""

from __future__ import annotations

import asyncio
import itertools
import random
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from hookpool.core.messages import MessagePool
from hookpool.core.registry import EndpointRegistry
from hookpool.errors import DiscordAPIError, GuildUnavailableError
from hookpool.models.delivery import DeliveryResult
from hookpool.models.endpoint import Channel, Endpoint, Webhook
from hookpool.sinks.local_file import LocalFileSink
from hookpool.sinks.persister import RegistryPersister


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class RecordingSleep:
    """Awaitable sleep replacement that records requested durations (seconds).

    After ``limit`` calls it sets ``stop_event`` (if given) so that
    indefinite loops wind down on their next iteration.
    """

    def __init__(self, stop_event: Any = None, limit: int | None = None) -> None:
        self.calls: list[float] = []
        self._stop_event = stop_event
        self._limit = limit

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        # yield so that other tasks interleave the way they would with a real sleep
        await asyncio.sleep(0)
        if self._stop_event is not None and self._limit is not None:
            if len(self.calls) >= self._limit:
                self._stop_event.set()


class FakeDiscordClient:
    """In-memory stand-in for ``DiscordClient``.

    ``channels`` holds the guild's channels; ``webhooks`` maps channel id
    to the webhooks that exist there.  ``delivery_statuses`` is consumed
    one result per ``deliver`` call; once empty every delivery returns 204.
    """

    def __init__(self, channels: list[Channel] | None = None) -> None:
        self.guild_available = True
        self.channels: list[Channel] = list(channels or [])
        self.webhooks: dict[str, list[Webhook]] = {c.id: [] for c in self.channels}
        self.failing_channels: set[str] = set()
        self.create_failures: dict[str, int] = {}
        self.delivery_statuses: list[DeliveryResult] = []
        self.created: list[str] = []
        self.deliveries: list[tuple[str, str]] = []
        self._ids = itertools.count(1000)

    async def get_guild(self, guild_id: str) -> dict:
        if not self.guild_available:
            raise GuildUnavailableError(404, "Unknown Guild", 10004)
        return {"id": guild_id, "name": "test-guild"}

    async def list_channels(self, guild_id: str) -> list[Channel]:
        return list(self.channels)

    async def list_webhooks(self, channel_id: str) -> list[Webhook]:
        if channel_id in self.failing_channels:
            raise DiscordAPIError(500, "Internal Server Error")
        return list(self.webhooks.get(channel_id, []))

    async def create_webhook(self, channel_id: str, name: str) -> Webhook:
        remaining = self.create_failures.get(channel_id, 0)
        if remaining:
            self.create_failures[channel_id] = remaining - 1
            raise DiscordAPIError(403, "Missing Permissions", 50013)
        webhook_id = str(next(self._ids))
        webhook = Webhook(id=webhook_id, channel_id=channel_id, name=name, token=f"tok-{webhook_id}")
        self.webhooks.setdefault(channel_id, []).append(webhook)
        self.created.append(channel_id)
        return webhook

    async def deliver(self, url: str, content: str) -> DeliveryResult:
        self.deliveries.append((url, content))
        if self.delivery_statuses:
            return self.delivery_statuses.pop(0)
        return DeliveryResult(status=204)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def registry() -> EndpointRegistry:
    """Provide a fresh, empty registry."""
    return EndpointRegistry()


@pytest.fixture
def webhooks_file(tmp_path: Path) -> Path:
    return tmp_path / "webhooks.txt"


@pytest.fixture
def persister(registry: EndpointRegistry, webhooks_file: Path) -> RegistryPersister:
    """Provide a persister writing the test registry to a temp file."""
    return RegistryPersister(registry, LocalFileSink(webhooks_file))


@pytest.fixture
def pool() -> MessagePool:
    return MessagePool.load("hello\n\nworld", rng=random.Random(7))


@pytest.fixture
def make_channel() -> Callable[..., Channel]:
    """Factory fixture: build a text Channel with sensible defaults."""

    def _factory(channel_id: str = "c1", name: str = "general", type: int = 0) -> Channel:
        return Channel(id=channel_id, name=name, type=type)

    return _factory


@pytest.fixture
def make_endpoint() -> Callable[..., Endpoint]:
    """Factory fixture: build an Endpoint with sensible defaults."""

    def _factory(
        webhook_id: str = "1", token: str = "secret", channel_id: str = "c1", **overrides: Any
    ) -> Endpoint:
        endpoint = Endpoint.from_webhook(webhook_id, token, channel_id)
        if overrides:
            endpoint = endpoint.model_copy(update=overrides)
        return endpoint

    return _factory


@pytest.fixture
def fake_client(make_channel: Callable[..., Channel]) -> FakeDiscordClient:
    """A guild with one text channel and no webhooks."""
    return FakeDiscordClient([make_channel("c1", "general")])


@pytest.fixture
def make_client() -> Callable[..., FakeDiscordClient]:
    """Factory fixture: build a FakeDiscordClient over the given channels."""
    return FakeDiscordClient


@pytest.fixture
def make_sleep() -> Callable[..., RecordingSleep]:
    """Factory fixture: build a RecordingSleep, optionally tied to a stop event."""
    return RecordingSleep
