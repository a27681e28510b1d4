"""Endpoint provisioner — discovery, deficit computation and burst scheduling.

One ``reconcile()`` call is one reconciliation pass:

1. Fetch the guild.  If it is unavailable the pass is aborted.
2. For every text channel, list its webhooks and merge the addressable
   ones into the registry.  A channel whose listing fails is skipped.
3. Compute how many webhooks each channel is short of the target.
4. Create at most ``create_burst`` of them, spread evenly over
   ``burst_window_ms``.  The rest wait for the next pass.
5. Wait for every creation to settle, then persist.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol

from hookpool.core.registry import EndpointRegistry
from hookpool.errors import DiscordAPIError
from hookpool.models.endpoint import Channel, Webhook
from hookpool.models.provisioning import BurstPlan, ChannelDeficit, ProvisionReport

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ProvisioningClient(Protocol):
    """The slice of ``DiscordClient`` the provisioner depends on."""

    async def get_guild(self, guild_id: str) -> dict: ...

    async def list_channels(self, guild_id: str) -> list[Channel]: ...

    async def list_webhooks(self, channel_id: str) -> list[Webhook]: ...

    async def create_webhook(self, channel_id: str, name: str) -> Webhook: ...


def compute_burst_plan(
    deficits: Sequence[ChannelDeficit], create_burst: int, burst_window_ms: int
) -> BurstPlan:
    """Build the creation schedule for one pass.

    ``starts = min(total_missing, create_burst)`` and
    ``spacing_ms = max(1, burst_window_ms // starts)``.  Slots are laid out
    one per missing webhook in channel order and truncated to ``starts``.
    """
    total_missing = sum(d.missing for d in deficits)
    if total_missing <= 0:
        return BurstPlan(total_missing=0, starts=0, spacing_ms=0)

    starts = min(total_missing, create_burst)
    spacing_ms = max(1, burst_window_ms // starts)

    slots: list[str] = []
    for deficit in deficits:
        slots.extend([deficit.channel_id] * deficit.missing)

    return BurstPlan(
        total_missing=total_missing,
        starts=starts,
        spacing_ms=spacing_ms,
        slots=slots[:starts],
    )


class EndpointProvisioner:
    """Keeps every text channel of a guild topped up to ``desired_per_channel`` webhooks.

    Parameters
    ----------
    client:
        Discord client (or a fake with the same coroutine methods).
    registry:
        The shared endpoint registry.
    persist:
        Zero-argument callable that writes the registry to disk.
    guild_id:
        Target guild.
    desired_per_channel, create_burst, burst_window_ms, webhook_name:
        Provisioning knobs, see ``HookpoolSettings``.
    sleep:
        Awaitable sleep taking seconds; injectable for tests.
    """

    def __init__(
        self,
        client: ProvisioningClient,
        registry: EndpointRegistry,
        persist: Callable[[], None],
        *,
        guild_id: str,
        desired_per_channel: int = 2,
        create_burst: int = 25,
        burst_window_ms: int = 10000,
        webhook_name: str = "autowebhook",
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._client = client
        self._registry = registry
        self._persist = persist
        self._guild_id = guild_id
        self._desired = desired_per_channel
        self._create_burst = create_burst
        self._burst_window_ms = burst_window_ms
        self._webhook_name = webhook_name
        self._sleep = sleep
        self.last_report: ProvisionReport | None = None

    # ------------------------------------------------------------------
    # Pass
    # ------------------------------------------------------------------

    async def reconcile(self) -> ProvisionReport:
        """Run one reconciliation pass and return what happened."""
        report = ProvisionReport()
        self.last_report = report

        try:
            await self._client.get_guild(self._guild_id)
            channels = await self._client.list_channels(self._guild_id)
        except DiscordAPIError as exc:
            logger.error("Guild not found or bot not in guild %s: %s", self._guild_id, exc)
            report.aborted = True
            return report

        deficits = await self._discover(channels, report)
        plan = compute_burst_plan(deficits, self._create_burst, self._burst_window_ms)
        report.total_missing = plan.total_missing

        if plan.total_missing == 0:
            self._persist()
            return report

        report.scheduled = plan.starts
        report.deferred = plan.deferred
        report.spacing_ms = plan.spacing_ms
        logger.info(
            "Need to create %d webhooks. Scheduling %d starts over %dms (spacing %dms).",
            plan.total_missing,
            plan.starts,
            self._burst_window_ms,
            plan.spacing_ms,
        )

        names = {d.channel_id: d.channel_name for d in deficits}
        tasks = [
            asyncio.create_task(self._create_after(channel_id, names[channel_id], plan.delay_ms(i)))
            for i, channel_id in enumerate(plan.slots)
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        for channel_id, result in zip(plan.slots, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Error creating scheduled webhook for channel %s: %s", channel_id, result
                )
                report.failed += 1
            elif result:
                report.created += 1
            else:
                report.failed += 1

        if report.deferred:
            logger.info("%d webhook(s) deferred to the next pass", report.deferred)
        self._persist()
        return report

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _discover(
        self, channels: Sequence[Channel], report: ProvisionReport
    ) -> list[ChannelDeficit]:
        deficits: list[ChannelDeficit] = []
        for channel in channels:
            if not channel.is_text:
                continue
            report.channels_scanned += 1

            try:
                webhooks = await self._client.list_webhooks(channel.id)
            except DiscordAPIError as exc:
                logger.warning("Failed fetching webhooks for channel %s: %s", channel.id, exc)
                report.channels_skipped += 1
                continue

            existing = 0
            for webhook in webhooks:
                endpoint = webhook.to_endpoint()
                if endpoint is None:
                    continue
                self._registry.upsert(endpoint)
                existing += 1
            report.discovered += existing

            if existing < self._desired:
                deficits.append(
                    ChannelDeficit(
                        channel_id=channel.id,
                        channel_name=channel.name,
                        existing=existing,
                        missing=self._desired - existing,
                    )
                )
        return deficits

    async def _create_after(self, channel_id: str, channel_name: str, delay_ms: int) -> bool:
        """Wait *delay_ms*, then create one webhook.  Returns ``True`` on success."""
        if delay_ms:
            await self._sleep(delay_ms / 1000)

        try:
            webhook = await self._client.create_webhook(channel_id, self._webhook_name)
        except DiscordAPIError as exc:
            logger.warning("Cannot create webhook in channel %s: %s", channel_id, exc)
            return False

        endpoint = webhook.to_endpoint()
        if endpoint is None:
            logger.warning("Webhook %s in channel %s came back without a token", webhook.id, channel_id)
            return False

        self._registry.upsert(endpoint)
        logger.info("Created webhook in #%s -> %s", channel_name or channel_id, webhook.id)
        return True
