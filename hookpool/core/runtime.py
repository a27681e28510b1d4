"""Runtime wiring — builds the object graph and runs it until a stop signal.

``build_driver`` constructs one registry and threads it through the
provisioner, the persister and the driver.  ``serve`` adds the process
concerns: login check, signal handlers, graceful shutdown.
"""

from __future__ import annotations

import asyncio
import logging
import signal

from hookpool.bridge.discord import DiscordClient
from hookpool.config import HookpoolSettings
from hookpool.core.dispatch_loop import Sleep
from hookpool.core.driver import DEFAULT_GRACE_MS, ReconciliationDriver
from hookpool.core.messages import MessagePool
from hookpool.core.provisioner import EndpointProvisioner
from hookpool.core.registry import EndpointRegistry
from hookpool.errors import DiscordAPIError
from hookpool.sinks.local_file import LocalFileSink
from hookpool.sinks.persister import RegistryPersister

logger = logging.getLogger(__name__)


def build_driver(
    settings: HookpoolSettings,
    client,
    pool: MessagePool,
    *,
    registry: EndpointRegistry | None = None,
    sleep: Sleep = asyncio.sleep,
) -> ReconciliationDriver:
    """Assemble registry, sink, provisioner and driver from *settings*.

    *client* must provide the provisioning methods and ``deliver``;
    ``DiscordClient`` does, and so do the test fakes.
    """
    registry = registry if registry is not None else EndpointRegistry()
    persist = RegistryPersister(registry, LocalFileSink(settings.webhooks_file))

    provisioner = EndpointProvisioner(
        client,
        registry,
        persist,
        guild_id=settings.guild_id,
        desired_per_channel=settings.desired_per_channel,
        create_burst=settings.create_burst,
        burst_window_ms=settings.burst_window_ms,
        webhook_name=settings.webhook_name,
        sleep=sleep,
    )
    return ReconciliationDriver(
        provisioner,
        registry,
        pool,
        client,
        persist,
        scan_every_ms=settings.scan_every_ms,
        send_delay_min=settings.send_delay_min,
        send_delay_max=settings.send_delay_max,
        loop_sleep=sleep,
    )


def _install_signal_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops do not support add_signal_handler
            pass


async def serve(
    settings: HookpoolSettings,
    pool: MessagePool,
    *,
    client: DiscordClient | None = None,
    grace_ms: int = DEFAULT_GRACE_MS,
    stop: asyncio.Event | None = None,
) -> None:
    """Log in, then reconcile and dispatch until SIGINT/SIGTERM (or *stop* is set).

    Raises
    ------
    DiscordAPIError
        If the login check fails.  Nothing else escapes once running.
    """
    client = client or DiscordClient(settings.token, api_base=settings.api_base)
    async with client:
        try:
            user = await client.get_current_user()
        except DiscordAPIError as exc:
            raise DiscordAPIError(exc.status, f"Login failed: {exc.message}", exc.code) from exc
        logger.info(
            "Client ready as %s. Scanning guild %s and preparing webhooks",
            user.get("username", "?") if user else "?",
            settings.guild_id,
        )

        driver = build_driver(settings, client, pool)
        stop = stop or asyncio.Event()
        _install_signal_handlers(stop)

        runner = asyncio.create_task(driver.run_forever(), name="reconciliation-driver")
        stopper = asyncio.create_task(stop.wait(), name="stop-signal")
        await asyncio.wait({runner, stopper}, return_when=asyncio.FIRST_COMPLETED)

        logger.info("Shutting down.")
        await driver.shutdown(grace_ms=grace_ms)
        for task in (runner, stopper):
            task.cancel()
        await asyncio.gather(runner, stopper, return_exceptions=True)
