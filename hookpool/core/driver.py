"""Reconciliation driver — periodic provisioning plus dispatch loop supervision.

The driver owns the task-handle table (address -> ``asyncio.Task``) and
the matching ``DispatchLoop`` objects.  Both are added when a loop is
launched and removed by the task's done callback, so finished loops
never accumulate.  A loop that dies from an unexpected exception has
its ``loop_active`` flag cleared (if its entry still exists) so the next
pass relaunches it.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable

from hookpool.core.dispatch_loop import Deliverer, DispatchLoop, Sleep
from hookpool.core.messages import MessagePool
from hookpool.core.provisioner import EndpointProvisioner
from hookpool.core.registry import EndpointRegistry
from hookpool.models.endpoint import Endpoint
from hookpool.models.provisioning import ProvisionReport

logger = logging.getLogger(__name__)

DEFAULT_GRACE_MS = 300


class ReconciliationDriver:
    """Runs reconciliation passes on a fixed interval and keeps one loop per webhook.

    Parameters
    ----------
    provisioner:
        Performs discovery and creation (and persists at the end of a pass).
    registry:
        The shared endpoint registry.
    pool:
        Message bodies for the dispatch loops.
    deliverer:
        Posts message bodies to webhook URLs.
    persist:
        Passed to every dispatch loop for post-removal writes.
    scan_every_ms:
        Interval between passes.
    send_delay_min, send_delay_max:
        Pacing bounds handed to every loop.
    loop_sleep, rng:
        Injectable sleep and random source for the dispatch loops.
    """

    def __init__(
        self,
        provisioner: EndpointProvisioner,
        registry: EndpointRegistry,
        pool: MessagePool,
        deliverer: Deliverer,
        persist: Callable[[], None],
        *,
        scan_every_ms: int = 5000,
        send_delay_min: int = 300,
        send_delay_max: int = 800,
        loop_sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._provisioner = provisioner
        self._registry = registry
        self._pool = pool
        self._deliverer = deliverer
        self._persist = persist
        self._scan_every_ms = scan_every_ms
        self._send_delay_min = send_delay_min
        self._send_delay_max = send_delay_max
        self._loop_sleep = loop_sleep
        self._rng = rng or random.Random()

        self.stopping = asyncio.Event()
        self._tasks: dict[str, asyncio.Task] = {}
        self._loops: dict[str, DispatchLoop] = {}
        self.passes = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def active_loops(self) -> int:
        return len(self._tasks)

    def loop_for(self, address: str) -> DispatchLoop | None:
        """The dispatch loop currently running for *address*, if any."""
        return self._loops.get(address)

    # ------------------------------------------------------------------
    # Pass
    # ------------------------------------------------------------------

    async def run_pass(self) -> ProvisionReport | None:
        """One reconciliation pass followed by loop spawning.

        Unexpected errors are logged and swallowed so the periodic cycle survives.
        """
        self.passes += 1
        report: ProvisionReport | None = None
        try:
            report = await self._provisioner.reconcile()
            self.spawn_loops()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Monitor error during reconciliation pass %d", self.passes)
        return report

    def spawn_loops(self) -> int:
        """Launch a dispatch loop for every entry without one.  Returns how many started."""
        started = 0
        for endpoint in self._registry.entries_without_running_loop():
            if self.stopping.is_set():
                break
            if not self._registry.mark_loop_active(endpoint.url):
                continue
            self._launch(endpoint)
            started += 1
        if started:
            logger.info("Started %d dispatch loop(s); %d running", started, self.active_loops)
        return started

    def _launch(self, endpoint: Endpoint) -> None:
        loop = DispatchLoop(
            endpoint,
            self._registry,
            self._pool,
            self._deliverer,
            self._persist,
            self.stopping,
            send_delay_min=self._send_delay_min,
            send_delay_max=self._send_delay_max,
            sleep=self._loop_sleep,
            rng=random.Random(self._rng.random()),
        )
        task = asyncio.create_task(loop.run(), name=f"dispatch:{endpoint.id}")
        self._loops[endpoint.url] = loop
        self._tasks[endpoint.url] = task
        task.add_done_callback(lambda t, url=endpoint.url: self._on_loop_done(url, t))

    def _on_loop_done(self, address: str, task: asyncio.Task) -> None:
        if self._tasks.get(address) is task:
            del self._tasks[address]
            del self._loops[address]

        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return

        logger.error(
            "Webhook loop error for %s: %s", address, exc, exc_info=(type(exc), exc, exc.__traceback__)
        )
        if self._registry.clear_loop_active(address):
            logger.info("Loop for %s will be relaunched on the next pass", address)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run_forever(self) -> None:
        """Pass immediately, then every ``scan_every_ms`` until ``stopping`` is set."""
        while not self.stopping.is_set():
            await self.run_pass()
            try:
                await asyncio.wait_for(self.stopping.wait(), timeout=self._scan_every_ms / 1000)
            except asyncio.TimeoutError:
                pass

    async def shutdown(self, grace_ms: int = DEFAULT_GRACE_MS) -> None:
        """Stop every loop: cooperative first, then cancel whatever is left after *grace_ms*."""
        logger.info("Shutting down %d dispatch loop(s).", self.active_loops)
        self.stopping.set()

        tasks = list(self._tasks.values())
        if not tasks:
            return

        _, pending = await asyncio.wait(tasks, timeout=grace_ms / 1000)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
