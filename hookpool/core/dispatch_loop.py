"""Dispatch loop — one indefinite send cycle per webhook.

State machine::

    RUNNING -> SENDING -> RUNNING -> ... -> STOPPED    (webhook invalid)
                                      \\-> CANCELLED  (shutdown)

Each iteration picks a body, posts it, reacts to the status, then sleeps
a random pacing delay.  Only 401 and 404 end the loop; 429 sleeps for
the server-provided hint; every other status is ignored until the next
iteration.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Protocol

from hookpool.core.messages import MessagePool
from hookpool.core.registry import EndpointRegistry
from hookpool.errors import InvalidTransitionError
from hookpool.models.delivery import (
    VALID_TRANSITIONS,
    DeliveryOutcome,
    DeliveryResult,
    LoopState,
)
from hookpool.models.endpoint import Endpoint

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class Deliverer(Protocol):
    async def deliver(self, url: str, content: str) -> DeliveryResult: ...


class DispatchLoop:
    """Drives one webhook until it becomes invalid or the process stops.

    Parameters
    ----------
    endpoint:
        The registry entry this loop owns.
    registry:
        Shared registry; the loop removes its own entry on permanent failure.
    pool:
        Message bodies to pick from.
    deliverer:
        Anything with an async ``deliver(url, content)``.
    persist:
        Called once after the entry is removed.
    stopping:
        Shared shutdown flag, checked before every send.
    send_delay_min, send_delay_max:
        Pacing bounds in milliseconds (inclusive).
    sleep, rng:
        Injectable for tests.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        registry: EndpointRegistry,
        pool: MessagePool,
        deliverer: Deliverer,
        persist: Callable[[], None],
        stopping: asyncio.Event,
        *,
        send_delay_min: int = 300,
        send_delay_max: int = 800,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._registry = registry
        self._pool = pool
        self._deliverer = deliverer
        self._persist = persist
        self._stopping = stopping
        self._delay_min = send_delay_min
        self._delay_max = send_delay_max
        self._sleep = sleep
        self._rng = rng or random.Random()

        self.state = LoopState.RUNNING
        self.sent = 0
        self.rate_limited = 0
        self.failures = 0
        self.last_body: str | None = None

    @property
    def url(self) -> str:
        return self._endpoint.url

    @property
    def is_terminal(self) -> bool:
        return not VALID_TRANSITIONS[self.state]

    def _transition(self, target: LoopState) -> None:
        if target not in VALID_TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"Cannot transition dispatch loop from {self.state.value} to {target.value}"
            )
        self.state = target

    def pacing_delay_ms(self) -> int:
        return self._rng.randint(self._delay_min, self._delay_max)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self) -> LoopState:
        """Run until STOPPED or CANCELLED and return the terminal state."""
        try:
            while True:
                if self._stopping.is_set():
                    self._transition(LoopState.CANCELLED)
                    return self.state

                self._transition(LoopState.SENDING)
                body = self._pool.pick()
                self.last_body = body
                result = await self._deliverer.deliver(self.url, body)
                outcome = result.outcome

                if outcome is DeliveryOutcome.INVALID:
                    logger.warning(
                        "Webhook %s invalid (status %d). Removing.", self._endpoint.id, result.status
                    )
                    self._registry.remove(self.url)
                    self._persist()
                    self._transition(LoopState.STOPPED)
                    return self.state

                self._transition(LoopState.RUNNING)

                if outcome is DeliveryOutcome.RATE_LIMITED:
                    self.rate_limited += 1
                    wait_ms = result.backoff_ms
                    logger.warning(
                        "Rate limited on webhook %s, waiting %dms", self._endpoint.id, wait_ms
                    )
                    await self._sleep(wait_ms / 1000)
                elif outcome is DeliveryOutcome.DELIVERED:
                    self.sent += 1
                    logger.debug("Sent via webhook %s: %s", self._endpoint.id, body)
                else:
                    self.failures += 1

                await self._sleep(self.pacing_delay_ms() / 1000)
        except asyncio.CancelledError:
            if not self.is_terminal:
                self.state = LoopState.CANCELLED
            raise
