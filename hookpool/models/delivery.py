"""Delivery results and dispatch loop states."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

DEFAULT_RETRY_AFTER_MS = 1000


class DeliveryOutcome(str, Enum):
    """How a dispatch loop should react to a delivery attempt."""

    DELIVERED = "delivered"
    RATE_LIMITED = "rate_limited"
    INVALID = "invalid"  # webhook deleted or token revoked
    FAILED = "failed"  # anything else, treated as transient


class DeliveryResult(BaseModel):
    """Outcome of a single webhook POST.

    ``status`` is ``0`` when no HTTP response was received.
    """

    model_config = ConfigDict(frozen=True)

    status: int
    retry_after_ms: int | None = None

    @property
    def outcome(self) -> DeliveryOutcome:
        if self.status in (401, 404):
            return DeliveryOutcome.INVALID
        if self.status == 429:
            return DeliveryOutcome.RATE_LIMITED
        if 200 <= self.status < 300:
            return DeliveryOutcome.DELIVERED
        return DeliveryOutcome.FAILED

    @property
    def backoff_ms(self) -> int:
        """Milliseconds to wait after a rate-limited response."""
        if self.retry_after_ms is None:
            return DEFAULT_RETRY_AFTER_MS
        return self.retry_after_ms


class LoopState(str, Enum):
    """Lifecycle of a dispatch loop."""

    RUNNING = "running"
    SENDING = "sending"
    STOPPED = "stopped"
    CANCELLED = "cancelled"


# Terminal states (STOPPED, CANCELLED) have no outgoing transitions.
VALID_TRANSITIONS: dict[LoopState, set[LoopState]] = {
    LoopState.RUNNING: {LoopState.SENDING, LoopState.CANCELLED},
    LoopState.SENDING: {LoopState.RUNNING, LoopState.STOPPED, LoopState.CANCELLED},
    LoopState.STOPPED: set(),  # terminal
    LoopState.CANCELLED: set(),  # terminal
}
