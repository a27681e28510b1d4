"""Provisioning models — per-channel deficits, burst plans, pass reports."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ChannelDeficit(BaseModel):
    """How many webhooks a channel still needs to reach the target count."""

    model_config = ConfigDict(frozen=True)

    channel_id: str
    channel_name: str = ""
    existing: int
    missing: int


class BurstPlan(BaseModel):
    """Creation schedule for one reconciliation pass.

    ``slots[i]`` is the channel id of the i-th creation start, which is
    delayed by ``i * spacing_ms``.  Anything past ``starts`` is deferred
    to the next pass.
    """

    model_config = ConfigDict(frozen=True)

    total_missing: int
    starts: int
    spacing_ms: int
    slots: list[str] = Field(default_factory=list)

    @property
    def deferred(self) -> int:
        return self.total_missing - self.starts

    def delay_ms(self, index: int) -> int:
        return index * self.spacing_ms


class ProvisionReport(BaseModel):
    """Observable outcome of one reconciliation pass (mutable while the pass runs)."""

    channels_scanned: int = 0
    channels_skipped: int = 0
    discovered: int = 0
    total_missing: int = 0
    scheduled: int = 0
    created: int = 0
    failed: int = 0
    deferred: int = 0
    spacing_ms: int = 0
    aborted: bool = False
