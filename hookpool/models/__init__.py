"""hookpool data models — Pydantic v2."""

from hookpool.models.delivery import (
    DEFAULT_RETRY_AFTER_MS,
    VALID_TRANSITIONS,
    DeliveryOutcome,
    DeliveryResult,
    LoopState,
)
from hookpool.models.endpoint import Channel, Endpoint, Webhook, webhook_url
from hookpool.models.provisioning import BurstPlan, ChannelDeficit, ProvisionReport

__all__ = [
    # endpoint
    "Channel",
    "Endpoint",
    "Webhook",
    "webhook_url",
    # delivery
    "DEFAULT_RETRY_AFTER_MS",
    "DeliveryOutcome",
    "DeliveryResult",
    "LoopState",
    "VALID_TRANSITIONS",
    # provisioning
    "BurstPlan",
    "ChannelDeficit",
    "ProvisionReport",
]
