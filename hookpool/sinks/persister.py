"""Registry persister — snapshot the registry and push it to every sink."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hookpool.core.registry import EndpointRegistry
    from hookpool.sinks import AddressSink

logger = logging.getLogger(__name__)


class RegistryPersister:
    """Zero-argument ``persist()`` callable shared by the provisioner and dispatch loops.

    A failure in one sink does not block the others.  ``writes`` counts
    how many times the persister has been invoked.
    """

    def __init__(self, registry: EndpointRegistry, *sinks: AddressSink) -> None:
        self._registry = registry
        self._sinks: list[AddressSink] = list(sinks)
        self.writes = 0

    @property
    def registered_sinks(self) -> list[AddressSink]:
        return list(self._sinks)

    def __call__(self) -> None:
        self.writes += 1
        addresses = self._registry.snapshot_addresses()
        for sink in self._sinks:
            try:
                sink.save(addresses)
            except Exception as exc:  # noqa: BLE001
                logger.error("Sink %s failed to persist webhooks: %s", sink.sink_name, exc)
