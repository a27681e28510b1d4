"""Endpoint registry — the shared address -> Endpoint map.

Constructed once at startup and passed by reference to the provisioner,
the dispatch loops and the reconciliation driver.  All access happens on
the event loop thread, so a plain dict is enough: the provisioner
inserts, a dispatch loop removes only its own key, and the driver flips
``loop_active`` exactly once per entry.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterator

from hookpool.models.endpoint import Endpoint


class EndpointRegistry:
    """Single source of truth for which webhooks exist and which are being driven."""

    def __init__(self) -> None:
        self._entries: dict[str, Endpoint] = {}

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def upsert(self, endpoint: Endpoint, *, overwrite: bool = False) -> Endpoint:
        """Insert *endpoint* unless its address is already registered.

        With ``overwrite=True`` the stored payload is replaced, but the
        stored ``loop_active`` flag always survives so that discovery
        never detaches a running loop from its entry.

        Returns the entry now held by the registry.
        """
        current = self._entries.get(endpoint.url)
        if current is None:
            self._entries[endpoint.url] = endpoint
            return endpoint
        if not overwrite:
            return current
        replacement = endpoint.model_copy(update={"loop_active": current.loop_active})
        self._entries[endpoint.url] = replacement
        return replacement

    def remove(self, address: str) -> Endpoint | None:
        """Delete the entry for *address*; removing an absent address is a no-op."""
        return self._entries.pop(address, None)

    def mark_loop_active(self, address: str) -> bool:
        entry = self._entries.get(address)
        if entry is None:
            return False
        entry.loop_active = True
        return True

    def clear_loop_active(self, address: str) -> bool:
        entry = self._entries.get(address)
        if entry is None:
            return False
        entry.loop_active = False
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, address: str) -> Endpoint | None:
        return self._entries.get(address)

    def snapshot_addresses(self) -> list[str]:
        """Point-in-time list of every registered address."""
        return list(self._entries)

    def entries_without_running_loop(self) -> list[Endpoint]:
        return [e for e in list(self._entries.values()) if not e.loop_active]

    def count_by_channel(self) -> dict[str, int]:
        return dict(Counter(e.channel_id for e in self._entries.values()))

    def __contains__(self, address: object) -> bool:
        return address in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(list(self._entries.values()))
