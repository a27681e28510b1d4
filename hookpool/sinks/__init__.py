"""Address sink protocol — where the registry's address set is written.

Every sink implements the ``AddressSink`` protocol: a ``sink_name``
property and a ``save(addresses)`` method.  ``RegistryPersister`` snapshots
the registry and hands the addresses to a sink after each reconciliation
pass and after each webhook removal.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable


@runtime_checkable
class AddressSink(Protocol):
    """Protocol that every persistence sink must implement.

    Attributes
    ----------
    sink_name : str
        Human-readable identifier for log lines (e.g. ``"local_file"``).
    """

    @property
    def sink_name(self) -> str:
        """Return the unique name of this sink."""
        ...

    def save(self, addresses: Sequence[str]) -> bool:
        """Persist the full address set, replacing whatever was there.

        Implementations must not raise: a failed write is logged and
        reported by returning ``False``.  The next pass writes again.
        """
        ...
