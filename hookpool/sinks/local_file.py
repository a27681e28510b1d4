"""Local file sink — one webhook URL per line, overwritten on every save."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path

logger = logging.getLogger(__name__)


class LocalFileSink:
    """Writes the address set to a plain text file.

    The file is replaced atomically (temp file + ``os.replace``) so a
    reader never sees a half-written list.

    Parameters
    ----------
    path:
        Destination file.  Defaults to ``webhooks.txt``.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path) if path else Path("webhooks.txt")

    @property
    def sink_name(self) -> str:
        return "local_file"

    @property
    def path(self) -> Path:
        return self._path

    def save(self, addresses: Sequence[str]) -> bool:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            if self._path.parent != Path(""):
                self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text("\n".join(addresses), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            logger.error("Failed to persist webhooks to %s: %s", self._path, exc)
            return False

        logger.info("Saved %d webhook(s) to %s", len(addresses), self._path)
        return True

    def read_lines(self) -> list[str]:
        """Read the persisted addresses back (diagnostics and tests only)."""
        if not self._path.exists():
            return []
        return [line for line in self._path.read_text(encoding="utf-8").split("\n") if line]
