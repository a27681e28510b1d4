"""Message pool — candidate message bodies, loaded once and picked at random.

Source format: plain text, one message per block, blocks separated by a
blank line.  Trailing whitespace is stripped from every line and each
block is trimmed; empty blocks are dropped.
"""

from __future__ import annotations

import logging
import random
import re
from pathlib import Path

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "test"

_BLOCK_SEPARATOR = re.compile(r"\n\s*\n")


def parse_blocks(source: str) -> list[str]:
    """Split raw text into cleaned, non-empty message blocks."""
    text = source.replace("\r", "")
    blocks: list[str] = []
    for block in _BLOCK_SEPARATOR.split(text):
        lines = [line.rstrip() for line in block.split("\n")]
        cleaned = "\n".join(lines).strip()
        if cleaned:
            blocks.append(cleaned)
    return blocks


class MessagePool:
    """Immutable collection of message bodies.

    Parameters
    ----------
    blocks:
        Pre-parsed message bodies.
    rng:
        Random source for ``pick``.  Defaults to the module-level
        generator; tests pass a seeded ``random.Random``.
    """

    def __init__(
        self, blocks: list[str] | tuple[str, ...] = (), rng: random.Random | None = None
    ) -> None:
        self._blocks: tuple[str, ...] = tuple(blocks)
        self._rng = rng or random.Random()

    @classmethod
    def load(cls, source: str, rng: random.Random | None = None) -> MessagePool:
        return cls(parse_blocks(source), rng=rng)

    @classmethod
    def from_file(cls, path: str | Path, rng: random.Random | None = None) -> MessagePool:
        """Load a pool from a text file; a missing file yields an empty pool."""
        source = Path(path)
        if not source.exists():
            logger.info(
                "No message file at %s; every send will use %r", source, FALLBACK_MESSAGE
            )
            return cls(rng=rng)
        pool = cls.load(source.read_text(encoding="utf-8"), rng=rng)
        logger.info("Loaded %d message(s) from %s", len(pool), source)
        return pool

    @property
    def blocks(self) -> tuple[str, ...]:
        return self._blocks

    def __len__(self) -> int:
        return len(self._blocks)

    def pick(self) -> str:
        """Return a uniformly random body, or the fallback when the pool is empty."""
        if not self._blocks:
            return FALLBACK_MESSAGE
        return self._rng.choice(self._blocks)
