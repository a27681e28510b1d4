"""Exception hierarchy for hookpool.

Only startup errors (``ConfigError`` and a failed login) are allowed to
terminate the process.  Everything else is caught at the lowest level
that can decide what to do with it.
"""

from __future__ import annotations


class HookpoolError(RuntimeError):
    """Base class for all hookpool errors."""


class ConfigError(HookpoolError):
    """Raised when the configuration file is missing, malformed, or incomplete."""


class DiscordAPIError(HookpoolError):
    """Raised when a Discord REST call fails.

    ``status`` is the HTTP status code, or ``0`` when the request never
    produced a response (DNS failure, connection reset, timeout).
    """

    def __init__(self, status: int, message: str, code: int | None = None) -> None:
        super().__init__(f"HTTP {status}: {message}" if status else message)
        self.status = status
        self.message = message
        self.code = code


class GuildUnavailableError(DiscordAPIError):
    """Raised when the target guild cannot be fetched (missing or bot not a member)."""


class InvalidTransitionError(HookpoolError):
    """Raised when a dispatch loop attempts a state transition that is not allowed."""
