"""Discord REST bridge — the only module that talks HTTP.

Wraps ``httpx.AsyncClient`` behind the narrow interface the core needs:
list channels, list webhooks, create a webhook, and post a message to a
webhook URL.  REST calls raise ``DiscordAPIError`` on failure; webhook
delivery never raises and reports its status through ``DeliveryResult``
so that the dispatch loop alone decides what a status means.
"""

from __future__ import annotations

import logging
import math
from typing import Any

import httpx

from hookpool.errors import DiscordAPIError, GuildUnavailableError
from hookpool.models.delivery import DeliveryResult
from hookpool.models.endpoint import Channel, Webhook

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://discord.com/api/v10"
DEFAULT_TIMEOUT = 15.0
USER_AGENT = "DiscordBot (hookpool, 0.1.0)"


def parse_retry_after(response: httpx.Response) -> int | None:
    """Return the rate-limit wait in milliseconds, or ``None`` if the response gives none.

    Discord reports ``retry_after`` in seconds (float) in the JSON body;
    the ``Retry-After`` header is used when the body has no hint.
    """
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("retry_after"):
        try:
            return math.ceil(float(data["retry_after"]) * 1000)
        except (TypeError, ValueError):
            pass

    header = response.headers.get("Retry-After")
    if header:
        try:
            return math.ceil(float(header) * 1000)
        except ValueError:
            return None
    return None


def _error_from_response(response: httpx.Response) -> DiscordAPIError:
    message = response.reason_phrase or "request failed"
    code: int | None = None
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        message = str(data.get("message", message))
        code = data.get("code")
    return DiscordAPIError(response.status_code, message, code)


def _payload_error(path: str, exc: Exception) -> DiscordAPIError:
    # 2xx response whose JSON does not have the expected shape
    return DiscordAPIError(0, f"Unexpected payload from {path}: {exc!r}")


def _webhook_from_payload(item: dict[str, Any], channel_id: str) -> Webhook:
    # pydantic's ValidationError is a ValueError
    return Webhook(
        id=str(item["id"]),
        channel_id=str(item.get("channel_id") or channel_id),
        name=item.get("name"),
        token=item.get("token"),
    )


class DiscordClient:
    """Async Discord REST client authenticated as a bot.

    Parameters
    ----------
    token:
        The bot token (sent as ``Authorization: Bot <token>``).
    api_base:
        REST base URL.  Defaults to API v10.
    timeout:
        Per-request timeout in seconds.
    transport:
        Optional ``httpx`` transport; tests pass an ``httpx.MockTransport``.

    Usage::

        async with DiscordClient(token) as client:
            channels = await client.list_channels(guild_id)
    """

    def __init__(
        self,
        token: str,
        *,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_base = api_base.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._api_base,
            headers={
                "Authorization": f"Bot {token}",
                "User-Agent": USER_AGENT,
            },
            timeout=timeout,
            transport=transport,
        )
        # Webhook URLs carry their own credential; the bot token stays off them
        self._webhook_client = httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> DiscordClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        for client in (self._client, self._webhook_client):
            if not client.is_closed:
                await client.aclose()

    # ------------------------------------------------------------------
    # REST
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise DiscordAPIError(0, f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            raise _error_from_response(response)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise DiscordAPIError(
                response.status_code, f"{method} {path} returned a malformed body: {exc}"
            ) from exc

    async def get_current_user(self) -> dict[str, Any]:
        """Fetch the bot user; a 401 here means the token is bad."""
        return await self._request("GET", "/users/@me")

    async def get_guild(self, guild_id: str) -> dict[str, Any]:
        try:
            return await self._request("GET", f"/guilds/{guild_id}")
        except DiscordAPIError as exc:
            raise GuildUnavailableError(exc.status, exc.message, exc.code) from exc

    async def list_channels(self, guild_id: str) -> list[Channel]:
        path = f"/guilds/{guild_id}/channels"
        data = await self._request("GET", path)
        try:
            return [Channel.model_validate(item) for item in data or []]
        except (TypeError, ValueError) as exc:
            raise _payload_error(path, exc) from exc

    async def list_webhooks(self, channel_id: str) -> list[Webhook]:
        path = f"/channels/{channel_id}/webhooks"
        data = await self._request("GET", path)
        try:
            return [_webhook_from_payload(item, channel_id) for item in data or []]
        except (KeyError, TypeError, ValueError) as exc:
            raise _payload_error(path, exc) from exc

    async def create_webhook(self, channel_id: str, name: str) -> Webhook:
        path = f"/channels/{channel_id}/webhooks"
        data = await self._request("POST", path, json={"name": name})
        try:
            return _webhook_from_payload(data, channel_id)
        except (KeyError, TypeError, ValueError) as exc:
            raise _payload_error(path, exc) from exc

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def deliver(self, url: str, content: str) -> DeliveryResult:
        """POST *content* to a webhook URL.  Never raises for HTTP or network errors."""
        try:
            response = await self._webhook_client.post(url, json={"content": content})
        except httpx.HTTPError as exc:
            logger.error("Webhook POST failed: %s", exc)
            return DeliveryResult(status=0)

        if response.status_code == 429:
            return DeliveryResult(status=429, retry_after_ms=parse_retry_after(response))
        return DeliveryResult(status=response.status_code)
