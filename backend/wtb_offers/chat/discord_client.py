"""
Discord REST client.

WHAT: Minimal bot-token client for the Discord HTTP API
WHY: Post deal messages, toggle buttons and open payout channels from HTTP handlers
HOW: httpx.AsyncClient with Bot authorization; errors mapped to DiscordError types
"""

import httpx

from .types import DiscordResponseError, DiscordUnavailableError
from ..core.config import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)


class DiscordClient:
    """Async Discord REST client (no gateway connection)."""

    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or settings.DISCORD_API_BASE_URL).rstrip("/")
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout or settings.DISCORD_TIMEOUT),
            headers={
                "Authorization": f"Bot {token or settings.DISCORD_TOKEN}",
                "User-Agent": f"DiscordBot ({settings.APP_NAME}, {settings.APP_VERSION})",
            },
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict | None = None,
        allow_missing: bool = False,
    ) -> dict | None:
        """
        Send one request to the Discord API.

        Returns:
            Decoded JSON body, or None for a 404 when allow_missing is set

        Raises:
            DiscordUnavailableError: Timeout, connection failure, 429 or 5xx
            DiscordResponseError: Other HTTP errors or an undecodable body
        """
        url = f"{self.base_url}{path}"
        try:
            response = await self.client.request(method, url, json=json)
            response.raise_for_status()
            if response.status_code == 204 or not response.content:
                return {}
            return response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"Discord {method} {path} timed out")
            raise DiscordUnavailableError("Discord request timed out") from e
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            if code == 404 and allow_missing:
                return None
            if code == 429 or code >= 500:
                logger.error(f"Discord unavailable ({code}) for {method} {path}")
                raise DiscordUnavailableError(f"Discord returned {code}") from e
            logger.error(f"Discord rejected {method} {path}: {code} {e.response.text[:200]}")
            raise DiscordResponseError(f"HTTP {code}: {e.response.text[:200]}") from e
        except httpx.TransportError as e:
            logger.warning(f"Discord not reachable: {e}")
            raise DiscordUnavailableError("Discord is not reachable") from e
        except ValueError as e:
            raise DiscordResponseError(f"Invalid Discord response: {e}") from e

    async def get_channel(self, channel_id: str) -> dict | None:
        return await self._request("GET", f"/channels/{channel_id}", allow_missing=True)

    async def send_message(self, channel_id: str, payload: dict) -> dict:
        return await self._request("POST", f"/channels/{channel_id}/messages", json=payload)

    async def get_message(self, channel_id: str, message_id: str) -> dict | None:
        return await self._request(
            "GET", f"/channels/{channel_id}/messages/{message_id}", allow_missing=True
        )

    async def edit_message(self, channel_id: str, message_id: str, payload: dict) -> dict:
        return await self._request(
            "PATCH", f"/channels/{channel_id}/messages/{message_id}", json=payload
        )

    async def create_guild_channel(self, guild_id: str, payload: dict) -> dict:
        return await self._request("POST", f"/guilds/{guild_id}/channels", json=payload)

    async def edit_original_response(self, application_id: str, interaction_token: str,
                                     payload: dict) -> dict:
        """Fill in the reply to a deferred interaction."""
        return await self._request(
            "PATCH", f"/webhooks/{application_id}/{interaction_token}/messages/@original", json=payload
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()


# Singleton instance
_client_instance: DiscordClient | None = None


def get_discord_client() -> DiscordClient:
    """Get the shared Discord client."""
    global _client_instance
    if _client_instance is None:
        _client_instance = DiscordClient()
    return _client_instance


def reset_discord_client() -> None:
    """Reset the client singleton (useful for testing)."""
    global _client_instance
    _client_instance = None
