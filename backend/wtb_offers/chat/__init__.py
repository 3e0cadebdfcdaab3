"""Discord chat layer."""

from .types import DiscordError, DiscordUnavailableError, DiscordResponseError
from .discord_client import DiscordClient, get_discord_client, reset_discord_client
from .signature import verify_signature

__all__ = [
    "DiscordError",
    "DiscordUnavailableError",
    "DiscordResponseError",
    "DiscordClient",
    "get_discord_client",
    "reset_discord_client",
    "verify_signature",
]
