"""
Application configuration using pydantic-settings.

WHAT: Centralized config from environment variables
WHY: Type-safe, validated config with the defaults existing deployments rely on
HOW: Pydantic BaseSettings reads from .env and environment
"""

from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Literal
from pathlib import Path


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App metadata
    APP_NAME: str = "WTB Seller Offers Bot"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    PORT: int = 10000

    # Discord
    DISCORD_TOKEN: str = ""
    DISCORD_PUBLIC_KEY: str = ""  # hex Ed25519 key of the Discord application
    DISCORD_API_BASE_URL: str = "https://discord.com/api/v10"
    DISCORD_TIMEOUT: float = 10.0  # seconds
    DISCORD_VERIFY_SIGNATURES: bool = True

    # Accepts a comma-separated string; parsed by get_deals_channel_ids()
    DISCORD_DEALS_CHANNEL_ID: str = ""
    PAYOUT_CATEGORY_ID: str = ""
    PROCESS_DEAL_WEBHOOK_URL: str = ""

    # Record store selection
    STORE_BACKEND: Literal["airtable", "sql"] = "airtable"
    STORE_TIMEOUT: float = 10.0  # seconds, per store request

    # Airtable
    AIRTABLE_API_KEY: str = ""
    AIRTABLE_BASE_ID: str = ""
    AIRTABLE_API_URL: str = "https://api.airtable.com/v0"
    AIRTABLE_SELLER_OFFERS_TABLE: str = "Seller Offers"
    AIRTABLE_SELLERS_TABLE: str = "Sellers Database"
    AIRTABLE_ORDERS_TABLE: str = "Unfulfilled Orders Log"
    AIRTABLE_FALLBACK_CEILING_FIELD: str = "Max Buying Price"

    # SQL store
    DATABASE_URL: str = "sqlite:///./data/offers.db"

    # Bidding rules
    MIN_UNDERCUT_STEP: float = 2.5  # currency units
    VAT_MULTIPLIER: float = 1.21
    UNDERCUT_TOLERANCE: float = 1e-9
    SELLER_CODE_PREFIX: str = "SE-"
    CURRENCY_SYMBOL: str = "€"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "./data/logs/app.log"

    @field_validator("DISCORD_DEALS_CHANNEL_ID", mode="before")
    @classmethod
    def parse_channel_ids(cls, v):
        """Accept a list of channel IDs as well as a comma-separated string."""
        if isinstance(v, (list, tuple)):
            return ",".join(str(item) for item in v)
        return v

    def get_deals_channel_ids(self) -> list[str]:
        """Get the deals channel IDs as a list."""
        return [cid.strip() for cid in self.DISCORD_DEALS_CHANNEL_ID.split(",") if cid.strip()]

    def missing_required(self) -> list[str]:
        """
        List required settings that are unset.

        Airtable credentials are only required when Airtable is the store.
        """
        required = ["DISCORD_TOKEN", "DISCORD_DEALS_CHANNEL_ID"]
        if self.STORE_BACKEND == "airtable":
            required += ["AIRTABLE_API_KEY", "AIRTABLE_BASE_ID"]
        return [name for name in required if not str(getattr(self, name)).strip()]

    class Config:
        # Look for .env in project root first, then backend/.env
        env_file = [
            str(Path(__file__).parent.parent.parent.parent / ".env"),
            str(Path(__file__).parent.parent.parent / ".env"),
        ]
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Singleton instance
settings = Settings()
