"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # HubSpot CRM (private app token)
    HUBSPOT_ACCESS_TOKEN: str = ""
    HUBSPOT_API_BASE_URL: str = "https://api.hubapi.com"
    HUBSPOT_PORTAL_ID: str = "23384537"

    # Slack incoming webhook for override requests
    SLACK_WEBHOOK_URL: str = ""

    # Compliance rules
    EXPANSIONS_PIPELINE_ID: str = "782785325"
    BUSINESS_TIMEZONE: str = "America/New_York"
    EXTRA_HOLIDAYS: list[str] = []  # ISO dates added to the US federal list

    # Override approval allow-lists
    APPROVER_TEAMS: list[str] = ["Revenue", "IT, Systems & Compliance"]
    APPROVER_USER_IDS: list[str] = ["60990003"]

    # HTTP client timeouts (seconds)
    HTTP_TIMEOUT_READ: float = 10.0
    HTTP_TIMEOUT_MUTATE: float = 30.0

    def has_hubspot_token(self) -> bool:
        return bool(self.HUBSPOT_ACCESS_TOKEN)

    def deal_url(self, deal_id: str) -> str:
        """Return the HubSpot web URL for a deal record."""
        return f"https://app.hubspot.com/contacts/{self.HUBSPOT_PORTAL_ID}/deal/{deal_id}"


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
