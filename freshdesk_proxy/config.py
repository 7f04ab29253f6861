"""
Freshdesk Ticket Proxy - Configuration Management
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Freshdesk caps per_page at 100 on list endpoints
MAX_TICKETS_PER_REQUEST = 100


class Settings(BaseSettings):
    """Application settings"""

    # FastAPI
    fastapi_env: str = "development"
    fastapi_host: str = "0.0.0.0"
    fastapi_port: int = 8000

    # Freshdesk
    freshdesk_domain: str = ""
    freshdesk_api_key: str = ""
    freshdesk_timeout: float = 30.0
    freshdesk_max_retries: int = 3
    freshdesk_backoff_base: float = 1.0

    # Browser client defaults
    per_page: int = 10
    tickets_per_request: int = MAX_TICKETS_PER_REQUEST
    ui_routes: Dict[str, str] = Field(
        default_factory=lambda: {
            "tickets": "/",
            "new": "/new",
            "view": "/view",
        }
    )

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("tickets_per_request")
    @classmethod
    def cap_tickets_per_request(cls, value: int) -> int:
        return max(1, min(value, MAX_TICKETS_PER_REQUEST))

    @property
    def FRESHDESK_BASE_URL(self) -> str:
        """Construct Freshdesk API v2 base URL from domain"""
        return f"https://{self.freshdesk_domain}/api/v2"


@dataclass(frozen=True)
class FreshdeskConfig:
    """
    Immutable connection settings for the Freshdesk API client.

    Built once at startup and handed to every FreshdeskClient.
    """
    base_url: str
    api_key: str
    timeout: float = 30.0
    max_retries: int = 3
    backoff_base: float = 1.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "FreshdeskConfig":
        return cls(
            base_url=settings.FRESHDESK_BASE_URL,
            api_key=settings.freshdesk_api_key,
            timeout=settings.freshdesk_timeout,
            max_retries=max(1, settings.freshdesk_max_retries),
            backoff_base=settings.freshdesk_backoff_base,
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
