"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
See .env.example for required variables.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ==========================================================================
    # Credentials
    # ==========================================================================
    openai_api_key: SecretStr = Field(description="API key for the hosted assistant")
    n8n_webhook_url: str = Field(
        description="n8n webhook used for availability checks and reservation submission"
    )

    # ==========================================================================
    # Assistant API
    # ==========================================================================
    assistant_id: str = Field(
        default="asst_b9nj6pRfL5ZIRJJ7fxd1JA8o",
        description="Assistant that handles the reservation conversation",
    )
    assistant_api_base: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the assistant API",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for every outbound HTTP request",
    )

    # ==========================================================================
    # Run polling
    # ==========================================================================
    run_poll_interval_seconds: float = Field(
        default=1.0,
        description="Delay between run status polls",
    )
    run_max_wait_seconds: float = Field(
        default=60.0,
        description="Maximum time to wait for a single run to finish",
    )
    run_cancel_max_polls: int = Field(
        default=10,
        description="Polls allowed for a cancelled run to reach a terminal status",
    )
    extraction_max_polls: int = Field(
        default=15,
        description="Poll cap for a structured-data extraction run",
    )
    extraction_max_retries: int = Field(
        default=3,
        description="Extra extraction attempts after the first one fails",
    )

    # ==========================================================================
    # Restaurant
    # ==========================================================================
    restaurant_name: str = Field(default="Restaurante Park")
    agent_name: str = Field(default="Andy")
    timezone: str = Field(
        default="Europe/Madrid",
        description="Timezone used for the date context sent to the assistant",
    )
    reservation_cost: str = Field(
        default="1.99",
        description="Cost reported to the webhook with each submitted reservation",
    )
    webhook_ready_prompt: bool = Field(
        default=False,
        description="Pause once before the first webhook call (n8n test workflows)",
    )

    # ==========================================================================
    # Application
    # ==========================================================================
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING", description="Logging level"
    )
    log_dir: str = Field(default="logs", description="Directory for log files")
    log_to_file: bool = Field(default=False, description="Write rotating log files")

    # ==========================================================================
    # Derived Properties
    # ==========================================================================
    @property
    def effective_log_level(self) -> str:
        """Debug mode always logs at DEBUG."""
        return "DEBUG" if self.debug else self.log_level


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]  # loads from env
