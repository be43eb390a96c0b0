"""Application configuration using pydantic-settings.

Business-policy constants of the limit engine (new-user window, volume
window, EUR ceiling) live here so they can be tuned per environment.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")
    dry_run: bool = Field(default=True, description="Use simulated quotas instead of the remote service")

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Quota Service
    # ======================
    quota_api_url: str = Field(
        default="https://api.fastspot.io/fast/v1", description="Remote quota service base URL"
    )
    quota_api_key: str = Field(default="", description="Remote quota service API key")
    http_timeout: float = Field(default=30.0, description="Quota request timeout in seconds")

    # ======================
    # New-User EUR Window
    # ======================
    new_user_limit_eur: Decimal = Field(
        default=Decimal("100"), description="EUR allowance during the first days after first use"
    )
    new_user_window_days: int = Field(
        default=3, description="Days after the first EUR swap during which the allowance applies"
    )

    # ======================
    # Swapped Volume Window
    # ======================
    volume_window_days: int = Field(
        default=30, description="Days of swap history counted against the monthly limit"
    )
    volume_window_buffer_hours: int = Field(
        default=3, description="Extra hours added to the volume window"
    )

    # ======================
    # Placeholder Addresses
    # ======================
    nim_placeholder_address: str = Field(
        default="NQ07 0000 0000 0000 0000 0000 0000 0000 0000",
        description="NIM address queried when no NIM address is selected",
    )
    btc_placeholder_address: str = Field(
        default="1111111111111111111114oLvT2",
        description="BTC burn address queried when no BTC address is selected",
    )

    # ======================
    # Classifier
    # ======================
    strict_output_selection: bool = Field(
        default=False,
        description="Raise instead of skipping BTC swap transactions without a unique HTLC output",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def has_quota_api_key(self) -> bool:
        """Check if the remote quota service is configured."""
        return bool(self.quota_api_key)

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "dry_run": self.dry_run,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "quota": {
                "url": self.quota_api_url,
                "api_key": "***" if self.quota_api_key else "(not set)",
                "timeout": self.http_timeout,
            },
            "policy": {
                "new_user_limit_eur": str(self.new_user_limit_eur),
                "new_user_window_days": self.new_user_window_days,
                "volume_window_days": self.volume_window_days,
                "volume_window_buffer_hours": self.volume_window_buffer_hours,
            },
            "strict_output_selection": self.strict_output_selection,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
