"""
Application configuration using pydantic-settings.
Loads from environment variables / .env file.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )
    
    # Application
    app_name: str = "sammilan"
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    
    # API Server
    host: str = "0.0.0.0"
    port: int = 8000
    
    # Postgres (empty disables the database layer)
    database_url: str = ""
    database_ssl: bool = True
    
    # Redis (Celery broker + stats cache)
    redis_url: str = "redis://localhost:6379/0"
    
    # Razorpay
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    razorpay_webhook_secret: str = ""
    gateway_timeout_seconds: float = 10.0
    
    # Donations
    donation_currency: str = "INR"
    donation_min_amount: Decimal = Decimal("10")
    donation_max_amount: Decimal = Decimal("1000000")
    receipt_prefix: str = "SRTK"
    
    # Reconciliation sweep
    reconcile_stale_minutes: int = 15
    reconcile_batch_size: int = 50
    reconcile_interval_minutes: int = 5
    
    # Admin / cron
    admin_api_key: str = ""
    cron_secret: str = ""
    
    # Public stats cache TTL
    stats_cache_seconds: int = 300
    
    @property
    def is_development(self) -> bool:
        return self.app_env == "development"
    
    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
