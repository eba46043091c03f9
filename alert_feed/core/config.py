"""
Application configuration using pydantic-settings.
Manages database connection settings, feed fetching and polling parameters.
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )
    
    # Application settings
    APP_NAME: str = "Keyword Alert Feed"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    
    # PostgreSQL settings
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "alert_feed"
    POSTGRES_POOL_SIZE: int = 10
    POSTGRES_MAX_OVERFLOW: int = 20
    
    @property
    def postgres_url(self) -> str:
        """Async PostgreSQL connection URL."""
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )
    
    # Feed fetching settings
    FEED_REQUEST_TIMEOUT_SECONDS: float = 30.0
    FEED_CONNECT_TIMEOUT_SECONDS: float = 10.0
    FEED_MAX_RETRIES: int = 3
    FEED_RETRY_DELAY_SECONDS: float = 5.0
    FEED_USER_AGENT: str = "Mozilla/5.0"
    FEED_GATEWAY_URL: Optional[str] = None
    FEED_DEFAULT_SOURCE: str = "RSS Feed"
    
    # Polling settings
    POLL_INTERVAL_SECONDS: float = 60.0
    POLL_AUTO_REFRESH: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
