"""
Application configuration using Pydantic Settings
"""
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """
    # Database: DATABASE_URL wins, otherwise assembled from DB_* parts
    DATABASE_URL: str = ""
    DB_HOST: str = "localhost"
    DB_PORT: str = "5432"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_NAME: str = "subscriptions"

    # Create missing tables on startup
    AUTO_MIGRATE: bool = True

    # HTTP server
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8080

    # Listing
    DEFAULT_LIST_LIMIT: int = 100
    MAX_LIST_LIMIT: int = 1000

    # Application
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def get_database_url(self) -> str:
        """Plain libpq-style URL (used by the raw psycopg health check)"""
        if self.DATABASE_URL:
            url = self.DATABASE_URL
            if url.startswith("postgresql+psycopg://"):
                return url.replace("postgresql+psycopg://", "postgresql://", 1)
            return url
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    def get_sqlalchemy_url(self) -> str:
        """
        Convert database URL to SQLAlchemy format (postgresql+psycopg://)
        """
        url = self.get_database_url()
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+psycopg://", 1)
        return url


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance (singleton)
    """
    return Settings()
