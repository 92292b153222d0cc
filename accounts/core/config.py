"""Application configuration management using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Required settings will raise validation errors if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="accounts-service", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )

    # Cassandra
    cassandra_contact_points: str = Field(
        default="127.0.0.1",
        description="Comma-separated list of Cassandra contact points",
    )
    cassandra_port: int = Field(default=9042, description="Cassandra native protocol port")
    cassandra_keyspace: str = Field(default="accounts", description="Keyspace holding users and bots")
    cassandra_create_schema: bool = Field(
        default=False,
        description="Create the keyspace and tables at startup if they do not exist",
    )
    cassandra_connect_retries: int = Field(default=5, description="Connection attempts at startup")

    # Cache
    cache_backend: str = Field(default="redis", description="Profile cache backend (redis/memory)")
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    cache_ttl_seconds: int = Field(default=300, description="Profile snapshot TTL in seconds")
    cache_max_size: int = Field(default=10000, description="Max entries for the in-memory cache backend")

    # Secrets
    pii_encryption_key: str = Field(..., description="AES-256 key for PII at rest, as 64 hex characters")
    jwt_secret: str = Field(..., description="Secret used to verify requester bearer tokens")
    jwt_algorithm: str = Field(default="HS256", description="Bearer token signing algorithm")
    bcrypt_rounds: int = Field(default=12, description="bcrypt cost factor for new password hashes")

    @field_validator("cache_backend")
    @classmethod
    def validate_cache_backend(cls, value: str) -> str:
        """Only the known cache backends are accepted."""
        value = value.lower()
        if value not in ("redis", "memory"):
            raise ValueError(f"Unsupported cache backend: {value}")
        return value

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def cassandra_hosts(self) -> list[str]:
        """Parse Cassandra contact points into a list."""
        return [host.strip() for host in self.cassandra_contact_points.split(",") if host.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
