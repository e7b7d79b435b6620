"""Library configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="JWSKIT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # JWT
    token_type: str = "JWT"
    default_leeway_seconds: float = 0.0

    # RSA (RFC 7518 section 3.3 requires at least 2048 bits)
    rsa_min_key_size: int = 2048


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
