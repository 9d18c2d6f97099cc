"""
Single source of truth for service configuration.
All settings are typed and loaded from environment variables
(or a local .env file during development).
"""
from functools import lru_cache
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Service settings.

    - SECRET_TOKEN is mandatory: building settings without it fails,
      and the process refuses to start
    - Service URLs are optional: a trigger whose URL is missing
      is skipped at fire time
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    # === Auth ===
    SECRET_TOKEN: str = Field(
        min_length=1,
        description="Shared secret sent to every downstream service"
    )

    # === Downstream services ===
    COIN_SIFTER_URL: Optional[str] = Field(
        default=None,
        description="Coin sifter base URL"
    )
    KLINE_PROVIDER_URL: Optional[str] = Field(
        default=None,
        description="Market-data (kline) provider base URL"
    )
    WAKEUP_URL: Optional[str] = Field(
        default=None,
        description="Generic wake-up target base URL"
    )

    # === Wake-up endpoints ===
    COIN_SIFTER_WAKEUP_PATH: str = Field(default="/blacklist")
    KLINE_WAKEUP_PATH: str = Field(default="/cache/global_fr")
    WAKEUP_PATH: str = Field(default="/price")

    # === HTTP server ===
    HOST: str = Field(default="0.0.0.0", description="Listen interface")
    PORT: int = Field(default=8000, ge=1, le=65535, description="Listen port")

    # === Outbound HTTP ===
    HTTP_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)
    HTTP_CONNECT_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)

    # === Jitter ===
    WAKEUP_MAX_JITTER_SECONDS: int = Field(
        default=120,
        ge=0,
        description="Upper bound of the random delay before a wake-up ping"
    )
    WAKEUP_SHORT_JITTER_SECONDS: int = Field(
        default=60,
        ge=0,
        description="Shorter jitter bound for the generic wake-up target"
    )

    # === Scheduler ===
    SCHEDULER_ENABLED: bool = Field(default=True)
    SCHEDULER_TIMEZONE: str = Field(default="UTC")

    # === Logging ===
    LOG_LEVEL: str = Field(default="INFO")
    LOG_JSON: bool = Field(default=False)

    @field_validator("COIN_SIFTER_URL", "KLINE_PROVIDER_URL", "WAKEUP_URL")
    @classmethod
    def normalize_base_url(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank URLs as missing and strip trailing slashes."""
        if v is None:
            return None
        v = v.strip().rstrip("/")
        return v or None

    @field_validator("LOG_LEVEL")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.strip().upper()

    def service_url(self, key: str) -> Optional[str]:
        """Look up a base URL setting by its environment variable name."""
        return getattr(self, key, None)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    The LRU cache ensures env vars are parsed once. Raises
    pydantic.ValidationError when SECRET_TOKEN is missing.
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Force reload settings from environment.
    Useful for testing or when env vars change at runtime.
    """
    get_settings.cache_clear()
    return get_settings()
