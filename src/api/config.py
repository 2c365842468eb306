"""Application configuration.

Loaded once from the environment (and .env), validated at startup and
handed to handlers through the get_settings dependency.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    ENVIRONMENT: Literal["development", "test", "production"] = "development"
    LOG_LEVEL: str = "INFO"

    # Web app origin used for final redirects when the request gives none
    WEB_ORIGIN: str = "https://example.com"
    # Comma-separated extra origins allowed by CORS
    WEB_ORIGINS: Optional[str] = None

    MONGO_URL: Optional[str] = None
    MONGODB_DATABASE: str = "qrafty"

    JWT_SECRET_KEY: str = Field(
        ...,
        min_length=32,
        description="HS256 signing key. Generate with: openssl rand -hex 32",
    )
    JWT_EXPIRATION_DAYS: int = Field(default=7, ge=1, le=90)

    # Google sign-in is disabled unless all three are set
    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_CLIENT_SECRET: Optional[str] = None
    GOOGLE_REDIRECT_URL: Optional[str] = None
    GOOGLE_HTTP_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0, le=60)

    @field_validator("GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET", "GOOGLE_REDIRECT_URL", "WEB_ORIGINS", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("WEB_ORIGIN", "GOOGLE_REDIRECT_URL")
    @classmethod
    def must_be_http_url(cls, v):
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError("must be an http(s) URL")
        return v.rstrip("/") if v else v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def google_configured(self) -> bool:
        return bool(self.GOOGLE_CLIENT_ID and self.GOOGLE_CLIENT_SECRET and self.GOOGLE_REDIRECT_URL)

    @property
    def cors_origins(self) -> list[str]:
        origins = [self.WEB_ORIGIN]
        if self.WEB_ORIGINS:
            origins.extend(o.strip().rstrip("/") for o in self.WEB_ORIGINS.split(",") if o.strip())
        return list(dict.fromkeys(origins))


@lru_cache
def get_settings() -> Settings:
    return Settings()
