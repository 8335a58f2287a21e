"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with the
PRODUCT_UPDATES_ prefix. No config files, just env vars.

Learn: list-valued settings (cors_origins) are parsed from JSON, e.g.
PRODUCT_UPDATES_CORS_ORIGINS='["https://shop.example.com"]'.
"""

import re
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All app configuration. Set via PRODUCT_UPDATES_* env vars."""

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 5170
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:4200",
        "http://localhost:62871",
        "http://localhost:5170",
        "http://client",
        "http://client:80",
    ]
    # Hosting platform whose generated domains are allowed in production
    cors_platform_suffix: str = ".azurecontainerapps.io"

    # Push channel
    hub_path: str = "/productHub"
    send_timeout_seconds: float = 5.0

    # Redis backplane (empty = single-process, in-memory fan-out only)
    redis_url: str = ""
    redis_channel: str = "product-updates:events"

    # Client / CLI
    api_url: str = "http://localhost:5170"

    model_config = {"env_prefix": "PRODUCT_UPDATES_"}

    @field_validator("hub_path")
    @classmethod
    def validate_hub_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("hub_path must start with '/'")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def cors_origin_regex(self) -> str | None:
        """Origin pattern for production: any localhost port or the platform's domains."""
        if not self.is_production:
            return None
        suffix = re.escape(self.cors_platform_suffix)
        return rf"https?://(localhost(:\d+)?|[A-Za-z0-9.-]+{suffix})"

    def cors_options(self) -> dict[str, Any]:
        """Keyword arguments for Starlette's CORSMiddleware."""
        return {
            "allow_origins": self.cors_origins,
            "allow_origin_regex": self.cors_origin_regex(),
            "allow_credentials": True,
            "allow_methods": ["*"],
            "allow_headers": ["*"],
        }


# Singleton: import this everywhere
settings = Settings()
