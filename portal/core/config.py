from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TOKEN_SIGNING_SECRET = "order-portal-dev-token-secret-change-me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="PORTAL_", extra="ignore")

    app_name: str = "Order Portal"
    env: str = "dev"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    database_url: str = "sqlite+pysqlite:///./portal.db"
    database_busy_timeout_seconds: int = 30

    auth_enabled: bool = True
    dev_principal_id: str = "admin-dev"
    token_signing_secret: str = DEFAULT_TOKEN_SIGNING_SECRET
    token_ttl_seconds: int = 3600

    price_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        description="Max accepted gap between claimed and live amounts, in currency units",
    )
    default_payment_method: str = "cash"

    activity_feed_enabled: bool = True
    activity_feed_limit: int = 50

    def model_post_init(self, __context) -> None:
        if self.env.lower() == "dev":
            return

        insecure_items: list[str] = []
        if self.token_signing_secret == DEFAULT_TOKEN_SIGNING_SECRET:
            insecure_items.append("PORTAL_TOKEN_SIGNING_SECRET")
        if not self.auth_enabled:
            insecure_items.append("PORTAL_AUTH_ENABLED")

        if insecure_items:
            raise ValueError(
                "insecure defaults are not allowed outside dev mode; set env vars: "
                + ", ".join(sorted(insecure_items))
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
