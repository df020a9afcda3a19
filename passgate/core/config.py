# passgate/core/config.py

import json
from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(extra="ignore")

    # The environment mode: 'local' or 'prod'
    ENV: str = "local"

    # --- Document store ---
    # 'memory' keeps everything in-process (tests, local dev); 'redis' uses REDIS_URL
    STORE_BACKEND: str = "memory"
    REDIS_URL_LOCAL: str = "redis://localhost:6379/0"
    REDIS_URL_PROD: str = "redis://redis:6379/0"
    STORE_KEY_PREFIX: str = "passgate"

    # --- Secrets ---
    JWT_SECRET: str = ""
    # Empty means unset: signing raises, verification always fails
    QR_SECRET_KEY: str = ""
    QR_TOKEN_EXPIRY_DAYS: int = 30

    # --- Dashboard scan windows and page sizes ---
    DASHBOARD_SCAN_LIMIT: int = 2000
    REVENUE_SCAN_LIMIT: int = 10000
    METRICS_SCAN_LIMIT: int = 2000
    METRICS_DAY_SCAN_LIMIT: int = 1000
    DASHBOARD_PAGE_SIZE: int = 50
    DASHBOARD_MAX_PAGE_SIZE: int = 100
    EXPORT_PAGE_SIZE: int = 1000
    EXPORT_MAX_PAGE_SIZE: int = 2000
    MAX_PAGE: int = 10000
    JOIN_BATCH_SIZE: int = 100
    BULK_MAX_TARGETS: int = 100
    AUDIT_LOG_DEFAULT_LIMIT: int = 50
    AUDIT_LOG_MAX_LIMIT: int = 200
    VENUE_TIMEZONE: str = "Asia/Kolkata"

    # --- Rate limits (limits-style strings) ---
    RATE_LIMITS_ENABLED: bool = True
    RATE_LIMIT_SCAN: str = "30/minute"
    RATE_LIMIT_DASHBOARD: str = "100/minute"
    RATE_LIMIT_EXPORT: str = "10/minute"
    RATE_LIMIT_MUTATION: str = "60/minute"
    RATE_LIMIT_BULK: str = "30/minute"

    # --- On-spot pricing, group_events is per member ---
    PASS_PRICES: Dict[str, int] = {
        "day_pass": 500,
        "group_events": 250,
        "sana_concert": 2000,
        "test_pass": 1,
    }

    # CORS - Stored as string, parsed via get_cors_origins() method
    CORS_ORIGINS: Optional[str] = None

    @field_validator("STORE_BACKEND")
    @classmethod
    def validate_store_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("memory", "redis"):
            raise ValueError("STORE_BACKEND must be 'memory' or 'redis'")
        return v

    def get_cors_origins(self) -> List[str]:
        """Parse CORS_ORIGINS from comma-separated string or JSON array"""
        if not self.CORS_ORIGINS:
            return []
        v = self.CORS_ORIGINS.strip()
        if not v:
            return []
        # Try JSON array first
        if v.startswith("["):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(",") if origin.strip()]

    # --- Dynamic Properties ---
    @property
    def REDIS_URL(self) -> str:
        return self.REDIS_URL_LOCAL if self.ENV == "local" else self.REDIS_URL_PROD


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
