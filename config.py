"""
Application configuration: environment-aware settings.

All environment variables are documented here. See .env.example for a template.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).parent


class BaseConfig:
    # Core Flask
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key-change-in-production")
    DATABASE = os.environ.get("DATABASE_URL", str(BASE_DIR / "effort_monitor.db"))

    # Logging
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")  # "json" or "text"
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Redis (task queue + rate limit storage)
    REDIS_URL = os.environ.get("REDIS_URL", "")
    RATELIMIT_STORAGE_URI = os.environ.get("REDIS_URL", "") or "memory://"
    ROSTER_RATE_LIMIT = os.environ.get("ROSTER_RATE_LIMIT", "60 per minute")

    # Effort scoring
    EFFORT_STREAK_WINDOW_DAYS = int(os.environ.get("EFFORT_STREAK_WINDOW_DAYS", "7"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")


class ProductionConfig(BaseConfig):
    DEBUG = False
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json")

    @classmethod
    def validate(cls):
        """Fail fast on missing or insecure configuration in production."""
        errors: list[str] = []

        if cls.SECRET_KEY in ("dev-key-change-in-production", ""):
            errors.append("SECRET_KEY must be set to a secure value in production.")

        if cls.EFFORT_STREAK_WINDOW_DAYS < 1:
            errors.append("EFFORT_STREAK_WINDOW_DAYS must be at least 1.")

        if errors:
            raise RuntimeError(
                "Production configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            )


class TestingConfig(BaseConfig):
    TESTING = True
    RATELIMIT_ENABLED = False
    LOG_LEVEL = "WARNING"


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
