import os
import re
from datetime import tzinfo
from typing import List
from functools import lru_cache

import pytz


class Settings:
    """Application settings read from the environment"""

    # Database
    DB_DSN: str = os.getenv("DB_DSN", "")
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "5"))
    DB_ECHO: bool = os.getenv("DB_ECHO", "false").lower() == "true"

    # CORS
    CORS_ALLOW_ORIGINS: List[str] = []
    CORS_ALLOW_CREDENTIALS: bool = True

    # Rate Limiting
    RATE_LIMIT_DEFAULT: str = os.getenv("RATE_LIMIT_DEFAULT", "100/minute")
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Business Rules
    TIMEZONE: str = os.getenv("TIMEZONE", "UTC")
    BULK_MAX_DAYS: int = int(os.getenv("BULK_MAX_DAYS", "366"))
    DEFAULT_PAGE_SIZE: int = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
    MAX_PAGE_SIZE: int = int(os.getenv("MAX_PAGE_SIZE", "100"))

    def __init__(self):
        self._validate()
        self._parse_cors_origins()
        self.tz = parse_timezone(self.TIMEZONE)

    def _validate(self):
        """Validate required settings"""
        if not self.DB_DSN:
            raise ValueError("DB_DSN environment variable must be set")
        if self.BULK_MAX_DAYS <= 0:
            raise ValueError("BULK_MAX_DAYS must be positive")
        if self.DEFAULT_PAGE_SIZE <= 0 or self.MAX_PAGE_SIZE < self.DEFAULT_PAGE_SIZE:
            raise ValueError("Invalid pagination settings")

    def _parse_cors_origins(self):
        """Parse CORS origins from environment"""
        raw_origins = os.getenv("CORS_ALLOW_ORIGINS", "*")

        if raw_origins.strip() == "*":
            self.CORS_ALLOW_ORIGINS = ["*"]
            self.CORS_ALLOW_CREDENTIALS = False  # wildcard forbids credentials
        else:
            self.CORS_ALLOW_ORIGINS = [o.strip() for o in raw_origins.split(",") if o.strip()]
            self.CORS_ALLOW_CREDENTIALS = True

    @property
    def is_sqlite(self) -> bool:
        return self.DB_DSN.startswith("sqlite")


_OFFSET_PATTERN = re.compile(r"^UTC([+-])(\d{2}):(\d{2})$")


def parse_timezone(timezone_str: str) -> tzinfo:
    """
    Parse a timezone string which can be either:
    - A standard IANA timezone name (e.g., 'America/Mexico_City')
    - An offset-based string (e.g., 'UTC-06:00')
    """
    try:
        return pytz.timezone(timezone_str)
    except pytz.exceptions.UnknownTimeZoneError:
        pass

    match = _OFFSET_PATTERN.match(timezone_str)
    if match:
        sign, hours, minutes = match.groups()
        total_offset = int(hours) * 60 + int(minutes)
        if sign == "-":
            total_offset = -total_offset
        return pytz.FixedOffset(total_offset)

    raise ValueError(f"Unknown timezone '{timezone_str}'")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
