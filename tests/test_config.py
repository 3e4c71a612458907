"""
Settings and timezone parsing tests.
"""

import os
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from tourops.core import Settings, parse_timezone


class TestParseTimezone:

    def test_iana_name(self):
        tz = parse_timezone("America/Mexico_City")
        local = tz.localize(datetime(2024, 1, 15, 8, 0))
        assert local.utcoffset() == timedelta(hours=-6)

    def test_utc_offset_string(self):
        tz = parse_timezone("UTC-06:00")
        assert tz.utcoffset(datetime(2024, 1, 1)) == timedelta(hours=-6)

    def test_positive_offset(self):
        tz = parse_timezone("UTC+05:30")
        assert tz.utcoffset(datetime(2024, 1, 1)) == timedelta(hours=5, minutes=30)

    def test_unknown_timezone(self):
        with pytest.raises(ValueError):
            parse_timezone("Mars/Olympus")


class TestSettings:

    def test_missing_dsn_rejected(self):
        with patch.object(Settings, "DB_DSN", ""):
            with pytest.raises(ValueError, match="DB_DSN"):
                Settings()

    def test_cors_wildcard_disables_credentials(self):
        with patch.dict(os.environ, {"CORS_ALLOW_ORIGINS": "*"}):
            settings = Settings()
        assert settings.CORS_ALLOW_ORIGINS == ["*"]
        assert settings.CORS_ALLOW_CREDENTIALS is False

    def test_cors_origin_list(self):
        with patch.dict(os.environ, {"CORS_ALLOW_ORIGINS": "https://a.example, https://b.example"}):
            settings = Settings()
        assert settings.CORS_ALLOW_ORIGINS == ["https://a.example", "https://b.example"]
        assert settings.CORS_ALLOW_CREDENTIALS is True

    def test_sqlite_detection(self):
        assert Settings().is_sqlite is True
