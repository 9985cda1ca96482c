"""
Unit tests for configuration settings.

Dependencies: pytest, pydantic
System role: Configuration verification
"""

import pytest
from pydantic import ValidationError

from prospect_batch.configs import Settings
from prospect_batch.configs.batch import BatchProcessingSettings
from prospect_batch.configs.database import DatabaseSettings


class TestDatabaseSettings:
    """Test suite for DatabaseSettings."""

    def test_url_from_fields(self):
        settings = DatabaseSettings(host="db", port=5433, user="u", password="p", db="prospects", url=None)

        assert settings.async_database_url == "postgresql+asyncpg://u:p@db:5433/prospects"

    def test_ssl_required(self):
        settings = DatabaseSettings(host="db", sslmode="require", url=None)

        assert settings.async_database_url.endswith("?ssl=require")

    @pytest.mark.parametrize(
        "url",
        ["postgres://u:p@db/prospects", "postgresql://u:p@db/prospects"],
    )
    def test_full_url_uses_asyncpg(self, url):
        settings = DatabaseSettings(url=url)

        assert settings.async_database_url == "postgresql+asyncpg://u:p@db/prospects"


class TestSharedSettings:
    """Test suite for values shared by every process."""

    def test_log_level_is_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="chatty")

    def test_app_url_trailing_slash(self):
        assert Settings(app_url="https://app.example.org/").app_url == "https://app.example.org"


class TestBatchProcessingSettings:
    """Test suite for batch engine defaults."""

    def test_defaults(self, monkeypatch):
        for name in ("BATCH_MAX_RETRIES_PER_PROSPECT", "BATCH_STALE_ITEM_THRESHOLD_MS"):
            monkeypatch.delenv(name, raising=False)

        settings = BatchProcessingSettings()

        assert settings.max_retries_per_prospect == 3
        assert settings.stale_item_threshold_ms == 600_000
        assert settings.prospect_processing_timeout_ms == 120_000

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("BATCH_MAX_RETRIES_PER_PROSPECT", "5")

        assert BatchProcessingSettings().max_retries_per_prospect == 5
