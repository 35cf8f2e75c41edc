"""
Unit tests for settings and logging setup.
"""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from mushaf.config import MushafSettings, configure, get_settings
from mushaf.logging_utils import setup_logging


class TestSettings:
    """Test configuration defaults and overrides."""

    def test_defaults(self, monkeypatch):
        for name in ("MUSHAF_DATABASE_PATH", "MUSHAF_SEARCH_LIMIT", "MUSHAF_LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        s = MushafSettings(_env_file=None)
        assert s.database_path == Path("database/quran_admin.sqlite")
        assert s.search_limit == 50
        assert s.max_search_limit == 200
        assert s.max_audio_size_bytes == 50 * 1024 * 1024
        assert s.csv_delimiter == ","

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("MUSHAF_SEARCH_LIMIT", "10")
        monkeypatch.setenv("MUSHAF_LOG_LEVEL", "debug")
        s = MushafSettings(_env_file=None)
        assert s.search_limit == 10
        assert s.log_level == "DEBUG"

    def test_path_conversion(self):
        assert MushafSettings(database_path="x.sqlite").database_path == Path("x.sqlite")

    @pytest.mark.parametrize("kwargs", [{"csv_delimiter": ";;"}, {"search_limit": 0}, {"log_level": "LOUD"}])
    def test_invalid(self, kwargs):
        with pytest.raises(PydanticValidationError):
            MushafSettings(**kwargs)

    def test_configure_replaces_default(self):
        s = configure(search_limit=7)
        assert get_settings() is s
        assert get_settings().search_limit == 7


class TestLogging:
    """Test logging handler setup."""

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "mushaf.log"
        setup_logging(level="INFO", log_file=log_file)
        logging.getLogger("mushaf.tests").info("hello from the test")
        setup_logging(level="WARNING")
        assert "hello from the test" in log_file.read_text(encoding="utf-8")
