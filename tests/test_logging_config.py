"""Tests for logging configuration."""

import logging

from inetmon.logging_config import configure_logging


class TestConfigureLogging:
    def test_default_level_is_info(self, monkeypatch):
        monkeypatch.delenv("INETMON_LOG_LEVEL", raising=False)

        configure_logging()

        assert logging.getLogger().level == logging.INFO

    def test_level_is_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("INETMON_LOG_LEVEL", "debug")

        configure_logging()

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("urllib3").level == logging.INFO

    def test_invalid_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("INETMON_LOG_LEVEL", "INVALID")

        configure_logging()

        assert logging.getLogger().level == logging.INFO

    def test_quiet_mode(self, monkeypatch):
        monkeypatch.setenv("INETMON_LOG_LEVEL", "WARNING")

        configure_logging()

        assert logging.getLogger().level == logging.WARNING
