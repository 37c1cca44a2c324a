"""Tests for the logging factory."""
from __future__ import annotations

import logging

import pytest

from subtitle_ingest.utils.logging_factory import PACKAGE_LOGGER, LoggingFactory, get_logger


@pytest.fixture(autouse=True)
def fresh_factory():
    LoggingFactory.reset()
    yield
    LoggingFactory.reset()
    for name in (PACKAGE_LOGGER, f"{PACKAGE_LOGGER}.cache", "httpx"):
        logging.getLogger(name).setLevel(logging.NOTSET)


class TestLoggingFactory:
    def test_initialize_with_log_dir(self, tmp_path):
        log_dir = tmp_path / "logs"

        LoggingFactory.initialize(level=logging.DEBUG, log_dir=log_dir)

        assert (log_dir / "app.log").exists()
        assert LoggingFactory._initialized
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger(f"{PACKAGE_LOGGER}.cache").level == logging.INFO

    def test_initialize_runs_once(self, tmp_path):
        LoggingFactory.initialize()
        LoggingFactory.initialize(log_dir=tmp_path / "second")

        assert not (tmp_path / "second").exists()

    def test_get_logger_initializes(self):
        logger = get_logger("subtitle_ingest.example")

        assert logger.name == "subtitle_ingest.example"
        assert LoggingFactory._initialized

    def test_set_level(self):
        LoggingFactory.set_level("subtitle_ingest.dedup", logging.ERROR)
        assert logging.getLogger("subtitle_ingest.dedup").level == logging.ERROR
        logging.getLogger("subtitle_ingest.dedup").setLevel(logging.NOTSET)

    def test_configure_verbose(self):
        LoggingFactory.configure_verbose(True)
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG
        assert logging.getLogger(f"{PACKAGE_LOGGER}.cache").level == logging.DEBUG

        LoggingFactory.configure_verbose(False)
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.INFO
