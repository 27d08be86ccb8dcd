"""Tests for core logging module."""

import logging

import pytest

from .lib import CHATTY_LOGGERS, _resolve_level, get_logger, setup_logging


class TestLogging:
    """Test core logging API."""

    @pytest.mark.unit
    def test_get_logger(self) -> None:
        logger = get_logger("figsync.layout")
        assert logger.name == "figsync.layout"
        assert get_logger().name == "figsync"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "level,expected",
        [
            ("debug", logging.DEBUG),
            ("WARNING", logging.WARNING),
            ("not-a-level", logging.INFO),
            (logging.ERROR, logging.ERROR),
        ],
    )
    def test_level_names(self, level, expected) -> None:
        assert _resolve_level(level) == expected

    @pytest.mark.unit
    def test_client_loggers_quieted(self, monkeypatch) -> None:
        """HTTP client loggers stay at WARNING even when figsync logs at INFO."""
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: None)
        for name in CHATTY_LOGGERS:
            monkeypatch.setattr(logging.getLogger(name), "level", logging.NOTSET)

        setup_logging("info")
        assert logging.getLogger("httpx").level == logging.WARNING

        setup_logging(logging.ERROR)
        assert logging.getLogger("openai").level == logging.ERROR
