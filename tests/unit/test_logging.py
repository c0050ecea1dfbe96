"""Tests for structlog setup."""

import logging

import pytest
import structlog

from src.shared.logging import setup_logging


@pytest.fixture(autouse=True)
def _restore_structlog():
    yield
    structlog.reset_defaults()


def _effective_level() -> int:
    return structlog.get_logger().bind().get_effective_level()


def test_level_filters_below_threshold():
    setup_logging("WARNING", "console")
    assert _effective_level() == logging.WARNING


def test_json_renderer_is_last_processor():
    setup_logging("INFO", "json")
    processors = structlog.get_config()["processors"]
    assert isinstance(processors[-1], structlog.processors.JSONRenderer)


def test_unknown_level_falls_back_to_info():
    setup_logging("verbose")
    assert _effective_level() == logging.INFO
