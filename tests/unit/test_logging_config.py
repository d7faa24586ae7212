from __future__ import annotations

import logging
from io import StringIO

import pytest

import fabric_logging
from fabric_config import build_sheet_url
from fabric_logging import LOGGER_NAME, LabeledFormatter, get_logger, reset_logging, setup_logging


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


def test_setup_logging_is_idempotent():
    logger = setup_logging()
    again = setup_logging()

    assert logger is again
    assert logger.name == LOGGER_NAME
    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_module_loggers_are_children():
    assert get_logger("fabric_sheet").name == f"{LOGGER_NAME}.fabric_sheet"
    assert get_logger(f"{LOGGER_NAME}.x").name == f"{LOGGER_NAME}.x"
    assert get_logger().name == LOGGER_NAME


def test_labeled_prefixes():
    out = StringIO()
    logger = logging.getLogger("test_fabric_finder_labels")
    logger.setLevel(logging.INFO)
    handler = logging.StreamHandler(out)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    try:
        logger.info("loaded")
        logger.warning("no image")
        logger.error("fetch failed")
    finally:
        logger.removeHandler(handler)

    assert out.getvalue().splitlines() == ["INFO loaded", "WARN no image", "ERROR fetch failed"]


def test_child_records_reach_app_handler():
    logger = setup_logging()
    out = StringIO()
    logger.handlers[0].setStream(out)

    get_logger("fabric_sheet").warning("invalid image link for fabric %r", "Linen")

    assert "WARN invalid image link for fabric 'Linen'" in out.getvalue()


def test_reset_logging_clears_state():
    setup_logging()
    reset_logging()
    assert fabric_logging._logger is None
    assert logging.getLogger(LOGGER_NAME).handlers == []


def test_build_sheet_url_quotes_sheet_name():
    url = build_sheet_url("abc123", "Sample Fabrics")
    assert url == "https://docs.google.com/spreadsheets/d/abc123/gviz/tq?tqx=out:json&sheet=Sample%20Fabrics"


def test_module_is_documented():
    assert fabric_logging.__doc__.startswith("Logging setup for Fabric Finder.")
