"""Tests for logger.py: console, log file and error file sinks."""

import sys

import pytest

from logger import error_log_path, logger, setup_logging


@pytest.fixture()
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_error_log_path():
    assert str(error_log_path("logs/remindme.log")).endswith("remindme_error.log")


def test_setup_logging_splits_errors(tmp_path, restore_logger):
    log_file = tmp_path / "logs" / "remindme.log"
    setup_logging("DEBUG", log_file, console_level="ERROR", retention="1 day", error_retention="2 days")

    logger.info("reminder created")
    logger.error("delivery failed")
    logger.remove()

    main_log = log_file.read_text(encoding="utf-8")
    error_log = error_log_path(log_file).read_text(encoding="utf-8")
    assert "reminder created" in main_log
    assert "delivery failed" in main_log
    assert "delivery failed" in error_log
    assert "reminder created" not in error_log


def test_setup_logging_accepts_fatal_alias(tmp_path, restore_logger):
    setup_logging("FATAL", tmp_path / "app.log")

    logger.error("not written")
    logger.critical("written")
    logger.remove()

    content = (tmp_path / "app.log").read_text(encoding="utf-8")
    assert "written" in content
    assert "not written" not in content
