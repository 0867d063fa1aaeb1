import logging

import pytest

from hand_cursor.config import LOG_FILENAME
from hand_cursor.logger import LOGGER_NAME, get_app_directory, get_logger, setup_logging


def test_get_logger_children():
    assert get_logger().name == LOGGER_NAME
    assert get_logger("Session").name == f"{LOGGER_NAME}.Session"


def test_app_directory_prefers_appdata(monkeypatch, tmp_path):
    monkeypatch.setenv("APPDATA", str(tmp_path))
    assert get_app_directory() == tmp_path / "HandCursor"


def test_setup_logging_writes_file(tmp_path, restore_logger):
    root = setup_logging(debug=False, log_dir=tmp_path)
    get_logger("Test").debug("debug line")
    for handler in root.handlers:
        handler.flush()

    assert len(root.handlers) == 2
    assert "debug line" in (tmp_path / LOG_FILENAME).read_text(encoding="utf-8")


def test_setup_logging_console_only(restore_logger):
    root = setup_logging(debug=True, log_to_file=False)
    assert len(root.handlers) == 1
    assert root.level == logging.DEBUG

    # Calling again replaces handlers instead of stacking them
    setup_logging(log_to_file=False)
    assert len(root.handlers) == 1
    assert root.level == logging.INFO
