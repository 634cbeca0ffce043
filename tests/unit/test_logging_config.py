from __future__ import annotations

import logging
from unittest.mock import patch

from tracegeo.logging_config import (
    ColoredFormatter,
    SensitiveDataFilter,
    _resolve_level,
    setup_logging,
)


def _record(message: str, *args) -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, "/path/to/file.py", 10, message, args, None)


def test_sensitive_data_filter_masks_query_token():
    record = _record("GET https://ipinfo.io/8.8.8.8?token=abcdef123456")
    SensitiveDataFilter().filter(record)
    assert record.getMessage() == "GET https://ipinfo.io/8.8.8.8?token=[MASKED_TOKEN]"


def test_sensitive_data_filter_masks_formatted_args():
    record = _record("using %s", "Bearer abcdef.123456")
    SensitiveDataFilter().filter(record)
    assert record.getMessage() == "using Bearer [MASKED_TOKEN]"


def test_sensitive_data_filter_leaves_plain_messages():
    record = _record("Loaded %d geofeed entries", 5)
    SensitiveDataFilter().filter(record)
    assert record.getMessage() == "Loaded 5 geofeed entries"


@patch("sys.stderr.isatty", return_value=True)
def test_colored_formatter_adds_color_when_tty(mock_isatty):
    formatter = ColoredFormatter("%(levelname)s - %(message)s")
    formatted = formatter.format(_record("Info message"))
    assert "\033[32mINFO\033[0m" in formatted
    assert "Info message" in formatted


@patch("sys.stderr.isatty", return_value=False)
def test_colored_formatter_plain_when_not_tty(mock_isatty):
    formatter = ColoredFormatter("%(levelname)s - %(message)s")
    assert formatter.format(_record("Info message")) == "INFO - Info message"


def test_resolve_level():
    assert _resolve_level("debug") == logging.DEBUG
    assert _resolve_level("ERROR") == logging.ERROR
    assert _resolve_level("nonsense") == logging.WARNING


def test_setup_logging_installs_handlers(tmp_path):
    log_file = tmp_path / "logs" / "tracegeo.log"
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging("INFO", log_file=log_file, use_color=False)

        assert root.level == logging.INFO
        assert len(root.handlers) == 2
        assert all(
            any(isinstance(f, SensitiveDataFilter) for f in handler.filters)
            for handler in root.handlers
        )
        assert log_file.parent.exists()
        assert logging.getLogger("httpx").level == logging.WARNING

        logging.getLogger("tracegeo.test").info("token=abcdef123456")
        for handler in root.handlers:
            handler.flush()
        assert "[MASKED_TOKEN]" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_setup_logging_without_masking():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging("WARNING", mask_sensitive=False, use_color=False)
        assert len(root.handlers) == 1
        assert not root.handlers[0].filters
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
