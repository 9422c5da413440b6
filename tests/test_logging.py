"""
test_logging.py - Log formatting and setup.
"""

import json
import logging

from logging_config import JSONFormatter, setup_logging


def test_json_formatter_writes_extra_fields():
    record = logging.makeLogRecord({
        "name": "reports", "levelname": "INFO", "levelno": logging.INFO,
        "msg": "Report created %s", "args": ("r1",),
        "report_id": "r1", "employee_id": "e1",
    })
    entry = json.loads(JSONFormatter().format(record))
    assert entry["message"] == "Report created r1"
    assert entry["level"] == "INFO"
    assert entry["logger"] == "reports"
    assert entry["report_id"] == "r1"
    assert entry["employee_id"] == "e1"
    assert "args" not in entry
    assert "exception" not in entry


def test_setup_logging_replaces_root_handlers():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging("debug", json_output=True)
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("uvicorn.access").level == logging.WARNING
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)
