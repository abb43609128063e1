"""Tests for :mod:`salak.app_logging`."""
import json
import logging

from salak.app_logging import setup_logger


def test_json_lines(capsys):
    root = logging.getLogger()
    before = list(root.handlers), root.level
    try:
        setup_logger("debug")
        handler = setup_logger("info")
        assert [h for h in root.handlers if getattr(h, "_salak", False)] == [handler]
        assert root.level == logging.INFO

        logging.getLogger("salak.test").warning("hello %s", "there")
        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["message"] == "hello there"
        assert record["level"] == "WARNING"
        assert record["name"] == "salak.test"
        assert "timestamp" in record
    finally:
        root.handlers[:] = before[0]
        root.setLevel(before[1])
