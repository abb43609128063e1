"""Tests for :mod:`salak.audit`."""
from unittest import mock

from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from salak.audit import client_ip, log_action
from salak.tables import system_logs


def test_log_action(session_factory):
    assert log_action(session_factory, "u-1", "API Key Store", "Production (k-1)",
                      "success", "10.0.0.1")
    with session_factory() as db:
        rows = db.execute(select(system_logs)).mappings().all()
    assert len(rows) == 1
    assert rows[0]["user_id"] == "u-1"
    assert rows[0]["action"] == "API Key Store"
    assert rows[0]["status"] == "success"
    assert rows[0]["ip_address"] == "10.0.0.1"
    assert rows[0]["created_at"] is not None


def test_log_action_failure_is_not_raised():
    session = mock.MagicMock()
    session.__enter__.return_value = session
    session.execute.side_effect = OperationalError("INSERT", {}, Exception("db gone"))
    assert log_action(mock.MagicMock(return_value=session), "u-1", "API Key Revoke",
                      "k-1", "failed") is False


def test_client_ip():
    assert client_ip({"x-forwarded-for": "1.2.3.4, 10.0.0.1"}) == "1.2.3.4"
    assert client_ip({"x-real-ip": "5.6.7.8"}) == "5.6.7.8"
    assert client_ip({}) is None
