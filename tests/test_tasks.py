"""Tests for the reminder Celery tasks."""
from datetime import date
from unittest.mock import MagicMock, Mock, patch

import redis
from kombu.exceptions import OperationalError

from app.redis_client import acquire_lock
from app.services.reminders import ReminderOutcome
from app.tasks import dispatch_reminder, reminder_lock_key, send_due_reminders


@patch("app.tasks.dispatch_reminder")
@patch("app.tasks.collect_due_reminders")
@patch("app.tasks.SessionLocal")
def test_sweep_fans_out_one_task_per_reminder(mock_session_cls, mock_collect, mock_dispatch):
    mock_collect.return_value = (date(2024, 6, 1), "09:00", [3, 8])

    result = send_due_reminders()

    assert result == {"status": "ok", "time": "09:00", "dispatched": 2}
    mock_dispatch.delay.assert_any_call(3, "2024-06-01")
    mock_dispatch.delay.assert_any_call(8, "2024-06-01")
    mock_session_cls.return_value.close.assert_called_once()


@patch("app.tasks.collect_due_reminders")
@patch("app.tasks.SessionLocal")
def test_sweep_failure_returns_error(mock_session_cls, mock_collect):
    mock_collect.side_effect = RuntimeError("db down")

    result = send_due_reminders()

    assert result["status"] == "error"
    mock_session_cls.return_value.close.assert_called_once()


@patch("app.tasks.dispatch_reminder")
@patch("app.tasks.collect_due_reminders")
@patch("app.tasks.SessionLocal")
def test_broker_failure_during_fan_out_returns_error(mock_session_cls, mock_collect, mock_dispatch):
    mock_collect.return_value = (date(2024, 6, 1), "09:00", [3, 8, 9])
    mock_dispatch.delay.side_effect = [None, OperationalError("Error 111 connecting to localhost:6379")]

    result = send_due_reminders()

    assert result["status"] == "error"
    assert result["dispatched"] == 1
    assert "6379" in result["error"]
    assert mock_dispatch.delay.call_count == 2
    mock_session_cls.return_value.close.assert_called_once()


@patch("app.tasks.process_reminder")
@patch("app.tasks.acquire_lock", return_value=True)
@patch("app.tasks.SessionLocal")
def test_dispatch_runs_reminder(mock_session_cls, mock_lock, mock_process):
    mock_process.return_value = ReminderOutcome(4, "sent", target_due_date=date(2024, 6, 4), sent=2, failed=1)

    result = dispatch_reminder(4, "2024-06-01")

    mock_lock.assert_called_once()
    assert mock_lock.call_args.args[0] == "reminder-lock:4:2024-06-01"
    mock_process.assert_called_once_with(mock_session_cls.return_value, 4, date(2024, 6, 1))
    assert result == {
        "reminder_id": 4,
        "status": "sent",
        "target_due_date": "2024-06-04",
        "sent": 2,
        "failed": 1,
    }


@patch("app.tasks.process_reminder")
@patch("app.tasks.acquire_lock", return_value=False)
@patch("app.tasks.SessionLocal")
def test_dispatch_skips_when_locked(mock_session_cls, mock_lock, mock_process):
    result = dispatch_reminder(4, "2024-06-01")

    assert result["status"] == "locked"
    mock_process.assert_not_called()
    mock_session_cls.assert_not_called()


@patch("app.tasks.process_reminder")
@patch("app.tasks.acquire_lock", return_value=True)
@patch("app.tasks.SessionLocal")
def test_dispatch_error_is_returned_not_raised(mock_session_cls, mock_lock, mock_process):
    mock_process.side_effect = RuntimeError("boom")

    result = dispatch_reminder(4, "2024-06-01")

    assert result["status"] == "error"
    mock_session_cls.return_value.rollback.assert_called_once()
    mock_session_cls.return_value.close.assert_called_once()


def test_lock_key():
    assert reminder_lock_key(7, "2024-06-01") == "reminder-lock:7:2024-06-01"


@patch("app.redis_client.get_redis_client")
def test_acquire_lock_uses_set_nx(mock_get_client):
    client = MagicMock()
    client.set.return_value = True
    mock_get_client.return_value = client

    assert acquire_lock("k", 60) is True
    client.set.assert_called_once_with("k", "1", nx=True, ex=60)


@patch("app.redis_client.get_redis_client")
def test_acquire_lock_held_elsewhere(mock_get_client):
    client = MagicMock()
    client.set.return_value = None
    mock_get_client.return_value = client

    assert acquire_lock("k", 60) is False


@patch("app.redis_client.get_redis_client")
def test_acquire_lock_redis_down_proceeds(mock_get_client):
    client = Mock()
    client.set.side_effect = redis.ConnectionError("refused")
    mock_get_client.return_value = client

    assert acquire_lock("k", 60) is True
