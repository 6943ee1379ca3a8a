"""
Celery tasks for scheduled billing work

Tasks:
- send_due_reminders: minute sweep, fans out one dispatch per due reminder
- dispatch_reminder: send one reminder for one business day
"""
import logging
from dataclasses import asdict
from datetime import date
from typing import Any, Dict

from app.celery_app import celery_app
from app.database import SessionLocal
from app.redis_client import acquire_lock
from app.services.reminders import collect_due_reminders, process_reminder

logger = logging.getLogger(__name__)

# Longer than any single dispatch so a slow reminder is never picked up twice
REMINDER_LOCK_TTL_SECONDS = 2 * 60 * 60


def reminder_lock_key(reminder_id: int, day: str) -> str:
    return f"reminder-lock:{reminder_id}:{day}"


@celery_app.task(name="app.tasks.send_due_reminders")
def send_due_reminders() -> Dict[str, Any]:
    """
    Select reminders due at the current business-timezone minute and queue one
    dispatch task for each, so different owners send in parallel.
    """
    db = SessionLocal()
    try:
        today, hhmm, reminder_ids = collect_due_reminders(db)
    except Exception as e:
        logger.exception("Reminder sweep failed")
        return {"status": "error", "error": str(e)}
    finally:
        db.close()

    dispatched = 0
    try:
        for reminder_id in reminder_ids:
            dispatch_reminder.delay(reminder_id, today.isoformat())
            dispatched += 1
    except Exception as e:
        logger.exception(
            "Reminder sweep %s %s: fan-out stopped after %d of %d reminder(s)",
            today, hhmm, dispatched, len(reminder_ids),
        )
        return {"status": "error", "error": str(e), "time": hhmm, "dispatched": dispatched}

    if reminder_ids:
        logger.info("Reminder sweep %s %s: dispatched %d reminder(s)", today, hhmm, len(reminder_ids))
    return {"status": "ok", "time": hhmm, "dispatched": len(reminder_ids)}


@celery_app.task(name="app.tasks.dispatch_reminder", soft_time_limit=7200, time_limit=7500)
def dispatch_reminder(reminder_id: int, today_iso: str) -> Dict[str, Any]:
    """
    Send one reminder for the given business day (ISO date).

    Returns the ReminderOutcome as a dict; errors are logged and returned.
    """
    if not acquire_lock(reminder_lock_key(reminder_id, today_iso), REMINDER_LOCK_TTL_SECONDS):
        logger.info("Reminder %s for %s is already being dispatched", reminder_id, today_iso)
        return {"reminder_id": reminder_id, "status": "locked"}

    db = SessionLocal()
    try:
        outcome = process_reminder(db, reminder_id, date.fromisoformat(today_iso))
        result = asdict(outcome)
        if outcome.target_due_date:
            result["target_due_date"] = outcome.target_due_date.isoformat()
        return result
    except Exception as e:
        db.rollback()
        logger.exception("Dispatch of reminder %s failed", reminder_id)
        return {"reminder_id": reminder_id, "status": "error", "error": str(e)}
    finally:
        db.close()
