"""
Reminder dispatch.

A reminder fires once per day at its HH:MM (business timezone) and messages
every active client whose due date is ``today - days_offset``. Sends within a
reminder are sequential and spaced by the owner's messages_per_minute. The
reminder is stamped with last_sent_date once every client has been attempted,
whether or not individual sends succeeded, so it fires at most once per day.
"""
import logging
import math
import time
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from celery.exceptions import SoftTimeLimitExceeded
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.config import settings
from app.integrations import wuzapi
from app.models.client import Client, PaymentType
from app.models.reminder import Reminder
from app.services.billing_calendar import business_now, format_due_date, reminder_target_date
from app.services.settings import OwnerProfile, load_owner_profile

logger = logging.getLogger(__name__)

# Outcome codes
SENT = "sent"
ALREADY_SENT = "already_sent"
NOT_FOUND = "not_found"
NO_TEMPLATE = "no_template"
NO_CHANNEL = "no_channel"
DISCONNECTED = "disconnected"
NO_CLIENTS = "no_clients"


@dataclass
class ReminderOutcome:
    reminder_id: int
    status: str
    target_due_date: Optional[date] = None
    sent: int = 0
    failed: int = 0


def resolve_template(template: str, variables: Dict[str, str]) -> str:
    """Replace {nome}, {vencimento}, {valor}, {plano}, {whatsapp}, {link_pagamento}."""
    result = template
    for key, value in variables.items():
        result = result.replace("{" + key + "}", value)
    return result


def format_price(value) -> str:
    return f"R$ {Decimal(value or 0):.2f}"


def payment_link(payment_token: str) -> str:
    return f"{settings.public_app_url.rstrip('/')}/pay/{payment_token}"


def payment_reference(client: Client, profile: OwnerProfile) -> str:
    """PIX key for pix clients (when the owner has one), payment page link otherwise."""
    if client.payment_type == PaymentType.PIX and profile.pix_key:
        return profile.pix_key
    if client.payment_token:
        return payment_link(client.payment_token)
    return ""


def build_message(template: str, client: Client, profile: OwnerProfile) -> str:
    plan = client.plan
    variables = {
        "nome": client.name or "",
        "vencimento": format_due_date(client.due_date),
        "valor": format_price(client.price_value),
        "plano": plan.name if plan else "",
        "whatsapp": client.whatsapp_number or "",
        "link_pagamento": payment_reference(client, profile),
    }
    return resolve_template(template, variables)


def send_delay_seconds(messages_per_minute: Optional[int]) -> float:
    """Spacing between sends: ceil(60000ms / rate). Non-positive rates fall back to the default."""
    rate = messages_per_minute or 0
    if rate < 1:
        rate = settings.default_messages_per_minute
    return math.ceil(60000 / rate) / 1000


def collect_due_reminders(db: Session, now: Optional[datetime] = None) -> Tuple[date, str, List[int]]:
    """
    Reminders due this minute that have not fired today.

    Returns (business date, "HH:MM", reminder ids). Matching is exact on HH:MM;
    a sweep that runs late misses that minute's reminders.
    """
    local_now = business_now(now)
    today = local_now.date()
    hhmm = local_now.strftime("%H:%M")

    reminders = (
        db.query(Reminder)
        .filter(
            Reminder.is_active.is_(True),
            Reminder.send_time == hhmm,
            or_(Reminder.last_sent_date.is_(None), Reminder.last_sent_date != today),
        )
        .order_by(Reminder.id)
        .all()
    )
    return today, hhmm, [r.id for r in reminders]


def find_target_clients(db: Session, owner_id: int, target_due_date: date) -> List[Client]:
    return (
        db.query(Client)
        .filter(
            Client.user_id == owner_id,
            Client.is_active.is_(True),
            Client.due_date == target_due_date,
            Client.whatsapp_number.isnot(None),
        )
        .order_by(Client.id)
        .all()
    )


def _mark_sent(db: Session, reminder: Reminder, today: date) -> None:
    reminder.last_sent_date = today
    db.commit()


def process_reminder(db: Session, reminder_id: int, today: date) -> ReminderOutcome:
    """Dispatch one reminder for ``today``. Send failures are logged, not raised."""
    reminder = db.query(Reminder).filter(Reminder.id == reminder_id).first()
    if not reminder or not reminder.is_active:
        return ReminderOutcome(reminder_id, NOT_FOUND)
    if reminder.last_sent_date == today:
        return ReminderOutcome(reminder_id, ALREADY_SENT)

    template = reminder.template
    if not template or not template.content:
        logger.info("Reminder %r has no template, skipping", reminder.name)
        return ReminderOutcome(reminder_id, NO_TEMPLATE)

    profile = load_owner_profile(db, reminder.user_id)
    if not profile.has_messaging:
        logger.info("User %s has no messaging gateway configured; reminder %r consumed", reminder.user_id, reminder.name)
        _mark_sent(db, reminder, today)
        return ReminderOutcome(reminder_id, NO_CHANNEL)

    if not wuzapi.session_connected(profile.wuzapi_url, profile.wuzapi_token):
        logger.info("WhatsApp not connected for user %s; reminder %r consumed", reminder.user_id, reminder.name)
        _mark_sent(db, reminder, today)
        return ReminderOutcome(reminder_id, DISCONNECTED)

    target = reminder_target_date(today, reminder.days_offset)
    clients = find_target_clients(db, reminder.user_id, target)
    if not clients:
        logger.info("No clients due %s for reminder %r", target, reminder.name)
        _mark_sent(db, reminder, today)
        return ReminderOutcome(reminder_id, NO_CLIENTS, target_due_date=target)

    delay = send_delay_seconds(profile.messages_per_minute)
    sent = 0
    failed = 0

    try:
        for i, client in enumerate(clients):
            try:
                message = build_message(template.content, client, profile)
                ok = wuzapi.send_text(
                    profile.wuzapi_url,
                    profile.wuzapi_token,
                    client.whatsapp_number,
                    message,
                    send_id=f"reminder-{reminder.id}-{today.isoformat()}-{client.id}",
                )
            except SoftTimeLimitExceeded:
                raise
            except Exception:
                logger.exception("Reminder %r: failed to send to client %s", reminder.name, client.id)
                ok = False

            if ok:
                sent += 1
            else:
                failed += 1

            # Throttle between sends, not after the last one
            if i < len(clients) - 1:
                logger.debug("Throttle: waiting %.1fs before next send (%d/%d)", delay, i + 1, len(clients))
                time.sleep(delay)
    except SoftTimeLimitExceeded:
        # Out of time: stop here and still consume the reminder for today
        logger.error(
            "Reminder %r hit the task time limit after %d of %d clients",
            reminder.name, sent + failed, len(clients),
        )
        _mark_sent(db, reminder, today)
        raise

    _mark_sent(db, reminder, today)
    logger.info(
        "Reminder %r for %s: sent=%d failed=%d total=%d",
        reminder.name, today, sent, failed, len(clients),
    )
    return ReminderOutcome(reminder_id, SENT, target_due_date=target, sent=sent, failed=failed)
