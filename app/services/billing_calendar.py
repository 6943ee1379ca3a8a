"""
Business-calendar helpers: the reseller's local clock and due-date arithmetic.

All "today" decisions (due-date extension, reminder matching) use the business
timezone, not the server's. Month increments are calendar months everywhere.
"""
from datetime import date, datetime, timedelta
from typing import Optional

import pytz
from dateutil.relativedelta import relativedelta

from app.config import settings


def business_tz():
    return pytz.timezone(settings.business_timezone)


def business_now(now: Optional[datetime] = None) -> datetime:
    """Current time in the business timezone. Naive datetimes are treated as UTC."""
    if now is None:
        now = datetime.now(pytz.utc)
    elif now.tzinfo is None:
        now = pytz.utc.localize(now)
    return now.astimezone(business_tz())


def business_today(now: Optional[datetime] = None) -> date:
    return business_now(now).date()


def extend_due_date(current_due: Optional[date], today: date, months: int) -> date:
    """
    New due date after paying/renewing ``months`` of service.

    Anchored at the later of today and the current due date, so an overdue
    client restarts from today and an early payer never loses days.
    """
    base = current_due if current_due and current_due > today else today
    return base + relativedelta(months=months)


def reminder_target_date(today: date, days_offset: int) -> date:
    """Due date a reminder with this offset targets today (-3 → due in 3 days)."""
    return today - timedelta(days=days_offset)


def format_due_date(value: Optional[date]) -> str:
    return value.strftime("%d/%m/%Y") if value else ""


def extend_subscription_end(current_end: Optional[datetime], now: datetime, days: int) -> datetime:
    """Platform subscriptions are sold in days, anchored like client due dates."""
    base = current_end if current_end and current_end > now else now
    return base + timedelta(days=days)
