"""
Renewal orchestrator.

One call = one attempt against the external renewal API:
    load client/plan/credential/settings → build payload → POST /renew →
    audit log (always) → extend due date (success) or enqueue retry (failure).

Retries are owned by whoever consumes renewal_retry_queue; this module only
writes entries and never reads them back.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.integrations import renewal_api
from app.models.client import Client
from app.models.renewal import ActivityLog, ActivityStatus, RenewalRetryQueueEntry, RetryStatus
from app.services.billing_calendar import business_today, extend_due_date
from app.services.errors import (
    MissingPanelCredentialError,
    MissingPlanError,
    NotFoundError,
    RenewalTransportError,
)
from app.services.providers import build_renewal_payload
from app.services.settings import load_renewal_api_config

logger = logging.getLogger(__name__)

ACTIVITY_TYPE_RENEWAL = "renewal"


@dataclass
class RenewalResult:
    client_id: int
    success: bool
    response: Dict[str, Any]
    new_due_date: Optional[date] = None
    retry_entry_id: Optional[int] = None
    error: Optional[str] = None


def _record_activity(db: Session, client: Client, status: ActivityStatus, details: Dict[str, Any]) -> ActivityLog:
    entry = ActivityLog(
        user_id=client.user_id,
        client_id=client.id,
        type=ACTIVITY_TYPE_RENEWAL,
        status=status,
        details=details,
    )
    db.add(entry)
    db.flush()
    return entry


def _enqueue_retry(
    db: Session,
    client: Client,
    payload: Dict[str, Any],
    error: str,
    now: datetime,
) -> RenewalRetryQueueEntry:
    entry = RenewalRetryQueueEntry(
        user_id=client.user_id,
        client_id=client.id,
        attempt=1,
        next_retry_at=now + timedelta(minutes=settings.renewal_retry_delay_minutes),
        payload=payload,
        last_error=error,
        status=RetryStatus.PENDING,
    )
    db.add(entry)
    db.flush()
    return entry


def apply_due_date_extension(client: Client, months: int, now: Optional[datetime] = None) -> date:
    """Push the client's due date forward and reactivate them."""
    new_due = extend_due_date(client.due_date, business_today(now), months)
    client.due_date = new_due
    client.is_active = True
    return new_due


def renew_client(
    db: Session,
    client_id: int,
    owner_id: Optional[int] = None,
    extend_due: bool = True,
    now: Optional[datetime] = None,
) -> RenewalResult:
    """
    Renew one client on their IPTV panel.

    Args:
        owner_id: when given, the client must belong to this owner
        extend_due: set False when the caller already extended the due date
            (payment approval path), so a successful renewal does not add
            a second period

    Raises:
        NotFoundError, MissingPlanError, MissingPanelCredentialError,
        RenewalApiNotConfiguredError, UnknownProviderError: before any call is made
        RenewalTransportError: the API was unreachable; audit entry and retry
            entry have already been committed
    """
    now = now or datetime.now(timezone.utc)

    query = db.query(Client).filter(Client.id == client_id)
    if owner_id is not None:
        query = query.filter(Client.user_id == owner_id)
    client = query.first()
    if not client:
        raise NotFoundError(f"Client {client_id} not found")

    plan = client.plan
    if not plan:
        raise MissingPlanError(client.id)
    credential = plan.panel_credential
    if not credential:
        raise MissingPanelCredentialError(plan.id)

    config = load_renewal_api_config(db)
    payload = build_renewal_payload(client, plan, credential)

    logger.info("Renewing client %s via %s (%s months)", client.id, payload["provider"], plan.duration_months)

    try:
        response = renewal_api.renew(config, payload)
    except RenewalTransportError as e:
        error = str(e)
        _record_activity(db, client, ActivityStatus.ERROR, {"success": False, "error": error})
        entry = _enqueue_retry(db, client, payload, error, now)
        db.commit()
        logger.error("Renewal of client %s failed in transport; queued retry %s", client.id, entry.id)
        raise RenewalTransportError(error, retry_entry_id=entry.id) from e

    success = response.get("success") is True
    _record_activity(
        db,
        client,
        ActivityStatus.SUCCESS if success else ActivityStatus.ERROR,
        response,
    )

    if success:
        new_due = None
        if extend_due:
            new_due = apply_due_date_extension(client, plan.duration_months, now)
        else:
            client.is_active = True
        db.commit()
        logger.info("Client %s renewed; due_date=%s", client.id, client.due_date)
        return RenewalResult(
            client_id=client.id,
            success=True,
            response=response,
            new_due_date=new_due,
        )

    error = str(response.get("error") or "Unknown error")
    entry = _enqueue_retry(db, client, payload, error, now)
    db.commit()
    logger.warning("Renewal of client %s rejected: %s (retry %s queued)", client.id, error, entry.id)
    return RenewalResult(
        client_id=client.id,
        success=False,
        response=response,
        retry_entry_id=entry.id,
        error=error,
    )
