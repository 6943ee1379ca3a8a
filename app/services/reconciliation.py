"""
Mercado Pago webhook reconciliation.

Payment state machine (local vocabulary):

    pending → paid | rejected | cancelled     (all terminal)

The notification body is only a pointer to a payment id; the status written
locally always comes from GET /v1/payments/{id} with the owning reseller's
token. The due date is extended only on the pending → paid transition, so a
redelivered "approved" notification is a no-op.

reconcile() never raises: the gateway retries non-2xx deliveries, and a retry
storm would be worse than a logged error.
"""
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from app.integrations import mercadopago
from app.models.client import Client
from app.models.payment import Payment, PaymentStatus
from app.services.errors import BillingError, PaymentGatewayError
from app.services.renewal import apply_due_date_extension, renew_client
from app.services.settings import load_owner_profile

logger = logging.getLogger(__name__)

PAYMENT_ACTIONS = {"payment.updated", "payment.created"}

GATEWAY_STATUS_MAP = {
    "approved": PaymentStatus.PAID,
    "rejected": PaymentStatus.REJECTED,
    "cancelled": PaymentStatus.CANCELLED,
    "refunded": PaymentStatus.CANCELLED,
    "charged_back": PaymentStatus.CANCELLED,
}


@dataclass
class ReconciliationAck:
    received: bool = True
    payment_id: Optional[str] = None
    status: Optional[str] = None
    note: Optional[str] = None
    renewal: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


def extract_payment_id(body: Any, query_params: Mapping[str, str]) -> Optional[str]:
    """
    Pull the payment id out of any of the three notification shapes:

        {"type": "payment", "data": {"id": ...}}               (IPN)
        {"action": "payment.updated", "data": {"id": ...}}     (webhooks v2)
        {"id": ...} with ?topic=payment                         (legacy feed)

    Returns None for anything else.
    """
    if not isinstance(body, dict):
        return None

    data = body.get("data") if isinstance(body.get("data"), dict) else {}
    data_id = data.get("id")

    if body.get("type") == "payment" and data_id:
        return str(data_id)
    if body.get("action") in PAYMENT_ACTIONS and data_id:
        return str(data_id)

    topic = query_params.get("topic") or query_params.get("type")
    if body.get("id") and topic == "payment":
        return str(body["id"])
    return None


def map_gateway_status(mp_status: Optional[str]) -> PaymentStatus:
    return GATEWAY_STATUS_MAP.get((mp_status or "").lower(), PaymentStatus.PENDING)


def _trigger_renewal(db: Session, client: Client) -> str:
    """Run the panel renewal for a just-paid client. Outcome is logged, never raised."""
    try:
        result = renew_client(db, client.id, extend_due=False)
    except BillingError as e:
        logger.error("Post-payment renewal for client %s failed: %s", client.id, e)
        return "error"
    except Exception:
        db.rollback()
        logger.exception("Post-payment renewal for client %s crashed", client.id)
        return "error"
    return "success" if result.success else "queued_for_retry"


def _reconcile_payment(db: Session, payment_id: str, now: Optional[datetime]) -> ReconciliationAck:
    # Row lock serializes concurrent deliveries of the same notification
    payment = (
        db.query(Payment)
        .filter(Payment.mp_payment_id == payment_id)
        .with_for_update()
        .first()
    )
    if not payment:
        logger.info("Webhook for unknown payment %s; acknowledging", payment_id)
        return ReconciliationAck(payment_id=payment_id, note="payment not found locally")

    client = payment.client
    owner_id = client.user_id if client else payment.user_id
    profile = load_owner_profile(db, owner_id)
    if not profile.mercadopago_access_token:
        db.rollback()
        logger.warning("Owner %s has no Mercado Pago token; cannot verify payment %s", owner_id, payment_id)
        return ReconciliationAck(payment_id=payment_id, note="payment gateway not configured")

    try:
        data = mercadopago.get_payment(profile.mercadopago_access_token, payment_id)
    except PaymentGatewayError as e:
        db.rollback()
        logger.error("Could not fetch payment %s from gateway: %s", payment_id, e)
        return ReconciliationAck(payment_id=payment_id, note="gateway lookup failed")

    mp_status = data.get("status")
    previous = payment.status
    new_status = map_gateway_status(mp_status)

    payment.mp_status = mp_status
    payment.payment_method = data.get("payment_method_id") or payment.payment_method
    if previous == PaymentStatus.PENDING:
        payment.status = new_status
    elif new_status != previous:
        logger.info(
            "Payment %s is %s locally; ignoring gateway status %s",
            payment_id, previous.value, mp_status,
        )

    became_paid = previous == PaymentStatus.PENDING and new_status == PaymentStatus.PAID
    plan = client.plan if client else None
    if became_paid and client:
        months = plan.duration_months if plan else 1
        new_due = apply_due_date_extension(client, months, now)
        logger.info("Payment %s approved; client %s due_date → %s", payment_id, client.id, new_due)

    db.commit()

    ack = ReconciliationAck(payment_id=payment_id, status=mp_status)
    if became_paid and plan and plan.panel_credential_id:
        ack.renewal = _trigger_renewal(db, client)
    return ack


def reconcile(
    db: Session,
    body: Any,
    query_params: Mapping[str, str],
    now: Optional[datetime] = None,
) -> ReconciliationAck:
    """Process one gateway notification. Always returns an acknowledgement."""
    payment_id = extract_payment_id(body, query_params)
    if not payment_id:
        logger.debug("Ignoring notification with unrecognized shape: %s", body)
        return ReconciliationAck()

    try:
        return _reconcile_payment(db, payment_id, now)
    except Exception:
        db.rollback()
        logger.exception("Reconciliation of payment %s failed", payment_id)
        return ReconciliationAck(payment_id=payment_id, note="internal error")
