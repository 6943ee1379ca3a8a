"""
Platform subscription billing: resellers paying for their own account.

Uses the platform's Mercado Pago account (not the reseller's). The checkout's
external_reference is the PlatformPayment id; the webhook looks the payment up
by it after fetching the authoritative status from the gateway. Approval
extends Profile.subscription_end by the plan's duration_days and applies its
client limit, once per payment.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.integrations import mercadopago
from app.models.payment import PaymentStatus
from app.models.platform import PlatformPayment, PlatformPlan
from app.models.profile import Profile
from app.models.user import User
from app.services.billing_calendar import extend_subscription_end
from app.services.errors import NotFoundError, PaymentGatewayError, PlatformGatewayNotConfiguredError
from app.services.reconciliation import ReconciliationAck, extract_payment_id, map_gateway_status
from app.services.settings import load_platform_gateway_token

logger = logging.getLogger(__name__)


def platform_webhook_url() -> str:
    return f"{settings.public_api_url.rstrip('/')}/webhooks/mercadopago/platform"


def create_platform_checkout(db: Session, user: User, plan_id: int) -> Dict[str, Any]:
    """
    Start a subscription purchase: pending PlatformPayment + checkout preference.

    Raises NotFoundError, PlatformGatewayNotConfiguredError, PaymentGatewayError.
    """
    plan = (
        db.query(PlatformPlan)
        .filter(PlatformPlan.id == plan_id, PlatformPlan.is_active.is_(True))
        .first()
    )
    if not plan:
        raise NotFoundError("Plan not found")

    token = load_platform_gateway_token(db)
    if not token:
        raise PlatformGatewayNotConfiguredError()

    payment = PlatformPayment(
        user_id=user.id,
        platform_plan_id=plan.id,
        amount=plan.price,
        status=PaymentStatus.PENDING,
    )
    db.add(payment)
    db.flush()

    try:
        preference = mercadopago.create_preference(
            token,
            title=f"RenovaPainel - {plan.name}",
            amount=float(plan.price),
            external_reference=str(payment.id),
            back_url_base=f"{settings.public_app_url.rstrip('/')}/dashboard",
            notification_url=platform_webhook_url(),
            payer_email=user.email,
        )
    except PaymentGatewayError:
        db.rollback()
        raise

    db.commit()
    logger.info("Platform checkout %s created for user %s (plan %s)", payment.id, user.id, plan.id)
    return {"init_point": preference.get("init_point"), "payment_id": payment.id}


def _apply_subscription(db: Session, payment: PlatformPayment, now: datetime) -> datetime:
    plan = payment.plan
    profile = db.query(Profile).filter(Profile.user_id == payment.user_id).first()
    if not profile:
        profile = Profile(user_id=payment.user_id, messages_per_minute=settings.default_messages_per_minute)
        db.add(profile)

    new_end = extend_subscription_end(profile.subscription_end, now, plan.duration_days)
    profile.subscription_end = new_end
    profile.max_clients = plan.max_clients

    user = db.query(User).filter(User.id == payment.user_id).first()
    if user:
        user.is_active = True
    return new_end


def _reconcile_platform_payment(db: Session, payment_id: str, now: datetime) -> ReconciliationAck:
    token = load_platform_gateway_token(db)
    if not token:
        logger.error("Platform Mercado Pago token not configured; cannot verify payment %s", payment_id)
        return ReconciliationAck(payment_id=payment_id, note="payment gateway not configured")

    try:
        data = mercadopago.get_payment(token, payment_id)
    except PaymentGatewayError as e:
        logger.error("Could not fetch platform payment %s from gateway: %s", payment_id, e)
        return ReconciliationAck(payment_id=payment_id, note="gateway lookup failed")

    reference = str(data.get("external_reference") or "")
    if not reference.isdigit():
        logger.info("Platform payment %s has no usable external_reference (%r)", payment_id, reference)
        return ReconciliationAck(payment_id=payment_id, note="no external reference")

    payment = (
        db.query(PlatformPayment)
        .filter(PlatformPayment.id == int(reference))
        .with_for_update()
        .first()
    )
    if not payment:
        logger.info("Platform payment not found for reference %s", reference)
        return ReconciliationAck(payment_id=payment_id, note="payment not found locally")

    mp_status = data.get("status")
    previous = payment.status
    new_status = map_gateway_status(mp_status)

    payment.mp_payment_id = payment_id
    payment.mp_status = mp_status
    if previous == PaymentStatus.PENDING:
        payment.status = new_status

    if previous == PaymentStatus.PENDING and new_status == PaymentStatus.PAID:
        new_end = _apply_subscription(db, payment, now)
        logger.info("User %s subscription extended to %s", payment.user_id, new_end.isoformat())

    db.commit()
    return ReconciliationAck(payment_id=payment_id, status=mp_status)


def reconcile_platform(
    db: Session,
    body: Any,
    query_params: Mapping[str, str],
    now: Optional[datetime] = None,
) -> ReconciliationAck:
    """Process one platform-account notification. Always returns an acknowledgement."""
    payment_id = extract_payment_id(body, query_params)
    if not payment_id:
        return ReconciliationAck()

    try:
        return _reconcile_platform_payment(db, payment_id, now or datetime.now(timezone.utc))
    except Exception:
        db.rollback()
        logger.exception("Reconciliation of platform payment %s failed", payment_id)
        return ReconciliationAck(payment_id=payment_id, note="internal error")
