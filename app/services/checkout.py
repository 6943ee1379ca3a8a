"""Public payment page: client summary and checkout creation by payment_token."""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.integrations import mercadopago
from app.models.client import Client
from app.models.payment import Payment, PaymentStatus
from app.services.errors import NotFoundError, PaymentGatewayNotConfiguredError
from app.services.settings import load_owner_profile

logger = logging.getLogger(__name__)


@dataclass
class PublicPaymentInfo:
    name: str
    plan_name: Optional[str]
    due_date: Optional[date]
    price_value: Decimal
    is_active: bool
    payment_type: str


def _client_by_token(db: Session, payment_token: str) -> Client:
    client = db.query(Client).filter(Client.payment_token == payment_token).first()
    if not client:
        raise NotFoundError("Client not found")
    return client


def webhook_url() -> str:
    return f"{settings.public_api_url.rstrip('/')}/webhooks/mercadopago"


def get_public_payment_info(db: Session, payment_token: str) -> PublicPaymentInfo:
    client = _client_by_token(db, payment_token)
    return PublicPaymentInfo(
        name=client.name,
        plan_name=client.plan.name if client.plan else None,
        due_date=client.due_date,
        price_value=client.price_value,
        is_active=client.is_active,
        payment_type=client.payment_type.value if client.payment_type else "pix",
    )


def create_checkout(db: Session, payment_token: str, origin: Optional[str] = None) -> Dict[str, Any]:
    """
    Create a PIX charge and a card checkout preference for a client, and record
    the pending Payment the webhook will later reconcile.

    Raises NotFoundError, PaymentGatewayNotConfiguredError, PaymentGatewayError.
    """
    client = _client_by_token(db, payment_token)
    profile = load_owner_profile(db, client.user_id)
    if not profile.mercadopago_access_token:
        raise PaymentGatewayNotConfiguredError(client.user_id)

    token = profile.mercadopago_access_token
    plan_name = client.plan.name if client.plan else None
    description = f"Pagamento - {client.name}" + (f" ({plan_name})" if plan_name else "")
    amount = float(client.price_value or 0)
    page_base = f"{(origin or settings.public_app_url).rstrip('/')}/pay/{payment_token}"

    pix = mercadopago.create_pix_payment(
        token,
        amount=amount,
        description=description,
        external_reference=payment_token,
        payer_email=f"client_{client.id}@payment.local",
        notification_url=webhook_url(),
    )
    preference = mercadopago.create_preference(
        token,
        title=description,
        amount=amount,
        external_reference=payment_token,
        back_url_base=page_base,
        notification_url=webhook_url(),
    )

    mp_payment_id = str(pix.get("id")) if pix.get("id") else None
    payment = Payment(
        client_id=client.id,
        user_id=client.user_id,
        amount=client.price_value,
        status=PaymentStatus.PENDING,
        payment_method="pix",
        mp_payment_id=mp_payment_id,
        mp_status=pix.get("status") or "pending",
    )
    db.add(payment)
    db.commit()
    logger.info("Checkout created for client %s (mp_payment_id=%s)", client.id, mp_payment_id)

    transaction = (pix.get("point_of_interaction") or {}).get("transaction_data") or {}
    return {
        "payment_id": mp_payment_id,
        "pix": {
            "qr_code": transaction.get("qr_code"),
            "qr_code_base64": transaction.get("qr_code_base64"),
            "ticket_url": transaction.get("ticket_url"),
        },
        "card": {
            "checkout_url": preference.get("init_point"),
            "sandbox_url": preference.get("sandbox_init_point"),
        },
    }
