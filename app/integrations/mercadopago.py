"""
Mercado Pago REST client.

Access tokens are per reseller account, so every call takes the token explicitly.
Webhook bodies are only pointers; get_payment is the source of truth for status.
"""
import logging
import time
from typing import Any, Dict, Optional

import requests

from app.config import settings
from app.services.errors import PaymentGatewayError

logger = logging.getLogger(__name__)


def mask_token(token: str) -> str:
    if not token:
        return ""
    if len(token) <= 8:
        return "*" * len(token)
    return token[:4] + "*" * (len(token) - 8) + token[-4:]


def _headers(access_token: str, idempotency_key: Optional[str] = None) -> Dict[str, str]:
    headers = {
        "Authorization": f"Bearer {access_token}",
        "Content-Type": "application/json",
    }
    if idempotency_key:
        headers["X-Idempotency-Key"] = idempotency_key
    return headers


def _request(method: str, path: str, access_token: str, **kwargs) -> Dict[str, Any]:
    url = f"{settings.mercadopago_api_base.rstrip('/')}{path}"
    logger.info("MP %s %s | token=%s", method, path, mask_token(access_token))
    try:
        resp = requests.request(
            method,
            url,
            timeout=settings.mercadopago_timeout_seconds,
            **kwargs,
        )
        resp.raise_for_status()
        return resp.json()
    except requests.HTTPError as e:
        logger.error("Mercado Pago %s %s failed: %s | body=%s", method, path, e, getattr(e.response, "text", "")[:500])
        raise PaymentGatewayError(f"Mercado Pago {method} {path} failed: {e}") from e
    except (requests.RequestException, ValueError) as e:
        logger.error("Mercado Pago %s %s failed: %s", method, path, e)
        raise PaymentGatewayError(f"Mercado Pago {method} {path} failed: {e}") from e


def get_payment(access_token: str, payment_id: str) -> Dict[str, Any]:
    """GET /v1/payments/{id}. Raises PaymentGatewayError on any failure."""
    return _request("GET", f"/v1/payments/{payment_id}", access_token, headers=_headers(access_token))


def create_pix_payment(
    access_token: str,
    amount: float,
    description: str,
    external_reference: str,
    payer_email: str,
    notification_url: Optional[str] = None,
) -> Dict[str, Any]:
    """POST /v1/payments with payment_method_id=pix."""
    payload = {
        "transaction_amount": round(float(amount), 2),
        "description": description,
        "payment_method_id": "pix",
        "payer": {"email": payer_email},
        "external_reference": external_reference,
    }
    if notification_url:
        payload["notification_url"] = notification_url

    idempotency_key = f"pix-{external_reference}-{int(time.time() * 1000)}"
    return _request(
        "POST",
        "/v1/payments",
        access_token,
        headers=_headers(access_token, idempotency_key),
        json=payload,
    )


def create_preference(
    access_token: str,
    title: str,
    amount: float,
    external_reference: str,
    back_url_base: str,
    notification_url: Optional[str] = None,
    payer_email: Optional[str] = None,
) -> Dict[str, Any]:
    """POST /checkout/preferences for card checkout."""
    payload = {
        "items": [{
            "title": title,
            "quantity": 1,
            "unit_price": round(float(amount), 2),
            "currency_id": "BRL",
        }],
        "external_reference": external_reference,
        "back_urls": {
            "success": f"{back_url_base}?status=success",
            "failure": f"{back_url_base}?status=failure",
            "pending": f"{back_url_base}?status=pending",
        },
        "auto_return": "approved",
    }
    if notification_url:
        payload["notification_url"] = notification_url
    if payer_email:
        payload["payer"] = {"email": payer_email}

    return _request(
        "POST",
        "/checkout/preferences",
        access_token,
        headers=_headers(access_token),
        json=payload,
    )
