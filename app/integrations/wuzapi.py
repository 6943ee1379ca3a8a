"""
WuzAPI client for WhatsApp message sending.

Each reseller runs their own WuzAPI session, so the gateway URL and token come
from the owner's profile rather than global settings.
"""
import logging
import httpx

from app.config import settings

logger = logging.getLogger(__name__)


def _digits(phone: str) -> str:
    return "".join(c for c in phone if c.isdigit())


def _headers(token: str) -> dict:
    return {
        "Token": token,
        "Content-Type": "application/json",
    }


def session_connected(gateway_url: str, token: str) -> bool:
    """
    Check GET {gateway_url}/session/status.
    Any failure (network, bad JSON, missing flag) counts as not connected.
    """
    url = f"{gateway_url.rstrip('/')}/session/status"
    try:
        with httpx.Client(timeout=settings.messaging_timeout_seconds) as client:
            resp = client.get(url, headers=_headers(token))
        data = resp.json()
    except Exception as e:
        logger.warning("session status check failed for %s: %s", gateway_url, e)
        return False

    return bool(((data or {}).get("data") or {}).get("Connected"))


def send_text(gateway_url: str, token: str, phone: str, text: str, send_id: str | None = None) -> bool:
    """
    Send a WhatsApp text message via WuzAPI.
    The phone is reduced to digits only. send_id, when given, is sent as the
    message Id (one per reminder, day and client).
    Returns True on success, False on error.
    """
    if not settings.messaging_enabled:
        logger.info("Messaging disabled. Skipping send_text to %s", phone)
        return True

    phone = _digits(phone or "")
    if not phone:
        logger.warning("send_text called with empty phone number. Skipping.")
        return False

    url = f"{gateway_url.rstrip('/')}/chat/send/text"
    payload = {
        "Phone": phone,
        "Body": text,
    }
    if send_id:
        payload["Id"] = send_id

    try:
        with httpx.Client(timeout=settings.messaging_timeout_seconds) as client:
            resp = client.post(url, headers=_headers(token), json=payload)
        if resp.status_code in (200, 201):
            return True
        logger.error("send_text failed: %s %s", resp.status_code, resp.text)
        return False
    except Exception as e:
        logger.error("send_text exception: %s", e)
        return False
