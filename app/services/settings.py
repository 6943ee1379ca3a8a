"""Resolve per-invocation configuration with a DB-first, env-fallback strategy."""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models.profile import Profile
from app.models.system_settings import SystemSetting
from app.services.encryption import decrypt_value
from app.services.errors import RenewalApiNotConfiguredError

logger = logging.getLogger(__name__)

RENEWAL_API_URL_KEY = "renewal_api_url"
RENEWAL_API_KEY_KEY = "renewal_api_key"
PLATFORM_MP_TOKEN_KEY = "admin_mp_access_token"


@dataclass(frozen=True)
class RenewalApiConfig:
    url: str
    api_key: str
    timeout: float


@dataclass(frozen=True)
class OwnerProfile:
    user_id: int
    wuzapi_url: Optional[str]
    wuzapi_token: Optional[str]
    messages_per_minute: int
    pix_key: Optional[str]
    mercadopago_access_token: Optional[str]

    @property
    def has_messaging(self) -> bool:
        return bool(self.wuzapi_url and self.wuzapi_token)


def load_renewal_api_config(db: Session) -> RenewalApiConfig:
    """
    Read the renewal API URL/key once: system_settings table first, then .env.

    Raises RenewalApiNotConfiguredError if either value is missing everywhere.
    """
    rows = (
        db.query(SystemSetting)
        .filter(SystemSetting.key.in_([RENEWAL_API_URL_KEY, RENEWAL_API_KEY_KEY]))
        .all()
    )
    values = {row.key: row.value for row in rows}

    url = values.get(RENEWAL_API_URL_KEY) or settings.renewal_api_url
    # Keys may be stored encrypted or as legacy plaintext
    api_key = decrypt_value(values.get(RENEWAL_API_KEY_KEY) or "") or settings.renewal_api_key

    if not url or not api_key:
        raise RenewalApiNotConfiguredError()

    return RenewalApiConfig(
        url=url.rstrip("/"),
        api_key=api_key,
        timeout=float(settings.renewal_api_timeout_seconds),
    )


def load_owner_profile(db: Session, user_id: int) -> OwnerProfile:
    """Snapshot an owner's integration settings. Missing profile means nothing configured."""
    row = db.query(Profile).filter(Profile.user_id == user_id).first()
    if not row:
        logger.info("No profile for user %s; using empty integration settings", user_id)
        return OwnerProfile(
            user_id=user_id,
            wuzapi_url=None,
            wuzapi_token=None,
            messages_per_minute=settings.default_messages_per_minute,
            pix_key=None,
            mercadopago_access_token=None,
        )

    return OwnerProfile(
        user_id=user_id,
        wuzapi_url=(row.wuzapi_url or "").rstrip("/") or None,
        wuzapi_token=row.wuzapi_token or None,
        messages_per_minute=row.messages_per_minute or settings.default_messages_per_minute,
        pix_key=row.pix_key or None,
        mercadopago_access_token=row.mercadopago_access_token or None,
    )


def load_platform_gateway_token(db: Session) -> Optional[str]:
    """Mercado Pago token of the platform's own account, or None if unset."""
    row = db.query(SystemSetting).filter(SystemSetting.key == PLATFORM_MP_TOKEN_KEY).first()
    token = decrypt_value(row.value) if row and row.value else ""
    return token or settings.platform_mercadopago_access_token or None
