"""Manual renewal and panel helpers for the logged-in reseller."""
import logging
from dataclasses import asdict
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.routers.errors import to_http_exception
from app.schemas.renewals import RenewalResponse
from app.services.errors import BillingError
from app.services.panels import list_sigma_packages
from app.services.renewal import renew_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Renewals"])


@router.post("/clients/{client_id}/renew", response_model=RenewalResponse)
def renew(
    client_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Renew a client on its IPTV panel now.

    A rejected renewal still returns 200 with success=false and the queued
    retry id; configuration and transport problems are returned as errors.
    """
    try:
        result = renew_client(db, client_id, owner_id=current_user.id)
    except BillingError as e:
        logger.warning("Manual renewal of client %s by user %s failed: %s", client_id, current_user.id, e)
        raise to_http_exception(e)
    return RenewalResponse(**asdict(result))


@router.post("/panels/{credential_id}/sigma-packages")
def sigma_packages(
    credential_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    """List plan codes on a Sigma panel, as returned by the renewal API."""
    try:
        return list_sigma_packages(db, current_user.id, credential_id)
    except BillingError as e:
        raise to_http_exception(e)
