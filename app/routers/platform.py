"""Subscription purchase for the reseller's own platform account."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.routers.errors import to_http_exception
from app.schemas.platform import PlatformCheckoutRequest, PlatformCheckoutResponse
from app.services.errors import BillingError
from app.services.platform_billing import create_platform_checkout

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/platform", tags=["Platform"])


@router.post("/checkout", response_model=PlatformCheckoutResponse)
def platform_checkout(
    body: PlatformCheckoutRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        result = create_platform_checkout(db, current_user, body.plan_id)
    except BillingError as e:
        logger.warning("Platform checkout for user %s failed: %s", current_user.id, e)
        raise to_http_exception(e)
    return PlatformCheckoutResponse(**result)
