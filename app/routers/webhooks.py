"""
Mercado Pago webhook receiver.

Always answers 200 once the body parses: reconciliation errors are logged and
acknowledged so the gateway does not redeliver and repeat side effects.
"""
import logging
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.database import get_db
from app.schemas.webhooks import WebhookResponse
from app.services.platform_billing import reconcile_platform
from app.services.reconciliation import reconcile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("/mercadopago", response_model=WebhookResponse, response_model_exclude_none=True)
async def mercadopago_webhook(
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Receive Mercado Pago payment notifications (IPN, webhooks v2 or topic=payment).
    The body only identifies the payment; status is fetched from the gateway.
    """
    try:
        payload = await request.json()
    except ValueError as e:
        logger.error("Mercado Pago webhook with unparsable body: %s", e)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Invalid JSON body"},
        )

    ack = await run_in_threadpool(reconcile, db, payload, dict(request.query_params))
    return WebhookResponse(**ack.to_dict())


@router.post("/mercadopago/platform", response_model=WebhookResponse, response_model_exclude_none=True)
async def platform_mercadopago_webhook(
    request: Request,
    db: Session = Depends(get_db),
):
    """Notifications for subscription payments made to the platform's own account."""
    try:
        payload = await request.json()
    except ValueError as e:
        logger.error("Platform webhook with unparsable body: %s", e)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Invalid JSON body"},
        )

    ack = await run_in_threadpool(reconcile_platform, db, payload, dict(request.query_params))
    return WebhookResponse(**ack.to_dict())
