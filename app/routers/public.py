"""Unauthenticated endpoints behind the public payment page (/pay/{payment_token})."""
from dataclasses import asdict
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.routers.errors import to_http_exception
from app.schemas.public import CheckoutResponse, PublicPaymentResponse
from app.services.checkout import create_checkout, get_public_payment_info
from app.services.errors import BillingError

router = APIRouter(prefix="/public/pay", tags=["Public payment"])


@router.get("/{payment_token}", response_model=PublicPaymentResponse)
def payment_page(payment_token: str, db: Session = Depends(get_db)):
    try:
        info = get_public_payment_info(db, payment_token)
    except BillingError as e:
        raise to_http_exception(e)
    return PublicPaymentResponse(**asdict(info))


@router.post("/{payment_token}/checkout", response_model=CheckoutResponse)
def checkout(payment_token: str, request: Request, db: Session = Depends(get_db)):
    """Create a PIX charge and card checkout link for this client."""
    try:
        result = create_checkout(db, payment_token, origin=request.headers.get("origin"))
    except BillingError as e:
        raise to_http_exception(e)
    return CheckoutResponse(**result)
