from datetime import date
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class PublicPaymentResponse(BaseModel):
    """What the public payment page may show. Never includes gateway credentials."""
    name: str
    plan_name: Optional[str] = None
    due_date: Optional[date] = None
    price_value: Decimal
    is_active: bool
    payment_type: str


class PixCheckout(BaseModel):
    qr_code: Optional[str] = None
    qr_code_base64: Optional[str] = None
    ticket_url: Optional[str] = None


class CardCheckout(BaseModel):
    checkout_url: Optional[str] = None
    sandbox_url: Optional[str] = None


class CheckoutResponse(BaseModel):
    payment_id: Optional[str] = None
    pix: PixCheckout = Field(default_factory=PixCheckout)
    card: CardCheckout = Field(default_factory=CardCheckout)
