from pydantic import BaseModel
from typing import Optional


class PlatformCheckoutRequest(BaseModel):
    plan_id: int


class PlatformCheckoutResponse(BaseModel):
    init_point: Optional[str] = None
    payment_id: int
