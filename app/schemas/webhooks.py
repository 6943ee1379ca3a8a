from pydantic import BaseModel
from typing import Optional


class WebhookResponse(BaseModel):
    received: bool = True
    payment_id: Optional[str] = None
    status: Optional[str] = None
    note: Optional[str] = None
    renewal: Optional[str] = None
