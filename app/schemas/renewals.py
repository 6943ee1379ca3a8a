from datetime import date
from typing import Any, Dict, Optional
from pydantic import BaseModel


class RenewalResponse(BaseModel):
    client_id: int
    success: bool
    new_due_date: Optional[date] = None
    retry_entry_id: Optional[int] = None
    error: Optional[str] = None
    response: Dict[str, Any] = {}
