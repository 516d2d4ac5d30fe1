from pydantic import BaseModel
from typing import Optional, Any

class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    error: str
    code: str
    details: Optional[Any] = None


class WebhookResponse(BaseModel):
    """
    Acknowledgement returned to Telegram for a delivered update.
    """
    status: str = "ok"
    update_id: Optional[int] = None
