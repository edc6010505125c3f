from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime


class NotificationResponse(BaseModel):
    id: str
    event_type: str
    booking_id: Optional[str] = None
    payload: Dict[str, Any]
    status: str
    delivered_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
