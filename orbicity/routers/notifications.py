from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from ..database import get_db
from ..errors import EngineError
from ..schemas.notification import NotificationResponse
from ..services.notification_service import NotificationService
from ..utils.http_errors import to_http_exception

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("/pending", response_model=List[NotificationResponse])
def list_pending_notifications(limit: int = Query(100, ge=1, le=500), db: Session = Depends(get_db)):
    """Polled by the notification sender, oldest first"""
    return NotificationService(db).pending(limit=limit)


@router.post("/{notification_id}/ack", response_model=NotificationResponse)
def acknowledge_notification(notification_id: str, db: Session = Depends(get_db)):
    try:
        return NotificationService(db).ack(notification_id)
    except EngineError as e:
        raise to_http_exception(e)
