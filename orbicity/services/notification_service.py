"""
Notification Outbox Service

enqueue() adds an event to the current session without committing, so the
event lands in the same transaction as the booking change it describes.
"""

import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from ..models.booking import Booking
from ..models.notification import NotificationOutbox, NotificationEventType, NotificationStatus
from ..errors import NotFoundError

logger = logging.getLogger(__name__)


def booking_payload(booking: Booking, **extra) -> dict:
    payload = {
        "booking_id": booking.id,
        "apartment_type_id": booking.apartment_type_id,
        "guest_name": booking.guest_name,
        "guest_email": booking.guest_email,
        "check_in": booking.check_in_date.isoformat(),
        "check_out": booking.check_out_date.isoformat(),
        "status": booking.status,
        "total_price": str(booking.total_price) if booking.total_price is not None else None,
    }
    payload.update(extra)
    return payload


class NotificationService:

    def __init__(self, db: Session):
        self.db = db

    def enqueue(
        self,
        event_type: NotificationEventType,
        payload: dict,
        booking_id: Optional[str] = None
    ) -> NotificationOutbox:
        event = NotificationOutbox(
            event_type=event_type.value,
            booking_id=booking_id,
            payload=payload,
            status=NotificationStatus.PENDING.value
        )
        self.db.add(event)
        logger.debug(f"Queued {event_type.value} notification (booking={booking_id})")
        return event

    def enqueue_for_booking(self, event_type: NotificationEventType, booking: Booking, **extra) -> NotificationOutbox:
        return self.enqueue(event_type, booking_payload(booking, **extra), booking_id=booking.id)

    def pending(self, limit: int = 100) -> List[NotificationOutbox]:
        """Oldest first"""
        return self.db.query(NotificationOutbox).filter(
            NotificationOutbox.status == NotificationStatus.PENDING.value
        ).order_by(NotificationOutbox.created_at).limit(limit).all()

    def ack(self, notification_id: str) -> NotificationOutbox:
        event = self.db.query(NotificationOutbox).filter(
            NotificationOutbox.id == notification_id
        ).first()
        if not event:
            raise NotFoundError("Notification", notification_id)

        if event.status != NotificationStatus.DELIVERED.value:
            event.status = NotificationStatus.DELIVERED.value
            event.delivered_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(event)
        return event
