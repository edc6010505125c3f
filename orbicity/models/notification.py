"""
Notification Outbox Model

Booking lifecycle events queued for the notification subsystem. Rows are
written in the same transaction as the change they describe, the
subsystem polls pending rows and acknowledges them once delivered.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Index
from ..database import Base
import enum


class NotificationEventType(str, enum.Enum):
    BOOKING_PENDING = "booking_pending"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_CANCELLED = "booking_cancelled"
    BOOKING_RESCHEDULED = "booking_rescheduled"
    SYNC_CONFLICT = "sync_conflict"


class NotificationStatus(str, enum.Enum):
    PENDING = "pending"
    DELIVERED = "delivered"


class NotificationOutbox(Base):
    __tablename__ = "notification_outbox"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_type = Column(String(50), nullable=False)
    booking_id = Column(String(36), ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True)
    payload = Column(JSON, nullable=False)

    status = Column(String(20), default=NotificationStatus.PENDING.value, nullable=False)
    delivered_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_notification_outbox_status_created", "status", "created_at"),
    )

    def __repr__(self):
        return f"<NotificationOutbox {self.event_type} status={self.status}>"
