"""
Channel Integration Models

Models for pulling external channel calendars (Booking.com, Airbnb, ...):
- ChannelIntegration: one iCal feed per (channel, apartment type)
- SyncConflict: channel blocks that landed on top of a direct booking,
  kept for operator review
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, ForeignKey, DateTime, Date, Boolean, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database import Base
import enum


class ChannelName(str, enum.Enum):
    BOOKING_COM = "booking_com"
    AIRBNB = "airbnb"
    EXPEDIA = "expedia"
    VRBO = "vrbo"
    OTHER = "other"


CHANNEL_LABELS = {
    ChannelName.BOOKING_COM.value: "Booking.com",
    ChannelName.AIRBNB.value: "Airbnb",
    ChannelName.EXPEDIA.value: "Expedia",
    ChannelName.VRBO.value: "VRBO",
    ChannelName.OTHER.value: "OTA",
}


class ConflictStatus(str, enum.Enum):
    OPEN = "open"
    RESOLVED = "resolved"


class ChannelIntegration(Base):
    """
    Configuration for one external calendar feed.

    last_synced_at / last_sync_error are written by the sync engine only.
    """
    __tablename__ = "channel_integrations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    channel_name = Column(String(50), nullable=False)
    apartment_type_id = Column(String(36), ForeignKey("apartment_types.id", ondelete="RESTRICT"), nullable=False)
    ical_url = Column(String(1000), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Sync status tracking
    last_synced_at = Column(DateTime, nullable=True)
    last_sync_error = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    apartment_type = relationship("ApartmentType", back_populates="integrations")
    blocked_ranges = relationship(
        "BlockedRange",
        back_populates="integration",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    __table_args__ = (
        Index("ix_channel_integration_type", "apartment_type_id"),
    )

    @property
    def channel_label(self) -> str:
        return CHANNEL_LABELS.get(self.channel_name, self.channel_name)

    def __repr__(self):
        return f"<ChannelIntegration {self.channel_name} type={self.apartment_type_id}>"


class SyncConflict(Base):
    """
    A channel-imported block overlapping an occupying direct booking.

    Neither side wins automatically: the block is stored, the booking is
    kept, and staff resolve the conflict by hand.
    """
    __tablename__ = "sync_conflicts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    integration_id = Column(String(36), ForeignKey("channel_integrations.id", ondelete="CASCADE"), nullable=False)
    blocked_range_id = Column(String(36), ForeignKey("blocked_ranges.id", ondelete="CASCADE"), nullable=False)
    booking_id = Column(String(36), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    apartment_type_id = Column(String(36), ForeignKey("apartment_types.id", ondelete="CASCADE"), nullable=False)

    # Overlapping nights at detection time
    overlap_start = Column(Date, nullable=False)
    overlap_end = Column(Date, nullable=False)

    status = Column(String(20), default=ConflictStatus.OPEN.value, nullable=False)
    resolution_notes = Column(Text, nullable=True)
    resolved_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    integration = relationship("ChannelIntegration")
    blocked_range = relationship("BlockedRange")
    booking = relationship("Booking")

    __table_args__ = (
        UniqueConstraint("blocked_range_id", "booking_id", name="uq_sync_conflict_block_booking"),
        Index("ix_sync_conflict_status", "status"),
    )

    def __repr__(self):
        return f"<SyncConflict block={self.blocked_range_id} booking={self.booking_id} {self.status}>"
