"""
Blocked Range Model

Non-bookable date ranges per apartment type. Two kinds of rows share the
table:
- manual: entered by staff, never touched by channel sync
- channel: imported from an integration's iCal feed, owned by that
  integration and only created/updated/deleted by its sync pass
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Date, DateTime, Text, ForeignKey, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from ..database import Base

MANUAL_SOURCE = "manual"


class BlockedRange(Base):
    __tablename__ = "blocked_ranges"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    apartment_type_id = Column(String(36), ForeignKey("apartment_types.id", ondelete="RESTRICT"), nullable=False)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)  # exclusive

    # "manual" or the channel name of the owning integration
    source = Column(String(50), nullable=False, default=MANUAL_SOURCE)
    reason = Column(Text, nullable=True)

    # Channel rows only
    external_id = Column(String(255), nullable=True)  # iCal UID
    integration_id = Column(
        String(36),
        ForeignKey("channel_integrations.id", ondelete="CASCADE"),
        nullable=True
    )

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    apartment_type = relationship("ApartmentType", back_populates="blocked_ranges")
    integration = relationship("ChannelIntegration", back_populates="blocked_ranges")

    __table_args__ = (
        UniqueConstraint("integration_id", "external_id", name="uq_blocked_range_integration_uid"),
        Index("ix_blocked_range_type_dates", "apartment_type_id", "start_date", "end_date"),
        Index("ix_blocked_range_integration", "integration_id"),
        CheckConstraint("end_date > start_date", name="ck_blocked_range_dates"),
    )

    @property
    def apartment_slug(self):
        return self.apartment_type.slug if self.apartment_type else None

    @property
    def is_manual(self) -> bool:
        return self.integration_id is None and self.source == MANUAL_SOURCE

    def __repr__(self):
        return f"<BlockedRange {self.source} {self.start_date}->{self.end_date}>"
