import uuid
from datetime import datetime
from sqlalchemy import Column, String, Numeric, Integer, Boolean, DateTime, Text
from sqlalchemy.orm import relationship
from ..database import Base


class ApartmentType(Base):
    """
    A sellable unit category (studio, family suite, ...).

    Never deleted once referenced: deactivate instead. Inactive types
    accept no new bookings, existing bookings stay valid.
    """
    __tablename__ = "apartment_types"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    slug = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    base_price = Column(Numeric(10, 2), nullable=False)
    max_guests = Column(Integer, nullable=False, default=2)
    size_sqm = Column(Integer, nullable=True)
    display_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    seasonal_rates = relationship("SeasonalRate", back_populates="apartment_type")
    bookings = relationship("Booking", back_populates="apartment_type")
    blocked_ranges = relationship("BlockedRange", back_populates="apartment_type")
    integrations = relationship("ChannelIntegration", back_populates="apartment_type")

    def __repr__(self):
        return f"<ApartmentType {self.slug} base={self.base_price}>"
