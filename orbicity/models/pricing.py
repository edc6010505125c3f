"""
Seasonal Rate Model

Month/year price overrides per apartment type. A seasonal rate applies to
every night in its calendar month and takes precedence over the apartment
type's base price.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Numeric, ForeignKey, DateTime, Integer, Boolean, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from ..database import Base


class SeasonalRate(Base):
    """
    Nightly price override for one (apartment type, month, year) tuple.

    The tuple is unique: a second insert must fail instead of overwriting,
    so operators edit or delete the existing row first. Bulk copy from a
    previous year upserts on the same tuple.
    """
    __tablename__ = "seasonal_rates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    apartment_type_id = Column(String(36), ForeignKey("apartment_types.id", ondelete="RESTRICT"), nullable=False)

    month = Column(Integer, nullable=False)  # 1-12
    year = Column(Integer, nullable=False)
    price_per_night = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    apartment_type = relationship("ApartmentType", back_populates="seasonal_rates")

    __table_args__ = (
        UniqueConstraint("apartment_type_id", "month", "year", name="uq_seasonal_rate_type_month_year"),
        Index("ix_seasonal_rate_year", "year"),
    )

    def __repr__(self):
        return f"<SeasonalRate {self.apartment_type_id} {self.year}-{self.month:02d} {self.price_per_night}>"
