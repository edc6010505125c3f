import uuid
from datetime import datetime
from sqlalchemy import Column, String, Date, Numeric, Text, ForeignKey, DateTime, Index, Integer, CheckConstraint
from sqlalchemy.orm import relationship
from ..database import Base
import enum


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    """Informational only, payments are handled elsewhere"""
    UNPAID = "unpaid"
    PAY_LATER = "pay_later"
    PAID = "paid"


# Reserve-on-request: a pending ("pay later") booking holds the calendar
# exactly like a confirmed one. Only cancellation releases the interval.
OCCUPYING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


class Booking(Base):
    """
    A direct reservation. check_out_date is exclusive: the checkout night
    is not occupied.
    """
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    apartment_type_id = Column(String(36), ForeignKey("apartment_types.id", ondelete="RESTRICT"), nullable=False)

    guest_name = Column(String(100), nullable=False)
    guest_email = Column(String(255), nullable=True)
    guest_phone = Column(String(30), nullable=True)
    guests = Column(Integer, nullable=False, default=1)

    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    total_price = Column(Numeric(10, 2), default=0)
    status = Column(String(20), default=BookingStatus.PENDING.value, nullable=False)
    payment_status = Column(String(20), default=PaymentStatus.UNPAID.value)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    cancelled_at = Column(DateTime, nullable=True)

    # Relationships
    apartment_type = relationship("ApartmentType", back_populates="bookings")

    __table_args__ = (
        Index("ix_booking_type_dates", "apartment_type_id", "check_in_date", "check_out_date"),
        Index("ix_booking_status", "status"),
        CheckConstraint("check_out_date > check_in_date", name="ck_booking_dates"),
    )

    @property
    def apartment_slug(self):
        return self.apartment_type.slug if self.apartment_type else None

    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days

    @property
    def is_occupying(self) -> bool:
        return self.status in OCCUPYING_STATUSES

    def __repr__(self):
        return f"<Booking {self.guest_name} - {self.check_in_date} ({self.status})>"
