"""
Booking Service

Direct bookings: quote, create, confirm, cancel, reschedule.

Every operation that reads availability and then writes runs inside
apartment_write_lock() and commits before leaving it, so two requests for
the same apartment type can never both see the same nights as free.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..config import settings
from ..models.apartment_type import ApartmentType
from ..models.booking import Booking, BookingStatus, PaymentStatus
from ..models.notification import NotificationEventType
from ..errors import ConflictError, NotFoundError, InvalidRequestError
from ..utils.db_helpers import apartment_write_lock
from ..utils.logging_config import get_logger
from .apartment_service import ApartmentService
from .availability import AvailabilityResolver
from .notification_service import NotificationService
from .pricing_engine import RateResolver, NightlyPrice

logger = get_logger(__name__)


@dataclass
class Quote:
    apartment_type: str
    check_in: date
    check_out: date
    available: bool
    nights: List[NightlyPrice]
    total: Decimal
    currency: str

    @property
    def num_nights(self) -> int:
        return len(self.nights)


def validate_stay_dates(
    check_in: date,
    check_out: date,
    allow_past_dates: bool = False,
    max_advance_days: Optional[int] = None,
    max_duration_nights: Optional[int] = None
) -> Tuple[bool, Optional[str]]:
    """
    Check a requested stay before touching the calendar.

    Returns: (is_valid, error_message)
    """
    if max_advance_days is None:
        max_advance_days = settings.max_advance_days
    if max_duration_nights is None:
        max_duration_nights = settings.max_stay_nights

    if not check_in or not check_out:
        return False, "check_in and check_out are required"

    if check_out <= check_in:
        return False, "check_out must be after check_in"

    nights = (check_out - check_in).days
    if nights > max_duration_nights:
        return False, f"Stay of {nights} nights exceeds the maximum of {max_duration_nights}"

    today = date.today()
    if not allow_past_dates:
        if check_out < today:
            return False, "Stay is in the past"
        if check_in > today + timedelta(days=max_advance_days):
            return False, f"check_in is more than {max_advance_days} days ahead"

    return True, None


def _conflict_error(conflicts, check_in: date, check_out: date) -> ConflictError:
    return ConflictError(
        f"Dates {check_in} to {check_out} are not available",
        booking_ids=conflicts.booking_ids,
        blocked_range_ids=conflicts.blocked_range_ids
    )


class BookingService:

    def __init__(self, db: Session):
        self.db = db
        self.apartments = ApartmentService(db)
        self.availability = AvailabilityResolver(db)
        self.rates = RateResolver(db)
        self.notifications = NotificationService(db)

    def get(self, booking_id: str) -> Booking:
        booking = self.db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFoundError("Booking", booking_id)
        return booking

    def list(
        self,
        apartment_type: Optional[str] = None,
        status: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> List[Booking]:
        query = self.db.query(Booking)
        if apartment_type:
            apartment = self.apartments.get_by_slug(apartment_type)
            query = query.filter(Booking.apartment_type_id == apartment.id)
        if status:
            query = query.filter(Booking.status == status)
        if start:
            query = query.filter(Booking.check_out_date > start)
        if end:
            query = query.filter(Booking.check_in_date < end)
        return query.order_by(Booking.check_in_date).all()

    def quote(self, apartment_type: str, check_in: date, check_out: date, guests: Optional[int] = None) -> Quote:
        """Price and availability for a prospective stay. Read-only."""
        apartment = self.apartments.get_by_slug(apartment_type)

        is_valid, error = validate_stay_dates(check_in, check_out)
        if not is_valid:
            raise InvalidRequestError(error)

        priced = self.rates.price_calendar(apartment, check_in, check_out)
        available = (
            apartment.is_active
            and (guests is None or guests <= apartment.max_guests)
            and self.availability.is_available(apartment.id, check_in, check_out)
        )

        return Quote(
            apartment_type=apartment.slug,
            check_in=check_in,
            check_out=check_out,
            available=bool(available),
            nights=priced.nights,
            total=priced.total,
            currency=settings.currency
        )

    def confirm_booking(
        self,
        apartment_type: str,
        check_in: date,
        check_out: date,
        guest_name: str,
        guest_email: Optional[str] = None,
        guest_phone: Optional[str] = None,
        guests: int = 1,
        notes: Optional[str] = None,
        status: BookingStatus = BookingStatus.CONFIRMED,
        payment_status: PaymentStatus = PaymentStatus.UNPAID
    ) -> Booking:
        """
        Create a booking if [check_in, check_out) is free.

        status=PENDING is the "pay later" path: the booking holds the
        calendar the same way a confirmed one does.

        Raises:
            NotFoundError: unknown apartment type
            InvalidRequestError: bad dates, capacity, inactive type
            ConflictError: interval overlaps a booking or blocked range
        """
        apartment = self.apartments.get_by_slug(apartment_type)
        self._validate_new_booking(apartment, check_in, check_out, guests, status)

        with apartment_write_lock(self.db, apartment.id):
            conflicts = self.availability.find_conflicts(apartment.id, check_in, check_out)
            if not conflicts.is_empty:
                logger.info(
                    f"Booking rejected for {apartment.slug} {check_in}->{check_out}: "
                    f"{len(conflicts.bookings)} bookings, {len(conflicts.blocked_ranges)} blocks overlap"
                )
                raise _conflict_error(conflicts, check_in, check_out)

            priced = self.rates.price_calendar(apartment, check_in, check_out)
            booking = Booking(
                apartment_type_id=apartment.id,
                guest_name=guest_name,
                guest_email=guest_email,
                guest_phone=guest_phone,
                guests=guests,
                check_in_date=check_in,
                check_out_date=check_out,
                total_price=priced.total,
                status=status.value,
                payment_status=payment_status.value,
                notes=notes
            )
            self.db.add(booking)
            self.db.flush()

            event = (
                NotificationEventType.BOOKING_PENDING
                if status == BookingStatus.PENDING
                else NotificationEventType.BOOKING_CONFIRMED
            )
            self.notifications.enqueue_for_booking(event, booking, apartment_type=apartment.slug)
            self.db.commit()

        self.db.refresh(booking)
        logger.booking_created(booking.id, apartment.slug, booking.status, booking.total_price)
        return booking

    def _validate_new_booking(
        self,
        apartment: ApartmentType,
        check_in: date,
        check_out: date,
        guests: int,
        status: BookingStatus
    ):
        if not apartment.is_active:
            raise InvalidRequestError(f"Apartment type '{apartment.slug}' is not accepting bookings")

        if status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
            raise InvalidRequestError(f"New bookings must be pending or confirmed, got {status.value}")

        is_valid, error = validate_stay_dates(check_in, check_out)
        if not is_valid:
            raise InvalidRequestError(error)

        if guests is None or guests < 1:
            raise InvalidRequestError("At least one guest is required")
        if guests > apartment.max_guests:
            raise InvalidRequestError(
                f"{apartment.name} sleeps at most {apartment.max_guests} guests"
            )

    def confirm_pending(self, booking_id: str) -> Booking:
        """
        pending -> confirmed.

        The status is re-read under the apartment lock: a booking cancelled
        in the meantime has released its nights and may not come back.
        """
        booking = self.get(booking_id)

        with apartment_write_lock(self.db, booking.apartment_type_id):
            self.db.refresh(booking)
            if booking.status != BookingStatus.PENDING.value:
                raise InvalidRequestError(f"Only pending bookings can be confirmed (status: {booking.status})")

            conflicts = self.availability.find_conflicts(
                booking.apartment_type_id,
                booking.check_in_date,
                booking.check_out_date,
                exclude_booking_id=booking.id
            )
            if not conflicts.is_empty:
                raise _conflict_error(conflicts, booking.check_in_date, booking.check_out_date)

            old_status = booking.status
            booking.status = BookingStatus.CONFIRMED.value
            self.notifications.enqueue_for_booking(NotificationEventType.BOOKING_CONFIRMED, booking)
            self.db.commit()

        self.db.refresh(booking)
        logger.booking_status_changed(booking.id, old_status, booking.status)
        return booking

    def cancel_booking(self, booking_id: str, reason: Optional[str] = None) -> Booking:
        """Terminal. Releases the interval for new bookings."""
        booking = self.get(booking_id)

        with apartment_write_lock(self.db, booking.apartment_type_id):
            self.db.refresh(booking)
            if booking.status == BookingStatus.CANCELLED.value:
                raise InvalidRequestError("Booking is already cancelled")

            old_status = booking.status
            booking.status = BookingStatus.CANCELLED.value
            booking.cancelled_at = datetime.utcnow()
            if reason:
                booking.notes = f"{booking.notes}\n{reason}" if booking.notes else reason

            self.notifications.enqueue_for_booking(NotificationEventType.BOOKING_CANCELLED, booking, reason=reason)
            self.db.commit()

        self.db.refresh(booking)
        logger.booking_status_changed(booking.id, old_status, booking.status)
        return booking

    def reschedule(
        self,
        booking_id: str,
        new_check_in: date,
        keep_price: bool = False,
        allow_past_dates: bool = False
    ) -> Booking:
        """
        Move a booking to a new start date keeping its length.

        The booking is checked against everything except itself, so moving
        it by fewer nights than its length (overlapping its old dates) is
        allowed. Status and length are re-read under the apartment lock;
        nothing is written unless the new interval is free.

        Raises:
            NotFoundError: unknown booking
            InvalidRequestError: cancelled booking or invalid new dates
            ConflictError: new interval overlaps another booking or block
        """
        booking = self.get(booking_id)

        with apartment_write_lock(self.db, booking.apartment_type_id):
            self.db.refresh(booking)
            if booking.status == BookingStatus.CANCELLED.value:
                raise InvalidRequestError("Cancelled bookings cannot be rescheduled")

            nights = booking.nights
            new_check_out = new_check_in + timedelta(days=nights)
            if new_check_in == booking.check_in_date:
                return booking

            is_valid, error = validate_stay_dates(new_check_in, new_check_out, allow_past_dates=allow_past_dates)
            if not is_valid:
                raise InvalidRequestError(error)

            old_check_in = booking.check_in_date
            old_check_out = booking.check_out_date

            conflicts = self.availability.find_conflicts(
                booking.apartment_type_id,
                new_check_in,
                new_check_out,
                exclude_booking_id=booking.id
            )
            if not conflicts.is_empty:
                logger.info(f"Reschedule of {booking.id} to {new_check_in} rejected: dates taken")
                raise _conflict_error(conflicts, new_check_in, new_check_out)

            booking.check_in_date = new_check_in
            booking.check_out_date = new_check_out
            if not keep_price:
                priced = self.rates.price_calendar(booking.apartment_type, new_check_in, new_check_out)
                booking.total_price = priced.total

            self.notifications.enqueue_for_booking(
                NotificationEventType.BOOKING_RESCHEDULED,
                booking,
                old_check_in=old_check_in.isoformat(),
                old_check_out=old_check_out.isoformat()
            )
            self.db.commit()

        self.db.refresh(booking)
        logger.booking_rescheduled(booking.id, old_check_in, new_check_in, nights)
        return booking
