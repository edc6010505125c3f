"""
Tests for the Booking Service

Tests cover:
- Creating confirmed and pending (pay later) bookings
- Conflict rejection against bookings and blocked ranges
- Input validation (dates, capacity, inactive apartment type)
- Lifecycle: confirm pending, cancel, cancellation releasing the dates
- Reschedule with self-exclusion, conflicts, and re-pricing
- Outbox events written with each change
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from orbicity.errors import ConflictError, InvalidRequestError, NotFoundError
from orbicity.models.blocked_range import BlockedRange
from orbicity.models.booking import Booking, BookingStatus
from orbicity.models.notification import NotificationOutbox
from orbicity.models.pricing import SeasonalRate
from orbicity.services.apartment_service import ApartmentService
from orbicity.services.booking_service import BookingService, validate_stay_dates


def book(db, check_in, check_out, slug="studio", **kwargs):
    kwargs.setdefault("guest_name", "Giorgi Kapanadze")
    return BookingService(db).confirm_booking(slug, check_in, check_out, **kwargs)


def outbox_events(db, booking_id=None):
    query = db.query(NotificationOutbox)
    if booking_id:
        query = query.filter(NotificationOutbox.booking_id == booking_id)
    return [e.event_type for e in query.order_by(NotificationOutbox.created_at).all()]


class TestValidateStayDates:

    def test_checkout_must_follow_checkin(self):
        day = date.today() + timedelta(days=10)
        assert validate_stay_dates(day, day)[0] is False
        assert validate_stay_dates(day, day - timedelta(days=1))[0] is False

    def test_past_stay_rejected(self):
        past = date.today() - timedelta(days=10)
        is_valid, error = validate_stay_dates(past, past + timedelta(days=2))
        assert is_valid is False
        assert "past" in error

    def test_past_allowed_when_requested(self):
        past = date.today() - timedelta(days=10)
        assert validate_stay_dates(past, past + timedelta(days=2), allow_past_dates=True) == (True, None)

    def test_max_stay(self):
        start = date.today() + timedelta(days=5)
        assert validate_stay_dates(start, start + timedelta(days=30), max_duration_nights=30)[0] is True
        assert validate_stay_dates(start, start + timedelta(days=31), max_duration_nights=30)[0] is False

    def test_max_advance(self):
        start = date.today() + timedelta(days=400)
        assert validate_stay_dates(start, start + timedelta(days=2), max_advance_days=365)[0] is False


class TestConfirmBooking:

    def test_creates_confirmed_booking_with_price(self, db, studio, future):
        booking = book(db, future(0), future(3), guests=2)

        assert booking.status == BookingStatus.CONFIRMED.value
        assert booking.nights == 3
        assert Decimal(str(booking.total_price)) == Decimal("300.00")
        assert outbox_events(db, booking.id) == ["booking_confirmed"]

    def test_pending_booking(self, db, studio, future):
        booking = book(db, future(0), future(2), status=BookingStatus.PENDING)
        assert booking.status == BookingStatus.PENDING.value
        assert outbox_events(db, booking.id) == ["booking_pending"]

    def test_overlap_rejected(self, db, studio, future):
        first = book(db, future(0), future(3))
        with pytest.raises(ConflictError) as exc_info:
            book(db, future(2), future(4))
        assert exc_info.value.booking_ids == [first.id]
        assert db.query(Booking).count() == 1

    def test_pending_booking_holds_dates(self, db, studio, future):
        book(db, future(0), future(3), status=BookingStatus.PENDING)
        with pytest.raises(ConflictError):
            book(db, future(1), future(2))

    def test_adjacent_booking_allowed(self, db, studio, future):
        book(db, future(0), future(3))
        second = book(db, future(3), future(5))
        assert second.check_in_date == future(3)

    def test_blocked_range_rejects(self, db, studio, future):
        block = BlockedRange(apartment_type_id=studio.id, start_date=future(5), end_date=future(6), source="airbnb")
        db.add(block)
        db.commit()
        with pytest.raises(ConflictError) as exc_info:
            book(db, future(4), future(7))
        assert exc_info.value.blocked_range_ids == [block.id]

    def test_unknown_apartment_type(self, db, future):
        with pytest.raises(NotFoundError):
            book(db, future(0), future(1), slug="penthouse")

    def test_inactive_apartment_type(self, db, studio, future):
        ApartmentService(db).deactivate("studio")
        with pytest.raises(InvalidRequestError):
            book(db, future(0), future(1))

    def test_too_many_guests(self, db, studio, future):
        with pytest.raises(InvalidRequestError):
            book(db, future(0), future(1), guests=3)

    def test_invalid_dates(self, db, studio, future):
        with pytest.raises(InvalidRequestError):
            book(db, future(3), future(3))

    def test_cancelled_status_not_accepted_for_new_booking(self, db, studio, future):
        with pytest.raises(InvalidRequestError):
            book(db, future(0), future(1), status=BookingStatus.CANCELLED)


class TestQuote:

    def test_quote_breakdown(self, db, studio, future):
        quote = BookingService(db).quote("studio", future(0), future(2))
        assert quote.available is True
        assert quote.num_nights == 2
        assert quote.total == Decimal("200.00")

    def test_quote_unavailable_dates(self, db, studio, future):
        book(db, future(0), future(2))
        quote = BookingService(db).quote("studio", future(1), future(3))
        assert quote.available is False
        assert quote.total == Decimal("200.00")

    def test_quote_over_capacity_is_unavailable(self, db, studio, future):
        assert BookingService(db).quote("studio", future(0), future(2), guests=4).available is False


class TestLifecycle:

    def test_confirm_pending(self, db, studio, future):
        booking = book(db, future(0), future(2), status=BookingStatus.PENDING)
        confirmed = BookingService(db).confirm_pending(booking.id)
        assert confirmed.status == BookingStatus.CONFIRMED.value
        assert outbox_events(db, booking.id) == ["booking_pending", "booking_confirmed"]

    def test_confirm_non_pending_rejected(self, db, studio, future):
        booking = book(db, future(0), future(2))
        with pytest.raises(InvalidRequestError):
            BookingService(db).confirm_pending(booking.id)

    def test_cancel_releases_dates(self, db, studio, future):
        booking = book(db, future(0), future(3))
        cancelled = BookingService(db).cancel_booking(booking.id, reason="Guest request")

        assert cancelled.status == BookingStatus.CANCELLED.value
        assert cancelled.cancelled_at is not None
        assert "booking_cancelled" in outbox_events(db, booking.id)

        again = book(db, future(0), future(3))
        assert again.id != booking.id

    def test_cancel_twice_rejected(self, db, studio, future):
        booking = book(db, future(0), future(3))
        service = BookingService(db)
        service.cancel_booking(booking.id)
        with pytest.raises(InvalidRequestError):
            service.cancel_booking(booking.id)

    def test_get_unknown_booking(self, db):
        with pytest.raises(NotFoundError):
            BookingService(db).get("missing-id")


class TestReschedule:

    def test_shift_overlapping_own_dates(self, db, studio, future):
        """Moving a 5-night stay by 2 days overlaps itself and must succeed"""
        booking = book(db, future(10), future(15))
        moved = BookingService(db).reschedule(booking.id, future(12))

        assert moved.check_in_date == future(12)
        assert moved.check_out_date == future(17)
        assert moved.nights == 5

    def test_conflict_leaves_booking_untouched(self, db, studio, future):
        booking = book(db, future(10), future(15))
        other = book(db, future(20), future(22))

        with pytest.raises(ConflictError) as exc_info:
            BookingService(db).reschedule(booking.id, future(18))

        assert exc_info.value.booking_ids == [other.id]
        db.expire_all()
        reloaded = db.query(Booking).filter(Booking.id == booking.id).one()
        assert reloaded.check_in_date == future(10)
        assert reloaded.check_out_date == future(15)
        assert "booking_rescheduled" not in outbox_events(db, booking.id)

    def test_moved_booking_visible_to_availability(self, db, studio, future):
        booking = book(db, future(10), future(12))
        BookingService(db).reschedule(booking.id, future(20))

        book(db, future(10), future(12))
        with pytest.raises(ConflictError):
            book(db, future(21), future(22))

    def test_reprices_for_new_nights(self, db, studio):
        year = date.today().year + 1
        db.add(SeasonalRate(apartment_type_id=studio.id, month=7, year=year, price_per_night=Decimal("150.00")))
        db.commit()

        booking = book(db, date(year, 6, 10), date(year, 6, 12))
        assert Decimal(str(booking.total_price)) == Decimal("200.00")

        moved = BookingService(db).reschedule(booking.id, date(year, 7, 10))
        assert Decimal(str(moved.total_price)) == Decimal("300.00")

    def test_keep_price(self, db, studio):
        year = date.today().year + 1
        db.add(SeasonalRate(apartment_type_id=studio.id, month=7, year=year, price_per_night=Decimal("150.00")))
        db.commit()

        booking = book(db, date(year, 6, 10), date(year, 6, 12))
        moved = BookingService(db).reschedule(booking.id, date(year, 7, 10), keep_price=True)
        assert Decimal(str(moved.total_price)) == Decimal("200.00")

    def test_cancelled_booking_cannot_move(self, db, studio, future):
        booking = book(db, future(10), future(12))
        service = BookingService(db)
        service.cancel_booking(booking.id)
        with pytest.raises(InvalidRequestError):
            service.reschedule(booking.id, future(20))

    def test_unknown_booking(self, db, studio, future):
        with pytest.raises(NotFoundError):
            BookingService(db).reschedule("missing-id", future(1))

    def test_outbox_event(self, db, studio, future):
        booking = book(db, future(10), future(12))
        BookingService(db).reschedule(booking.id, future(30))
        assert outbox_events(db, booking.id)[-1] == "booking_rescheduled"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
