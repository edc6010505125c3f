"""
Availability Resolver

Answers "is this apartment type free for [start, end)?" against two
sources of occupancy:
- direct bookings in an occupying status (pending or confirmed)
- blocked ranges of any source (manual or channel-imported)

All intervals are half-open: a check-out date equal to the next check-in
date is not an overlap.
"""

import logging
from datetime import date
from typing import List, Optional
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from ..models.booking import Booking, OCCUPYING_STATUSES
from ..models.blocked_range import BlockedRange
from .pricing_engine import iter_nights

logger = logging.getLogger(__name__)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """[a_start, a_end) and [b_start, b_end) share at least one night"""
    return a_start < b_end and b_start < a_end


@dataclass
class AvailabilityConflicts:
    """Records blocking a requested interval"""
    bookings: List[Booking] = field(default_factory=list)
    blocked_ranges: List[BlockedRange] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.bookings and not self.blocked_ranges

    @property
    def booking_ids(self) -> List[str]:
        return [b.id for b in self.bookings]

    @property
    def blocked_range_ids(self) -> List[str]:
        return [r.id for r in self.blocked_ranges]


@dataclass
class CalendarDay:
    date: date
    available: bool
    booking_id: Optional[str] = None
    blocked_range_ids: List[str] = field(default_factory=list)


class AvailabilityResolver:

    def __init__(self, db: Session):
        self.db = db

    def find_conflicts(
        self,
        apartment_type_id: str,
        start: date,
        end: date,
        exclude_booking_id: Optional[str] = None
    ) -> AvailabilityConflicts:
        """
        Occupying bookings and blocked ranges overlapping [start, end).

        exclude_booking_id lets a booking be checked against everything
        but itself (reschedule).
        """
        booking_query = self.db.query(Booking).filter(
            Booking.apartment_type_id == apartment_type_id,
            Booking.status.in_(OCCUPYING_STATUSES),
            Booking.check_in_date < end,
            Booking.check_out_date > start
        )
        if exclude_booking_id:
            booking_query = booking_query.filter(Booking.id != exclude_booking_id)

        blocks = self.db.query(BlockedRange).filter(
            BlockedRange.apartment_type_id == apartment_type_id,
            BlockedRange.start_date < end,
            BlockedRange.end_date > start
        ).all()

        return AvailabilityConflicts(
            bookings=booking_query.order_by(Booking.check_in_date).all(),
            blocked_ranges=sorted(blocks, key=lambda r: r.start_date)
        )

    def is_available(
        self,
        apartment_type_id: str,
        start: date,
        end: date,
        exclude_booking_id: Optional[str] = None
    ) -> bool:
        """Blocking records make the answer False; they are never an error"""
        conflicts = self.find_conflicts(apartment_type_id, start, end, exclude_booking_id)
        return conflicts.is_empty

    def calendar(self, apartment_type_id: str, start: date, end: date) -> List[CalendarDay]:
        """One entry per night in [start, end)"""
        conflicts = self.find_conflicts(apartment_type_id, start, end)

        days = []
        for night in iter_nights(start, end):
            booking_id = None
            for booking in conflicts.bookings:
                if booking.check_in_date <= night < booking.check_out_date:
                    booking_id = booking.id
                    break
            block_ids = [
                r.id for r in conflicts.blocked_ranges
                if r.start_date <= night < r.end_date
            ]
            days.append(CalendarDay(
                date=night,
                available=booking_id is None and not block_ids,
                booking_id=booking_id,
                blocked_range_ids=block_ids
            ))
        return days
