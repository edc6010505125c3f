"""
Tests for manual blocks and block ownership
"""

import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from orbicity.errors import InvalidRequestError, NotFoundError, OwnershipError
from orbicity.models.blocked_range import BlockedRange, MANUAL_SOURCE
from orbicity.services.availability import AvailabilityResolver
from orbicity.services.block_service import BlockService
from orbicity.services.booking_service import BookingService


class TestManualBlocks:

    def test_add_block_makes_dates_unavailable(self, db, studio, future):
        block = BlockService(db).add_manual_block("studio", future(0), future(3), reason="Plumbing")

        assert block.source == MANUAL_SOURCE
        assert block.is_manual is True
        assert AvailabilityResolver(db).is_available(studio.id, future(1), future(2)) is False
        assert AvailabilityResolver(db).is_available(studio.id, future(3), future(4)) is True

    def test_blocks_may_stack(self, db, studio, future):
        service = BlockService(db)
        service.add_manual_block("studio", future(0), future(5))
        service.add_manual_block("studio", future(2), future(7))
        assert len(service.list(apartment_type="studio")) == 2

    def test_block_over_existing_booking_allowed(self, db, studio, future):
        booking = BookingService(db).confirm_booking("studio", future(0), future(3), guest_name="Nino")
        block = BlockService(db).add_manual_block("studio", future(1), future(2))

        assert block.id
        db.refresh(booking)
        assert booking.status == "confirmed"

    def test_invalid_interval(self, db, studio, future):
        with pytest.raises(InvalidRequestError):
            BlockService(db).add_manual_block("studio", future(3), future(3))

    def test_unknown_apartment_type(self, db, future):
        with pytest.raises(NotFoundError):
            BlockService(db).add_manual_block("penthouse", future(0), future(1))

    def test_delete_manual_block_frees_dates(self, db, studio, future):
        service = BlockService(db)
        block = service.add_manual_block("studio", future(0), future(3))
        service.delete_manual_block(block.id)
        assert AvailabilityResolver(db).is_available(studio.id, future(0), future(3)) is True


class TestOwnership:

    def test_channel_block_cannot_be_deleted_manually(self, db, studio, future):
        block = BlockedRange(
            apartment_type_id=studio.id,
            start_date=future(0),
            end_date=future(2),
            source="airbnb",
            external_id="abc@airbnb.com"
        )
        db.add(block)
        db.commit()

        with pytest.raises(OwnershipError):
            BlockService(db).delete_manual_block(block.id)
        assert db.query(BlockedRange).count() == 1

    def test_delete_missing_block(self, db):
        with pytest.raises(NotFoundError):
            BlockService(db).delete_manual_block("missing")


class TestListing:

    def test_filter_by_source_and_window(self, db, studio, future):
        service = BlockService(db)
        service.add_manual_block("studio", future(0), future(2))
        service.add_manual_block("studio", future(10), future(12))
        db.add(BlockedRange(
            apartment_type_id=studio.id, start_date=future(0), end_date=future(1),
            source="booking_com", external_id="bk-1"
        ))
        db.commit()

        assert len(service.list(source=MANUAL_SOURCE)) == 2
        assert len(service.list(source="booking_com")) == 1
        windowed = service.list(start=future(2), end=future(11))
        assert [(b.start_date, b.end_date) for b in windowed] == [(future(10), future(12))]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
