"""
Tests for seasonal rate administration
"""

import pytest
from decimal import Decimal

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from orbicity.errors import DuplicateSeasonalRateError, InvalidRequestError, NotFoundError
from orbicity.models.pricing import SeasonalRate
from orbicity.services.seasonal_rate_service import SeasonalRateService


class TestCreate:

    def test_create_rate(self, db, studio):
        rate = SeasonalRateService(db).create("studio", 8, 2027, Decimal("150.00"))
        assert rate.apartment_type_id == studio.id
        assert rate.is_active is True
        assert Decimal(str(rate.price_per_night)) == Decimal("150.00")

    def test_duplicate_rejected(self, db, studio):
        service = SeasonalRateService(db)
        service.create("studio", 8, 2027, Decimal("150.00"))

        with pytest.raises(DuplicateSeasonalRateError):
            service.create("studio", 8, 2027, Decimal("175.00"))

        rates = db.query(SeasonalRate).all()
        assert len(rates) == 1
        assert Decimal(str(rates[0].price_per_night)) == Decimal("150.00")

    def test_same_month_other_type_allowed(self, db, studio, family_suite):
        service = SeasonalRateService(db)
        service.create("studio", 8, 2027, Decimal("150.00"))
        service.create("family-suite", 8, 2027, Decimal("250.00"))
        assert db.query(SeasonalRate).count() == 2

    def test_inactive_rate_reactivated(self, db, studio):
        service = SeasonalRateService(db)
        rate = service.create("studio", 8, 2027, Decimal("150.00"))
        service.update(rate.id, is_active=False)

        revived = service.create("studio", 8, 2027, Decimal("160.00"))
        assert revived.id == rate.id
        assert revived.is_active is True
        assert Decimal(str(revived.price_per_night)) == Decimal("160.00")

    @pytest.mark.parametrize("month,year,price", [
        (0, 2027, "100"),
        (13, 2027, "100"),
        (6, 1999, "100"),
        (6, 2027, "-1"),
    ])
    def test_invalid_values(self, db, studio, month, year, price):
        with pytest.raises(InvalidRequestError):
            SeasonalRateService(db).create("studio", month, year, Decimal(price))

    def test_unknown_apartment_type(self, db):
        with pytest.raises(NotFoundError):
            SeasonalRateService(db).create("penthouse", 8, 2027, Decimal("150.00"))


class TestUpdateDelete:

    def test_update_price(self, db, studio):
        service = SeasonalRateService(db)
        rate = service.create("studio", 8, 2027, Decimal("150.00"))
        updated = service.update(rate.id, price_per_night=Decimal("155.50"))
        assert Decimal(str(updated.price_per_night)) == Decimal("155.50")

    def test_delete(self, db, studio):
        service = SeasonalRateService(db)
        rate = service.create("studio", 8, 2027, Decimal("150.00"))
        service.delete(rate.id)
        assert db.query(SeasonalRate).count() == 0

    def test_delete_missing(self, db):
        with pytest.raises(NotFoundError):
            SeasonalRateService(db).delete("missing")


class TestCopyFromYear:

    def test_copy_creates_and_updates(self, db, studio, family_suite):
        service = SeasonalRateService(db)
        service.create("studio", 7, 2027, Decimal("140.00"))
        service.create("studio", 8, 2027, Decimal("150.00"))
        service.create("family-suite", 8, 2027, Decimal("250.00"))
        service.create("studio", 8, 2028, Decimal("99.00"))

        counts = service.copy_from_year(2027, 2028)

        assert counts == {"created": 2, "updated": 1}
        target = {
            (r.apartment_type_id, r.month): Decimal(str(r.price_per_night))
            for r in service.list(year=2028)
        }
        assert target == {
            (studio.id, 7): Decimal("140.00"),
            (studio.id, 8): Decimal("150.00"),
            (family_suite.id, 8): Decimal("250.00"),
        }

    def test_copy_single_apartment_type(self, db, studio, family_suite):
        service = SeasonalRateService(db)
        service.create("studio", 8, 2027, Decimal("150.00"))
        service.create("family-suite", 8, 2027, Decimal("250.00"))

        assert service.copy_from_year(2027, 2028, apartment_type="studio") == {"created": 1, "updated": 0}
        assert [r.apartment_type_id for r in service.list(year=2028)] == [studio.id]

    def test_inactive_source_rates_not_copied(self, db, studio):
        service = SeasonalRateService(db)
        service.create("studio", 7, 2027, Decimal("140.00"))
        service.create("studio", 8, 2027, Decimal("150.00"), is_active=False)

        assert service.copy_from_year(2027, 2028) == {"created": 1, "updated": 0}

    def test_empty_source_year(self, db, studio):
        with pytest.raises(NotFoundError):
            SeasonalRateService(db).copy_from_year(2030, 2031)

    def test_same_year_rejected(self, db, studio):
        with pytest.raises(InvalidRequestError):
            SeasonalRateService(db).copy_from_year(2027, 2027)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
