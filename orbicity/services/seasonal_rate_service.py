"""
Seasonal Rate Administration

One active rate per (apartment type, month, year). A plain create never
overwrites: it fails with DuplicateSeasonalRateError. copy_from_year is
the bulk path and upserts on the same tuple.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from ..models.pricing import SeasonalRate
from ..models.apartment_type import ApartmentType
from ..errors import DuplicateSeasonalRateError, NotFoundError, InvalidRequestError
from .apartment_service import ApartmentService

logger = logging.getLogger(__name__)


def _validate_rate(month: int, year: int, price_per_night: Decimal):
    if not 1 <= month <= 12:
        raise InvalidRequestError(f"month must be between 1 and 12, got {month}")
    if not 2000 <= year <= 2100:
        raise InvalidRequestError(f"year out of range: {year}")
    if price_per_night is None or Decimal(str(price_per_night)) < 0:
        raise InvalidRequestError("price_per_night must be zero or greater")


class SeasonalRateService:

    def __init__(self, db: Session):
        self.db = db
        self.apartments = ApartmentService(db)

    def get(self, rate_id: str) -> SeasonalRate:
        rate = self.db.query(SeasonalRate).filter(SeasonalRate.id == rate_id).first()
        if not rate:
            raise NotFoundError("SeasonalRate", rate_id)
        return rate

    def list(self, year: Optional[int] = None, apartment_type: Optional[str] = None) -> List[SeasonalRate]:
        query = self.db.query(SeasonalRate)
        if year is not None:
            query = query.filter(SeasonalRate.year == year)
        if apartment_type:
            apartment = self.apartments.get_by_slug(apartment_type)
            query = query.filter(SeasonalRate.apartment_type_id == apartment.id)
        return query.order_by(SeasonalRate.year, SeasonalRate.month).all()

    def create(
        self,
        apartment_type: str,
        month: int,
        year: int,
        price_per_night: Decimal,
        is_active: bool = True
    ) -> SeasonalRate:
        apartment = self.apartments.get_by_slug(apartment_type)
        _validate_rate(month, year, price_per_night)

        existing = self._find(apartment, month, year)
        if existing is not None:
            if existing.is_active:
                raise DuplicateSeasonalRateError(apartment.slug, month, year)
            # An inactive row still owns the tuple; bring it back instead.
            existing.price_per_night = price_per_night
            existing.is_active = is_active
            self.db.commit()
            self.db.refresh(existing)
            return existing

        rate = SeasonalRate(
            apartment_type_id=apartment.id,
            month=month,
            year=year,
            price_per_night=price_per_night,
            is_active=is_active
        )
        self.db.add(rate)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateSeasonalRateError(apartment.slug, month, year)
        self.db.refresh(rate)

        logger.info(f"Seasonal rate {apartment.slug} {year}-{month:02d} = {price_per_night}")
        return rate

    def update(
        self,
        rate_id: str,
        price_per_night: Optional[Decimal] = None,
        is_active: Optional[bool] = None
    ) -> SeasonalRate:
        rate = self.get(rate_id)
        if price_per_night is not None:
            _validate_rate(rate.month, rate.year, price_per_night)
            rate.price_per_night = price_per_night
        if is_active is not None:
            rate.is_active = is_active
        self.db.commit()
        self.db.refresh(rate)
        return rate

    def delete(self, rate_id: str) -> None:
        rate = self.get(rate_id)
        self.db.delete(rate)
        self.db.commit()

    def copy_from_year(
        self,
        from_year: int,
        to_year: int,
        apartment_type: Optional[str] = None
    ) -> Dict[str, int]:
        """
        Copy every active rate of from_year into to_year.

        Existing target rows for the same tuple are overwritten and
        reactivated. Returns {"created": n, "updated": m}.
        """
        if from_year == to_year:
            raise InvalidRequestError("from_year and to_year must differ")

        source_rates = [r for r in self.list(year=from_year, apartment_type=apartment_type) if r.is_active]
        if not source_rates:
            raise NotFoundError("SeasonalRate", f"year {from_year}")

        created = 0
        updated = 0
        for source in source_rates:
            target = self.db.query(SeasonalRate).filter(
                SeasonalRate.apartment_type_id == source.apartment_type_id,
                SeasonalRate.month == source.month,
                SeasonalRate.year == to_year
            ).first()
            if target:
                target.price_per_night = source.price_per_night
                target.is_active = True
                updated += 1
            else:
                self.db.add(SeasonalRate(
                    apartment_type_id=source.apartment_type_id,
                    month=source.month,
                    year=to_year,
                    price_per_night=source.price_per_night,
                    is_active=True
                ))
                created += 1

        self.db.commit()
        logger.info(f"Copied seasonal rates {from_year} -> {to_year}: {created} created, {updated} updated")
        return {"created": created, "updated": updated}

    def _find(self, apartment: ApartmentType, month: int, year: int) -> Optional[SeasonalRate]:
        return self.db.query(SeasonalRate).filter(
            SeasonalRate.apartment_type_id == apartment.id,
            SeasonalRate.month == month,
            SeasonalRate.year == year
        ).first()
