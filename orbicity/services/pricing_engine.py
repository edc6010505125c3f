"""
Rate Resolver

Computes nightly prices for apartment types:
1. An active seasonal rate for (apartment type, month, year) wins
2. Otherwise the apartment type's base price

A stay is priced night by night over the half-open [check_in, check_out)
interval, so a stay crossing a month boundary picks up each month's rate.
"""

from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Dict, Tuple
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ..models.apartment_type import ApartmentType
from ..models.pricing import SeasonalRate

CENTS = Decimal("0.01")


@dataclass
class NightlyPrice:
    """Computed price for a single night"""
    date: date
    price: Decimal
    is_seasonal: bool


@dataclass
class StayPrice:
    """Per-night breakdown and total for a stay"""
    apartment_type: str
    check_in: date
    check_out: date
    nights: List[NightlyPrice]
    total: Decimal

    @property
    def num_nights(self) -> int:
        return len(self.nights)


def iter_nights(start: date, end: date):
    """Yield every night in [start, end)"""
    current = start
    while current < end:
        yield current
        current += timedelta(days=1)


def _months_between(start: date, end: date) -> List[Tuple[int, int]]:
    """(year, month) pairs touched by the nights of [start, end)"""
    months = []
    for night in iter_nights(start, end):
        key = (night.year, night.month)
        if key not in months:
            months.append(key)
    return months


class RateResolver:
    """
    Pure read-side pricing. No side effects; every apartment type has a
    base price so price() always returns a value.
    """

    def __init__(self, db: Session):
        self.db = db

    def _seasonal_rates(self, apartment: ApartmentType, months: List[Tuple[int, int]]) -> Dict[Tuple[int, int], Decimal]:
        if not months:
            return {}
        years = {y for y, _ in months}
        rows = self.db.query(SeasonalRate).filter(
            SeasonalRate.apartment_type_id == apartment.id,
            SeasonalRate.is_active == True,
            SeasonalRate.year.in_(years)
        ).all()
        wanted = set(months)
        return {
            (row.year, row.month): Decimal(str(row.price_per_night))
            for row in rows
            if (row.year, row.month) in wanted
        }

    def price(self, apartment: ApartmentType, night: date) -> Decimal:
        """Nightly rate for one date"""
        rates = self._seasonal_rates(apartment, [(night.year, night.month)])
        seasonal = rates.get((night.year, night.month))
        if seasonal is not None:
            return seasonal.quantize(CENTS, rounding=ROUND_HALF_UP)
        return Decimal(str(apartment.base_price)).quantize(CENTS, rounding=ROUND_HALF_UP)

    def price_calendar(self, apartment: ApartmentType, check_in: date, check_out: date) -> StayPrice:
        """
        Price a stay night by night.

        Seasonal rows are loaded once for all months the stay touches.
        """
        rates = self._seasonal_rates(apartment, _months_between(check_in, check_out))
        base = Decimal(str(apartment.base_price)).quantize(CENTS, rounding=ROUND_HALF_UP)

        nights = []
        total = Decimal("0")
        for night in iter_nights(check_in, check_out):
            seasonal = rates.get((night.year, night.month))
            if seasonal is not None:
                nightly = NightlyPrice(night, seasonal.quantize(CENTS, rounding=ROUND_HALF_UP), True)
            else:
                nightly = NightlyPrice(night, base, False)
            nights.append(nightly)
            total += nightly.price

        return StayPrice(
            apartment_type=apartment.slug,
            check_in=check_in,
            check_out=check_out,
            nights=nights,
            total=total.quantize(CENTS, rounding=ROUND_HALF_UP)
        )


def get_rate_resolver(db: Session) -> RateResolver:
    """Factory function to get a rate resolver instance"""
    return RateResolver(db)
