"""
Pricing Schemas

Pydantic models for pricing API requests and responses.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, model_validator


class SeasonalRateCreate(BaseModel):
    """One nightly price override for an apartment type and calendar month"""
    apartment_type: str = Field(..., min_length=1, max_length=50)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)
    price_per_night: Decimal = Field(..., ge=0)
    is_active: bool = True


class SeasonalRateUpdate(BaseModel):
    price_per_night: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None


class SeasonalRateResponse(BaseModel):
    id: str
    apartment_type_id: str
    month: int
    year: int
    price_per_night: Decimal
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SeasonalRateCopy(BaseModel):
    """Bulk copy of a year's rates; existing target rows are overwritten"""
    from_year: int = Field(..., ge=2000, le=2100)
    to_year: int = Field(..., ge=2000, le=2100)
    apartment_type: Optional[str] = None

    @model_validator(mode='after')
    def validate_years(self):
        if self.from_year == self.to_year:
            raise ValueError('from_year and to_year must differ')
        return self


class SeasonalRateCopyResponse(BaseModel):
    created: int
    updated: int


class NightlyRateResponse(BaseModel):
    apartment_type: str
    date: date
    price: Decimal
    currency: str


class DailyPriceResponse(BaseModel):
    """Schema for a single night's price"""
    date: date
    price: Decimal
    is_seasonal: bool

    class Config:
        from_attributes = True


class PriceCalendarResponse(BaseModel):
    """Per-night prices for a date range"""
    apartment_type: str
    start_date: date
    end_date: date
    currency: str
    days: List[DailyPriceResponse]
    total: Decimal
