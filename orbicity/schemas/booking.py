from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
import re


class NewBookingStatus(str, Enum):
    """Status a booking may be created with"""
    CONFIRMED = "confirmed"
    PENDING = "pending"  # pay later, still holds the dates


def _strip_markup(v):
    if v is None or not isinstance(v, str):
        return v
    v = re.sub(r'<script[^>]*>.*?</script>', '', v, flags=re.IGNORECASE | re.DOTALL)
    v = re.sub(r'on\w+\s*=', '', v, flags=re.IGNORECASE)
    return v.strip()


class QuoteRequest(BaseModel):
    apartment_type: str = Field(..., min_length=1, max_length=50)
    check_in_date: date
    check_out_date: date
    guests: Optional[int] = Field(None, ge=1)

    @model_validator(mode='after')
    def validate_dates(self):
        if self.check_out_date <= self.check_in_date:
            raise ValueError('check_out_date must be after check_in_date')
        return self


class NightlyPriceResponse(BaseModel):
    date: date
    price: Decimal
    is_seasonal: bool

    class Config:
        from_attributes = True


class QuoteResponse(BaseModel):
    apartment_type: str
    check_in_date: date
    check_out_date: date
    available: bool
    nights: int
    nightly_breakdown: List[NightlyPriceResponse]
    total: Decimal
    currency: str


class BookingCreate(BaseModel):
    apartment_type: str = Field(..., min_length=1, max_length=50)
    check_in_date: date
    check_out_date: date
    guest_name: str = Field(..., min_length=1, max_length=100, description="Guest full name")
    guest_email: Optional[str] = Field(None, max_length=255)
    guest_phone: Optional[str] = Field(None, max_length=30)
    guests: int = Field(1, ge=1)
    notes: Optional[str] = Field(None, max_length=2000)
    status: NewBookingStatus = NewBookingStatus.CONFIRMED

    @field_validator('guest_name', 'notes', mode='before')
    @classmethod
    def sanitize_text_fields(cls, v):
        return _strip_markup(v)

    @field_validator('guest_email')
    @classmethod
    def validate_email(cls, v):
        if v and not re.match(r'^[^@\s]+@[^@\s]+\.[^@\s]+$', v):
            raise ValueError('guest_email is not a valid email address')
        return v

    @model_validator(mode='after')
    def validate_dates(self):
        """validate that check_out_date is after check_in_date"""
        if self.check_out_date <= self.check_in_date:
            raise ValueError('check_out_date must be after check_in_date')
        return self


class BookingReschedule(BaseModel):
    new_check_in_date: date
    keep_price: bool = False


class BookingCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)

    @field_validator('reason', mode='before')
    @classmethod
    def sanitize_reason(cls, v):
        return _strip_markup(v)


class BookingResponse(BaseModel):
    id: str
    apartment_type_id: str
    apartment_slug: Optional[str] = None
    guest_name: str
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    guests: int
    check_in_date: date
    check_out_date: date
    nights: int
    total_price: Decimal
    status: str
    payment_status: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: Optional[datetime] = None

    class Config:
        from_attributes = True
