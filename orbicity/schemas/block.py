from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime, date


class BlockedRangeCreate(BaseModel):
    apartment_type: str = Field(..., min_length=1, max_length=50)
    start_date: date
    end_date: date  # exclusive
    reason: Optional[str] = Field(None, max_length=500)

    @model_validator(mode='after')
    def validate_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError('end_date must be after start_date')
        return self


class BlockedRangeResponse(BaseModel):
    id: str
    apartment_type_id: str
    apartment_slug: Optional[str] = None
    start_date: date
    end_date: date
    source: str
    reason: Optional[str] = None
    external_id: Optional[str] = None
    integration_id: Optional[str] = None
    is_manual: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AvailabilityResponse(BaseModel):
    apartment_type: str
    start_date: date
    end_date: date
    available: bool
    conflicting_booking_ids: List[str] = []
    conflicting_block_ids: List[str] = []


class CalendarDayResponse(BaseModel):
    date: date
    available: bool
    booking_id: Optional[str] = None
    blocked_range_ids: List[str] = []

    class Config:
        from_attributes = True
