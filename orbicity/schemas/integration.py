"""
Integration Schemas

Request/response models for channel iCal feeds, sync runs and the conflict
register.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from ..models.channel_integration import ChannelName


class IntegrationCreate(BaseModel):
    channel_name: ChannelName
    apartment_type: str = Field(..., min_length=1, max_length=50)
    ical_url: Optional[str] = Field(None, max_length=1000)
    is_active: bool = True

    @field_validator('ical_url')
    @classmethod
    def validate_url(cls, v):
        if v and not v.lower().startswith(('http://', 'https://')):
            raise ValueError('ical_url must be an http(s) URL')
        return v


class IntegrationUpdate(BaseModel):
    channel_name: Optional[ChannelName] = None
    ical_url: Optional[str] = Field(None, max_length=1000)
    is_active: Optional[bool] = None

    @field_validator('ical_url')
    @classmethod
    def validate_url(cls, v):
        if v and not v.lower().startswith(('http://', 'https://')):
            raise ValueError('ical_url must be an http(s) URL')
        return v


class IntegrationResponse(BaseModel):
    id: str
    channel_name: str
    channel_label: str
    apartment_type_id: str
    ical_url: Optional[str] = None
    is_active: bool
    last_synced_at: Optional[datetime] = None
    last_sync_error: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SyncResultResponse(BaseModel):
    integration_id: str
    added: int
    removed: int
    updated: int
    future_event_count: int
    events_found: int
    skipped: int
    conflicts: int


class SyncConflictResponse(BaseModel):
    id: str
    integration_id: str
    blocked_range_id: str
    booking_id: str
    apartment_type_id: str
    overlap_start: date
    overlap_end: date
    status: str
    resolution_notes: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ConflictResolve(BaseModel):
    notes: Optional[str] = Field(None, max_length=2000)
