from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal


class ApartmentTypeCreate(BaseModel):
    slug: str = Field(..., min_length=1, max_length=50, pattern=r"^[a-z0-9][a-z0-9-]*$")
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=5000)
    base_price: Decimal = Field(..., ge=0, description="Nightly price when no seasonal rate applies")
    max_guests: int = Field(2, ge=1, le=50)
    size_sqm: Optional[int] = Field(None, ge=1)
    display_order: int = 0


class ApartmentTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=5000)
    base_price: Optional[Decimal] = Field(None, ge=0)
    max_guests: Optional[int] = Field(None, ge=1, le=50)
    size_sqm: Optional[int] = Field(None, ge=1)
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


class ApartmentTypeResponse(BaseModel):
    id: str
    slug: str
    name: str
    description: Optional[str] = None
    base_price: Decimal
    max_guests: int
    size_sqm: Optional[int] = None
    display_order: int = 0
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
