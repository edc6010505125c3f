"""
Apartment Type Service

Create, edit and deactivate apartment types. Types are referenced by
bookings, blocks, rates and integrations, so they are never deleted.
"""

import logging
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from ..models.apartment_type import ApartmentType
from ..errors import NotFoundError, InvalidRequestError

logger = logging.getLogger(__name__)


class ApartmentService:

    def __init__(self, db: Session):
        self.db = db

    def get_by_slug(self, slug: str) -> ApartmentType:
        apartment = self.db.query(ApartmentType).filter(ApartmentType.slug == slug).first()
        if not apartment:
            raise NotFoundError("ApartmentType", slug)
        return apartment

    def list(self, include_inactive: bool = False) -> List[ApartmentType]:
        query = self.db.query(ApartmentType)
        if not include_inactive:
            query = query.filter(ApartmentType.is_active == True)
        return query.order_by(ApartmentType.display_order, ApartmentType.slug).all()

    def create(
        self,
        slug: str,
        name: str,
        base_price: Decimal,
        max_guests: int = 2,
        description: Optional[str] = None,
        size_sqm: Optional[int] = None,
        display_order: int = 0
    ) -> ApartmentType:
        if base_price is None or Decimal(str(base_price)) < 0:
            raise InvalidRequestError("base_price must be zero or greater")
        if max_guests < 1:
            raise InvalidRequestError("max_guests must be at least 1")

        apartment = ApartmentType(
            slug=slug,
            name=name,
            base_price=base_price,
            max_guests=max_guests,
            description=description,
            size_sqm=size_sqm,
            display_order=display_order,
            is_active=True
        )
        self.db.add(apartment)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise InvalidRequestError(f"Apartment type '{slug}' already exists")
        self.db.refresh(apartment)

        logger.info(f"Created apartment type {slug} (base {base_price})")
        return apartment

    def update(self, slug: str, **changes) -> ApartmentType:
        apartment = self.get_by_slug(slug)

        if "base_price" in changes and changes["base_price"] is not None:
            if Decimal(str(changes["base_price"])) < 0:
                raise InvalidRequestError("base_price must be zero or greater")
        if "max_guests" in changes and changes["max_guests"] is not None:
            if changes["max_guests"] < 1:
                raise InvalidRequestError("max_guests must be at least 1")

        for key, value in changes.items():
            if value is not None and hasattr(apartment, key) and key not in ("id", "slug"):
                setattr(apartment, key, value)

        self.db.commit()
        self.db.refresh(apartment)
        return apartment

    def deactivate(self, slug: str) -> ApartmentType:
        """Soft-deactivate: no new bookings, existing ones stay valid"""
        apartment = self.get_by_slug(slug)
        apartment.is_active = False
        self.db.commit()
        self.db.refresh(apartment)

        logger.info(f"Deactivated apartment type {slug}")
        return apartment
