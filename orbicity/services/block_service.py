"""
Blocked-Range Administration

Manual blocks for maintenance, owner stays and the like. Blocks may stack
and overlap existing bookings; they only prevent new bookings. Channel
blocks are visible here but can only be removed by their integration's
sync pass.
"""

import logging
from datetime import date
from typing import List, Optional
from sqlalchemy.orm import Session

from ..models.blocked_range import BlockedRange, MANUAL_SOURCE
from ..errors import NotFoundError, OwnershipError, InvalidRequestError
from .apartment_service import ApartmentService

logger = logging.getLogger(__name__)


class BlockService:

    def __init__(self, db: Session):
        self.db = db
        self.apartments = ApartmentService(db)

    def add_manual_block(
        self,
        apartment_type: str,
        start: date,
        end: date,
        reason: Optional[str] = None
    ) -> BlockedRange:
        apartment = self.apartments.get_by_slug(apartment_type)
        if end <= start:
            raise InvalidRequestError("end must be after start")

        block = BlockedRange(
            apartment_type_id=apartment.id,
            start_date=start,
            end_date=end,
            source=MANUAL_SOURCE,
            reason=reason
        )
        self.db.add(block)
        self.db.commit()
        self.db.refresh(block)

        logger.info(f"Manual block {block.id} added for {apartment.slug}: {start} -> {end}")
        return block

    def delete_manual_block(self, block_id: str) -> None:
        block = self.db.query(BlockedRange).filter(BlockedRange.id == block_id).first()
        if not block:
            raise NotFoundError("BlockedRange", block_id)
        if not block.is_manual:
            raise OwnershipError(
                f"Block {block_id} is owned by the {block.source} calendar sync and cannot be deleted manually"
            )

        self.db.delete(block)
        self.db.commit()
        logger.info(f"Manual block {block_id} deleted")

    def list(
        self,
        apartment_type: Optional[str] = None,
        source: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> List[BlockedRange]:
        query = self.db.query(BlockedRange)
        if apartment_type:
            apartment = self.apartments.get_by_slug(apartment_type)
            query = query.filter(BlockedRange.apartment_type_id == apartment.id)
        if source:
            query = query.filter(BlockedRange.source == source)
        if start:
            query = query.filter(BlockedRange.end_date > start)
        if end:
            query = query.filter(BlockedRange.start_date < end)
        return query.order_by(BlockedRange.start_date).all()
