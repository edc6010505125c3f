"""
Integration Administration

CRUD for channel iCal feeds plus the conflict register staff work
through after a sync lands a channel block on top of a direct booking.
"""

import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from ..models.channel_integration import ChannelIntegration, SyncConflict, ChannelName, ConflictStatus
from ..models.blocked_range import BlockedRange, MANUAL_SOURCE
from ..errors import NotFoundError, InvalidRequestError
from .apartment_service import ApartmentService

logger = logging.getLogger(__name__)

CHANNEL_NAMES = {c.value for c in ChannelName}


def _validate_channel_name(channel_name: str):
    if channel_name == MANUAL_SOURCE:
        raise InvalidRequestError("'manual' is reserved for staff-entered blocks")
    if channel_name not in CHANNEL_NAMES:
        raise InvalidRequestError(
            f"Unknown channel '{channel_name}'. Expected one of: {', '.join(sorted(CHANNEL_NAMES))}"
        )


def _validate_url(ical_url: Optional[str]):
    if ical_url and not ical_url.lower().startswith(("http://", "https://")):
        raise InvalidRequestError("ical_url must be an http(s) URL")


class IntegrationService:

    def __init__(self, db: Session):
        self.db = db
        self.apartments = ApartmentService(db)

    def get(self, integration_id: str) -> ChannelIntegration:
        integration = self.db.query(ChannelIntegration).filter(
            ChannelIntegration.id == integration_id
        ).first()
        if not integration:
            raise NotFoundError("ChannelIntegration", integration_id)
        return integration

    def list(self, apartment_type: Optional[str] = None) -> List[ChannelIntegration]:
        query = self.db.query(ChannelIntegration)
        if apartment_type:
            apartment = self.apartments.get_by_slug(apartment_type)
            query = query.filter(ChannelIntegration.apartment_type_id == apartment.id)
        return query.order_by(ChannelIntegration.created_at).all()

    def create(
        self,
        channel_name: str,
        apartment_type: str,
        ical_url: Optional[str] = None,
        is_active: bool = True
    ) -> ChannelIntegration:
        apartment = self.apartments.get_by_slug(apartment_type)
        _validate_channel_name(channel_name)
        _validate_url(ical_url)

        integration = ChannelIntegration(
            channel_name=channel_name,
            apartment_type_id=apartment.id,
            ical_url=ical_url,
            is_active=is_active
        )
        self.db.add(integration)
        self.db.commit()
        self.db.refresh(integration)

        logger.info(f"Created {channel_name} integration {integration.id} for {apartment.slug}")
        return integration

    def update(
        self,
        integration_id: str,
        ical_url: Optional[str] = None,
        is_active: Optional[bool] = None,
        channel_name: Optional[str] = None
    ) -> ChannelIntegration:
        """The apartment type is fixed: owned blocks are tied to it"""
        integration = self.get(integration_id)

        if channel_name is not None and channel_name != integration.channel_name:
            _validate_channel_name(channel_name)
            integration.channel_name = channel_name
            # Imported blocks carry the channel name as their source
            self.db.query(BlockedRange).filter(
                BlockedRange.integration_id == integration.id
            ).update({BlockedRange.source: channel_name}, synchronize_session="fetch")
        if ical_url is not None:
            _validate_url(ical_url)
            integration.ical_url = ical_url or None
        if is_active is not None:
            integration.is_active = is_active

        self.db.commit()
        self.db.refresh(integration)
        return integration

    def delete(self, integration_id: str) -> None:
        """Removes the integration together with every block it imported"""
        integration = self.get(integration_id)
        block_count = len(integration.blocked_ranges)
        self.db.delete(integration)
        self.db.commit()
        logger.info(f"Deleted integration {integration_id} and {block_count} imported blocks")

    def list_conflicts(
        self,
        status: Optional[str] = ConflictStatus.OPEN.value,
        integration_id: Optional[str] = None
    ) -> List[SyncConflict]:
        query = self.db.query(SyncConflict)
        if status:
            query = query.filter(SyncConflict.status == status)
        if integration_id:
            query = query.filter(SyncConflict.integration_id == integration_id)
        return query.order_by(SyncConflict.overlap_start).all()

    def resolve_conflict(self, conflict_id: str, notes: Optional[str] = None) -> SyncConflict:
        conflict = self.db.query(SyncConflict).filter(SyncConflict.id == conflict_id).first()
        if not conflict:
            raise NotFoundError("SyncConflict", conflict_id)
        if conflict.status == ConflictStatus.RESOLVED.value:
            raise InvalidRequestError("Conflict is already resolved")

        conflict.status = ConflictStatus.RESOLVED.value
        conflict.resolution_notes = notes
        conflict.resolved_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(conflict)
        return conflict
