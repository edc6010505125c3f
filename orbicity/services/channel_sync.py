"""
Channel Sync Engine

Pulls one integration's iCal feed and reconciles the blocked ranges it
owns:

1. Fetch the feed (bounded by CHANNEL_FETCH_TIMEOUT_SECONDS, no lock held)
2. Parse events; malformed ones are skipped, a non-calendar body fails
3. Keep events ending today or later
4. Diff against the integration's rows by UID: delete missing, insert new,
   update moved dates in place
5. Stamp last_synced_at / clear last_sync_error

A failed fetch or parse records the error on the integration and leaves
every blocked range untouched. Manual blocks and other integrations'
blocks are never read for the diff.
"""

import time
from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Union

import httpx
from sqlalchemy.orm import Session

from ..config import settings
from ..models.blocked_range import BlockedRange
from ..models.booking import Booking
from ..models.channel_integration import ChannelIntegration, SyncConflict
from ..models.notification import NotificationEventType
from ..errors import NotFoundError, SyncError, FetchError, SyncInProgressError
from ..utils.db_helpers import apartment_write_lock, InFlightRegistry
from ..utils.logging_config import get_logger
from .availability import AvailabilityResolver
from .ical_parser import ICalEvent, parse_calendar
from .notification_service import NotificationService

logger = get_logger(__name__)

ACCEPT_HEADER = "text/calendar, application/ics, text/plain"

_sync_registry = InFlightRegistry()


@dataclass
class SyncResult:
    integration_id: str
    added: int = 0
    removed: int = 0
    updated: int = 0
    future_event_count: int = 0
    events_found: int = 0
    skipped: int = 0
    conflicts: int = 0

    def to_dict(self) -> Dict:
        return asdict(self)


def build_http_client(timeout: Optional[float] = None) -> httpx.Client:
    return httpx.Client(
        timeout=timeout or settings.channel_fetch_timeout_seconds,
        headers={
            "User-Agent": settings.channel_user_agent,
            "Accept": ACCEPT_HEADER,
        },
        follow_redirects=True
    )


class ChannelSyncEngine:
    """
    Usage:
        with ChannelSyncEngine(db) as engine:
            result = engine.sync(integration_id)
    """

    def __init__(
        self,
        db: Session,
        http_client: Optional[httpx.Client] = None,
        registry: Optional[InFlightRegistry] = None,
        today: Optional[Callable[[], date]] = None
    ):
        self.db = db
        self._owns_client = http_client is None
        self.client = http_client or build_http_client()
        self.registry = registry or _sync_registry
        self.today = today or date.today
        self.availability = AvailabilityResolver(db)
        self.notifications = NotificationService(db)

    def close(self):
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def sync(self, integration_id: str) -> SyncResult:
        """
        Run one sync pass for an integration.

        Raises:
            NotFoundError: unknown integration
            SyncInProgressError: a pass for this integration is running
            FetchError / ParseError: recorded on the integration, nothing changed
        """
        integration = self._get_integration(integration_id)

        if not self.registry.try_acquire(integration.id):
            raise SyncInProgressError(integration.id)

        started = time.monotonic()
        try:
            try:
                body = self._fetch(integration)
                parsed = parse_calendar(body)
            except SyncError as e:
                self._record_failure(integration, e.message)
                logger.sync_failed(integration.id, e.message, _elapsed_ms(started))
                raise

            today = self.today()
            future_events = [event for event in parsed.events if event.end >= today]

            result = SyncResult(
                integration_id=integration.id,
                future_event_count=len(future_events),
                events_found=parsed.events_found,
                skipped=parsed.skipped
            )

            with apartment_write_lock(self.db, integration.apartment_type_id):
                self._reconcile(integration, future_events, result)
                integration.last_synced_at = datetime.utcnow()
                integration.last_sync_error = None
                self.db.commit()

            logger.sync_completed(
                integration.id, result.added, result.removed, result.updated, _elapsed_ms(started)
            )
            return result
        finally:
            self.registry.release(integration.id)

    def sync_all_active(self) -> Dict[str, Union[SyncResult, str]]:
        """
        Sync every active integration. One failing feed does not stop the
        others; its error message is returned in place of a result.
        """
        integrations = self.db.query(ChannelIntegration).filter(
            ChannelIntegration.is_active == True
        ).order_by(ChannelIntegration.created_at).all()

        outcomes: Dict[str, Union[SyncResult, str]] = {}
        for integration in integrations:
            try:
                outcomes[integration.id] = self.sync(integration.id)
            except (SyncError, SyncInProgressError) as e:
                outcomes[integration.id] = e.message
        return outcomes

    def _get_integration(self, integration_id: str) -> ChannelIntegration:
        integration = self.db.query(ChannelIntegration).filter(
            ChannelIntegration.id == integration_id
        ).first()
        if not integration:
            raise NotFoundError("ChannelIntegration", integration_id)
        return integration

    def _fetch(self, integration: ChannelIntegration) -> str:
        if not integration.ical_url:
            raise FetchError("No iCal URL configured")

        try:
            response = self.client.get(integration.ical_url)
        except httpx.TimeoutException:
            raise FetchError(f"Timed out fetching calendar from {integration.channel_label}")
        except httpx.HTTPError as e:
            raise FetchError(f"Could not fetch calendar from {integration.channel_label}: {e}")

        if not response.is_success:
            raise FetchError(
                f"{integration.channel_label} calendar returned HTTP {response.status_code}",
                status_code=response.status_code
            )
        return response.text

    def _record_failure(self, integration: ChannelIntegration, message: str):
        self.db.rollback()
        integration.last_sync_error = message
        self.db.commit()

    def _reconcile(self, integration: ChannelIntegration, events: List[ICalEvent], result: SyncResult):
        owned = self.db.query(BlockedRange).filter(
            BlockedRange.integration_id == integration.id
        ).all()
        by_uid = {row.external_id: row for row in owned}
        future_uids = {event.uid for event in events}

        for row in owned:
            if row.external_id not in future_uids:
                self.db.delete(row)
                result.removed += 1

        touched = []
        for event in events:
            row = by_uid.get(event.uid)
            if row is None:
                row = BlockedRange(
                    apartment_type_id=integration.apartment_type_id,
                    start_date=event.start,
                    end_date=event.end,
                    source=integration.channel_name,
                    reason=event.summary or f"{integration.channel_label} reservation",
                    external_id=event.uid,
                    integration_id=integration.id
                )
                self.db.add(row)
                touched.append(row)
                result.added += 1
            else:
                if row.source != integration.channel_name:
                    row.source = integration.channel_name
                if row.start_date != event.start or row.end_date != event.end:
                    row.start_date = event.start
                    row.end_date = event.end
                    touched.append(row)
                    result.updated += 1

        self.db.flush()

        for row in touched:
            result.conflicts += self._record_conflicts(integration, row)

    def _record_conflicts(self, integration: ChannelIntegration, block: BlockedRange) -> int:
        """
        The block is kept and so is the booking; staff decide. Each
        (block, booking) pair is registered once.
        """
        conflicts = self.availability.find_conflicts(
            integration.apartment_type_id, block.start_date, block.end_date
        )
        recorded = 0
        for booking in conflicts.bookings:
            exists = self.db.query(SyncConflict).filter(
                SyncConflict.blocked_range_id == block.id,
                SyncConflict.booking_id == booking.id
            ).first()
            if exists:
                continue

            conflict = SyncConflict(
                integration_id=integration.id,
                blocked_range_id=block.id,
                booking_id=booking.id,
                apartment_type_id=integration.apartment_type_id,
                overlap_start=max(block.start_date, booking.check_in_date),
                overlap_end=min(block.end_date, booking.check_out_date)
            )
            self.db.add(conflict)
            self.db.flush()
            self._notify_conflict(integration, block, booking, conflict)
            recorded += 1

            logger.warning(
                f"{integration.channel_label} block {block.external_id} overlaps booking {booking.id} "
                f"({conflict.overlap_start} -> {conflict.overlap_end})"
            )
        return recorded

    def _notify_conflict(
        self,
        integration: ChannelIntegration,
        block: BlockedRange,
        booking: Booking,
        conflict: SyncConflict
    ):
        self.notifications.enqueue(
            NotificationEventType.SYNC_CONFLICT,
            {
                "conflict_id": conflict.id,
                "integration_id": integration.id,
                "channel": integration.channel_name,
                "external_id": block.external_id,
                "booking_id": booking.id,
                "guest_name": booking.guest_name,
                "overlap_start": conflict.overlap_start.isoformat(),
                "overlap_end": conflict.overlap_end.isoformat(),
            },
            booking_id=booking.id
        )


def _elapsed_ms(started: float) -> float:
    return round((time.monotonic() - started) * 1000, 1)


def sync_integration(db: Session, integration_id: str) -> SyncResult:
    """Convenience wrapper for one-off syncs"""
    with ChannelSyncEngine(db) as engine:
        return engine.sync(integration_id)


def sync_all_active(db: Session) -> Dict[str, Union[SyncResult, str]]:
    with ChannelSyncEngine(db) as engine:
        return engine.sync_all_active()
