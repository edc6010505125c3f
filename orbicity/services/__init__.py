# Services package
from .pricing_engine import RateResolver, get_rate_resolver, NightlyPrice, StayPrice, iter_nights
from .availability import AvailabilityResolver, AvailabilityConflicts, CalendarDay, ranges_overlap
from .apartment_service import ApartmentService
from .booking_service import BookingService, Quote, validate_stay_dates
from .block_service import BlockService
from .seasonal_rate_service import SeasonalRateService
from .notification_service import NotificationService
from .integration_service import IntegrationService
from .ical_parser import ICalEvent, ParsedCalendar, parse_calendar
from .channel_sync import ChannelSyncEngine, SyncResult, sync_integration, sync_all_active

__all__ = [
    "RateResolver", "get_rate_resolver", "NightlyPrice", "StayPrice", "iter_nights",
    "AvailabilityResolver", "AvailabilityConflicts", "CalendarDay", "ranges_overlap",
    "ApartmentService",
    "BookingService", "Quote", "validate_stay_dates",
    "BlockService",
    "SeasonalRateService",
    "NotificationService",
    "IntegrationService",
    "ICalEvent", "ParsedCalendar", "parse_calendar",
    "ChannelSyncEngine", "SyncResult", "sync_integration", "sync_all_active",
]
