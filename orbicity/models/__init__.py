# Models package
from .apartment_type import ApartmentType
from .pricing import SeasonalRate
from .booking import Booking, BookingStatus, PaymentStatus, OCCUPYING_STATUSES
from .blocked_range import BlockedRange, MANUAL_SOURCE
from .channel_integration import (
    ChannelIntegration,
    SyncConflict,
    ChannelName,
    ConflictStatus,
    CHANNEL_LABELS
)
from .notification import NotificationOutbox, NotificationEventType, NotificationStatus

__all__ = [
    "ApartmentType",
    "SeasonalRate",
    "Booking", "BookingStatus", "PaymentStatus", "OCCUPYING_STATUSES",
    "BlockedRange", "MANUAL_SOURCE",
    "ChannelIntegration", "SyncConflict", "ChannelName", "ConflictStatus", "CHANNEL_LABELS",
    "NotificationOutbox", "NotificationEventType", "NotificationStatus",
]
