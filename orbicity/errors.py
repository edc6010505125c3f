"""
Engine Errors

Business outcomes raised by the services and translated to HTTP responses
in one place by the routers:

- ConflictError: requested interval is not available
- NotFoundError: referenced booking / integration / block / rate does not exist
- OwnershipError: channel-owned block deleted through the manual path
- DuplicateSeasonalRateError: (apartment type, month, year) already has an active rate
- InvalidRequestError: input that fails validation (dates, capacity, state transition)
- SyncInProgressError: a sync for the same integration is already running
- SyncError / FetchError / ParseError: channel calendar could not be retrieved or read
"""

from typing import Optional


class EngineError(Exception):
    """Base class for every error raised by the availability & rate engine"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConflictError(EngineError):
    """The requested interval overlaps an occupying booking or a blocked range"""

    def __init__(
        self,
        message: str,
        booking_ids: Optional[list] = None,
        blocked_range_ids: Optional[list] = None
    ):
        super().__init__(message)
        self.booking_ids = booking_ids or []
        self.blocked_range_ids = blocked_range_ids or []


class NotFoundError(EngineError):
    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class OwnershipError(EngineError):
    """Only the owning integration's sync pass may remove a channel block"""


class DuplicateSeasonalRateError(EngineError):
    def __init__(self, apartment_type: str, month: int, year: int):
        super().__init__(
            f"Seasonal rate already exists for {apartment_type} {year}-{month:02d}; "
            f"edit or delete it first"
        )
        self.apartment_type = apartment_type
        self.month = month
        self.year = year


class InvalidRequestError(EngineError):
    pass


class SyncInProgressError(EngineError):
    def __init__(self, integration_id: str):
        super().__init__(f"Sync already in progress for integration {integration_id}")
        self.integration_id = integration_id


class SyncError(EngineError):
    """Channel sync could not complete; recorded on the integration"""


class FetchError(SyncError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(SyncError):
    pass
