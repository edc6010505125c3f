"""
Channel Integrations API

iCal feed configuration, manual sync trigger and the conflict register.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import EngineError
from ..models.channel_integration import ConflictStatus
from ..schemas.integration import (
    IntegrationCreate, IntegrationUpdate, IntegrationResponse,
    SyncResultResponse, SyncConflictResponse, ConflictResolve
)
from ..services.channel_sync import ChannelSyncEngine
from ..services.integration_service import IntegrationService
from ..utils.http_errors import to_http_exception

router = APIRouter(prefix="/api/integrations", tags=["Channel Integrations"])


@router.get("/", response_model=List[IntegrationResponse])
def list_integrations(apartment_type: Optional[str] = None, db: Session = Depends(get_db)):
    try:
        return IntegrationService(db).list(apartment_type=apartment_type)
    except EngineError as e:
        raise to_http_exception(e)


@router.post("/", response_model=IntegrationResponse, status_code=status.HTTP_201_CREATED)
def create_integration(data: IntegrationCreate, db: Session = Depends(get_db)):
    try:
        return IntegrationService(db).create(
            channel_name=data.channel_name.value,
            apartment_type=data.apartment_type,
            ical_url=data.ical_url,
            is_active=data.is_active
        )
    except EngineError as e:
        raise to_http_exception(e)


# Conflict routes are declared before /{integration_id} so "conflicts" is not read as an id

@router.get("/conflicts", response_model=List[SyncConflictResponse])
def list_conflicts(
    conflict_status: Optional[ConflictStatus] = ConflictStatus.OPEN,
    integration_id: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return IntegrationService(db).list_conflicts(
        status=conflict_status.value if conflict_status else None,
        integration_id=integration_id
    )


@router.post("/conflicts/{conflict_id}/resolve", response_model=SyncConflictResponse)
def resolve_conflict(conflict_id: str, data: Optional[ConflictResolve] = None, db: Session = Depends(get_db)):
    try:
        return IntegrationService(db).resolve_conflict(conflict_id, notes=data.notes if data else None)
    except EngineError as e:
        raise to_http_exception(e)


@router.get("/{integration_id}", response_model=IntegrationResponse)
def get_integration(integration_id: str, db: Session = Depends(get_db)):
    try:
        return IntegrationService(db).get(integration_id)
    except EngineError as e:
        raise to_http_exception(e)


@router.put("/{integration_id}", response_model=IntegrationResponse)
def update_integration(integration_id: str, data: IntegrationUpdate, db: Session = Depends(get_db)):
    try:
        return IntegrationService(db).update(
            integration_id,
            ical_url=data.ical_url,
            is_active=data.is_active,
            channel_name=data.channel_name.value if data.channel_name else None
        )
    except EngineError as e:
        raise to_http_exception(e)


@router.delete("/{integration_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_integration(integration_id: str, db: Session = Depends(get_db)):
    """Also removes every block the integration imported"""
    try:
        IntegrationService(db).delete(integration_id)
    except EngineError as e:
        raise to_http_exception(e)


@router.post("/{integration_id}/sync", response_model=SyncResultResponse)
def trigger_sync(integration_id: str, db: Session = Depends(get_db)):
    """
    Fetch the channel calendar now and reconcile its blocks.

    502 when the feed cannot be fetched, 422 when it is not a calendar,
    409 when a sync for the same integration is already running. In the
    error cases the existing blocks are left as they were.
    """
    try:
        with ChannelSyncEngine(db) as engine:
            result = engine.sync(integration_id)
    except EngineError as e:
        raise to_http_exception(e)
    return result.to_dict()
