from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from ..database import get_db
from ..errors import EngineError
from ..schemas.apartment import ApartmentTypeCreate, ApartmentTypeUpdate, ApartmentTypeResponse
from ..services.apartment_service import ApartmentService
from ..utils.http_errors import to_http_exception

router = APIRouter(prefix="/api/apartments", tags=["Apartments"])


@router.get("/", response_model=List[ApartmentTypeResponse])
def list_apartment_types(include_inactive: bool = False, db: Session = Depends(get_db)):
    return ApartmentService(db).list(include_inactive=include_inactive)


@router.get("/{slug}", response_model=ApartmentTypeResponse)
def get_apartment_type(slug: str, db: Session = Depends(get_db)):
    try:
        return ApartmentService(db).get_by_slug(slug)
    except EngineError as e:
        raise to_http_exception(e)


@router.post("/", response_model=ApartmentTypeResponse, status_code=status.HTTP_201_CREATED)
def create_apartment_type(data: ApartmentTypeCreate, db: Session = Depends(get_db)):
    try:
        return ApartmentService(db).create(**data.model_dump())
    except EngineError as e:
        raise to_http_exception(e)


@router.put("/{slug}", response_model=ApartmentTypeResponse)
def update_apartment_type(slug: str, data: ApartmentTypeUpdate, db: Session = Depends(get_db)):
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    try:
        return ApartmentService(db).update(slug, **changes)
    except EngineError as e:
        raise to_http_exception(e)


@router.post("/{slug}/deactivate", response_model=ApartmentTypeResponse)
def deactivate_apartment_type(slug: str, db: Session = Depends(get_db)):
    """Stops new bookings; existing bookings are unaffected"""
    try:
        return ApartmentService(db).deactivate(slug)
    except EngineError as e:
        raise to_http_exception(e)
