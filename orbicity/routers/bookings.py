from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from ..database import get_db
from ..errors import EngineError
from ..models.booking import BookingStatus, PaymentStatus
from ..schemas.booking import (
    QuoteRequest, QuoteResponse, NightlyPriceResponse,
    BookingCreate, BookingResponse, BookingReschedule, BookingCancel,
    NewBookingStatus
)
from ..services.booking_service import BookingService
from ..utils.http_errors import to_http_exception
from ..utils.rate_limiter import limiter, get_rate_limit

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


@router.post("/quote", response_model=QuoteResponse)
@limiter.limit(get_rate_limit("quote"))
def quote_booking(request: Request, data: QuoteRequest, db: Session = Depends(get_db)):
    """Price breakdown and availability for a prospective stay"""
    try:
        quote = BookingService(db).quote(
            data.apartment_type, data.check_in_date, data.check_out_date, guests=data.guests
        )
    except EngineError as e:
        raise to_http_exception(e)

    return QuoteResponse(
        apartment_type=quote.apartment_type,
        check_in_date=quote.check_in,
        check_out_date=quote.check_out,
        available=quote.available,
        nights=quote.num_nights,
        nightly_breakdown=[NightlyPriceResponse.model_validate(n) for n in quote.nights],
        total=quote.total,
        currency=quote.currency
    )


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(get_rate_limit("booking_create"))
def create_booking(request: Request, data: BookingCreate, db: Session = Depends(get_db)):
    """
    Book a stay. status=pending is the pay-later path and holds the dates
    just like a confirmed booking.
    """
    is_pending = data.status == NewBookingStatus.PENDING
    try:
        return BookingService(db).confirm_booking(
            apartment_type=data.apartment_type,
            check_in=data.check_in_date,
            check_out=data.check_out_date,
            guest_name=data.guest_name,
            guest_email=data.guest_email,
            guest_phone=data.guest_phone,
            guests=data.guests,
            notes=data.notes,
            status=BookingStatus.PENDING if is_pending else BookingStatus.CONFIRMED,
            payment_status=PaymentStatus.PAY_LATER if is_pending else PaymentStatus.UNPAID
        )
    except EngineError as e:
        raise to_http_exception(e)


@router.get("/", response_model=List[BookingResponse])
def list_bookings(
    apartment_type: Optional[str] = None,
    status: Optional[BookingStatus] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db)
):
    try:
        return BookingService(db).list(
            apartment_type=apartment_type,
            status=status.value if status else None,
            start=start,
            end=end
        )
    except EngineError as e:
        raise to_http_exception(e)


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(booking_id: str, db: Session = Depends(get_db)):
    try:
        return BookingService(db).get(booking_id)
    except EngineError as e:
        raise to_http_exception(e)


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
def confirm_pending_booking(booking_id: str, db: Session = Depends(get_db)):
    try:
        return BookingService(db).confirm_pending(booking_id)
    except EngineError as e:
        raise to_http_exception(e)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(booking_id: str, data: Optional[BookingCancel] = None, db: Session = Depends(get_db)):
    try:
        return BookingService(db).cancel_booking(booking_id, reason=data.reason if data else None)
    except EngineError as e:
        raise to_http_exception(e)


@router.post("/{booking_id}/reschedule", response_model=BookingResponse)
def reschedule_booking(booking_id: str, data: BookingReschedule, db: Session = Depends(get_db)):
    """Move a booking to a new check-in date keeping its number of nights"""
    try:
        return BookingService(db).reschedule(
            booking_id, data.new_check_in_date, keep_price=data.keep_price
        )
    except EngineError as e:
        raise to_http_exception(e)
