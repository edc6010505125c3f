from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from ..database import get_db
from ..errors import EngineError
from ..schemas.block import BlockedRangeCreate, BlockedRangeResponse
from ..services.block_service import BlockService
from ..utils.http_errors import to_http_exception

router = APIRouter(prefix="/api/blocks", tags=["Blocked Dates"])


@router.get("/", response_model=List[BlockedRangeResponse])
def list_blocks(
    apartment_type: Optional[str] = None,
    source: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db)
):
    try:
        return BlockService(db).list(apartment_type=apartment_type, source=source, start=start, end=end)
    except EngineError as e:
        raise to_http_exception(e)


@router.post("/", response_model=BlockedRangeResponse, status_code=status.HTTP_201_CREATED)
def create_block(data: BlockedRangeCreate, db: Session = Depends(get_db)):
    try:
        return BlockService(db).add_manual_block(
            data.apartment_type, data.start_date, data.end_date, reason=data.reason
        )
    except EngineError as e:
        raise to_http_exception(e)


@router.delete("/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_block(block_id: str, db: Session = Depends(get_db)):
    """Manual blocks only; channel blocks go away with the next sync"""
    try:
        BlockService(db).delete_manual_block(block_id)
    except EngineError as e:
        raise to_http_exception(e)
