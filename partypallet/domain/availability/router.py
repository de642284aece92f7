"""Availability router - FastAPI endpoints for day records and slots"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_admin
from ...database import get_db
from .schemas import AvailabilityResponse, BlockSlotRequest, SetAvailabilityRequest
from .service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/availability", tags=["Availability"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


@router.get("")
async def get_availability(
    date: Optional[str] = Query(None, description="Single day, YYYY-MM-DD"),
    start: Optional[str] = Query(None, description="Range start, YYYY-MM-DD"),
    end: Optional[str] = Query(None, description="Range end, YYYY-MM-DD"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Get availability for a date, a date range, or all dates"""
    days = service.get_availability(day=date, start=start, end=end)
    return {
        "success": True,
        "availability": [AvailabilityResponse.from_model(d) for d in days],
    }


@router.post("")
async def set_availability(
    data: SetAvailabilityRequest,
    admin: Actor = Depends(get_current_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Create or update a day's availability (admin)"""
    logger.info(f"📥 {admin.id} setting availability for {data.date}")
    availability = service.set_availability(data)
    return {"success": True, "availability": AvailabilityResponse.from_model(availability)}


@router.post("/block")
async def block_slot(
    data: BlockSlotRequest,
    admin: Actor = Depends(get_current_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Block a time range on a day (admin)"""
    logger.info(f"📥 {admin.id} blocking {data.date} {data.start}-{data.end}")
    availability = service.block_slot(data)
    return {"success": True, "availability": AvailabilityResponse.from_model(availability)}


@router.delete("/{date}")
async def delete_availability(
    date: str,
    admin: Actor = Depends(get_current_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Delete a day's availability record (admin)"""
    logger.info(f"📥 {admin.id} deleting availability for {date}")
    service.delete_availability(date)
    return {"success": True, "message": "Availability deleted"}
