"""Booking router - FastAPI endpoints for bookings and their lifecycle"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_admin
from ...database import get_db
from ...services.notification_service import NotificationQueue, get_notification_queue
from ..payments.schemas import PaymentResponse
from .lifecycle import BookingStatus
from .schemas import BookingCreate, BookingResponse, BookingUpdate, CancelRequest, StatusUpdate
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(
    db: Session = Depends(get_db),
    notifier: NotificationQueue = Depends(get_notification_queue),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, notifier)


@router.post("", status_code=201)
async def create_booking(
    data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Create a booking and reserve its time slot (public)"""
    booking = service.create_booking(data)
    return {
        "success": True,
        "message": "Booking created successfully",
        "booking": BookingResponse.from_model(booking),
    }


@router.get("")
async def list_bookings(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[BookingStatus] = Query(None),
    admin: Actor = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    """Get bookings ordered by event date (admin)"""
    result = service.list_bookings(page=page, limit=limit, status=status.value if status else None)
    return {
        "success": True,
        "bookings": [BookingResponse.from_model(b) for b in result["items"]],
        "pagination": result["pagination"],
    }


@router.get("/{booking_id}")
async def get_booking(
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
):
    """Get a specific booking"""
    booking = service.get_booking(booking_id)
    return {"success": True, "booking": BookingResponse.from_model(booking)}


@router.get("/{booking_id}/payment-details")
async def get_payment_details(
    booking_id: str,
    admin: Actor = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    """Get amounts paid and outstanding for a booking (admin)"""
    details = service.get_payment_details(booking_id)
    details["payments"] = [PaymentResponse.from_model(p) for p in details["payments"]]
    return {"success": True, "paymentDetails": details}


@router.patch("/{booking_id}")
async def update_booking(
    booking_id: str,
    data: BookingUpdate,
    admin: Actor = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    """Edit booking details; date or time changes move the reserved slot (admin)"""
    booking = service.update_booking(booking_id, data, actor=admin)
    return {
        "success": True,
        "message": "Booking updated successfully",
        "booking": BookingResponse.from_model(booking),
    }


@router.patch("/{booking_id}/status")
async def update_booking_status(
    booking_id: str,
    data: StatusUpdate,
    admin: Actor = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    """Change booking status along the lifecycle (admin)"""
    booking = service.update_status(
        booking_id,
        data.status.value,
        actor=admin,
        note=data.note,
        override=data.override,
    )
    return {
        "success": True,
        "message": f"Booking status updated to {booking.status}",
        "booking": BookingResponse.from_model(booking),
    }


@router.patch("/{booking_id}/cancel")
async def cancel_booking(
    booking_id: str,
    data: CancelRequest,
    admin: Actor = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    """Cancel a booking and release its slot (admin)"""
    booking = service.cancel_booking(booking_id, data.reason, actor=admin)
    return {
        "success": True,
        "message": "Booking cancelled successfully",
        "booking": BookingResponse.from_model(booking),
    }
