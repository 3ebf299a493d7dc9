from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.auth import UserPrincipal, get_current_user, require_admin, require_self_or_admin
from medibook.database import get_db
from medibook.schemas.booking import (
    AvailabilityResponse,
    BookedSlot,
    BookingCreatedResponse,
    BookingDetail,
    BookingListResponse,
    BookingResponse,
    BookingStatusUpdate,
    BookingUpdatedResponse,
    BookSlotRequest,
)
from medibook.services import booking_service

router = APIRouter()


@router.get("/available/{doctor_id}", response_model=AvailabilityResponse)
async def get_doctor_availability(
    doctor_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    slots = await booking_service.get_availability(db, doctor_id)
    return AvailabilityResponse(available_slots=slots)


@router.get("/admin", response_model=BookingListResponse)
async def list_all_bookings(
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_admin),
):
    bookings = await booking_service.list_bookings(db)
    return BookingListResponse(bookings=[BookingDetail.model_validate(b) for b in bookings])


@router.get("/user/{id}", response_model=BookingListResponse)
async def list_user_bookings(
    id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_self_or_admin),
):
    bookings = await booking_service.list_user_bookings(db, id)
    return BookingListResponse(bookings=[BookingDetail.model_validate(b) for b in bookings])


@router.get("/doctor/{doctor_id}", response_model=BookingListResponse)
async def list_doctor_bookings(
    doctor_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    bookings = await booking_service.list_doctor_bookings(db, doctor_id)
    return BookingListResponse(bookings=[BookingDetail.model_validate(b) for b in bookings])


@router.post("/{doctor_id}", response_model=BookingCreatedResponse)
async def book_doctor_slot(
    doctor_id: int,
    data: BookSlotRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    booking = await booking_service.book_slot(db, doctor_id, data.day, data.time, current_user.id)
    return BookingCreatedResponse(
        message="Booking successful",
        booked_slot=BookedSlot(day=data.day, time=data.time),
        booking=BookingResponse.model_validate(booking),
    )


@router.put("/{id}", response_model=BookingUpdatedResponse)
async def update_booking_status(
    id: int,
    data: BookingStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_admin),
):
    booking = await booking_service.update_status(db, id, data.status, data.payment_status)
    return BookingUpdatedResponse(
        message="Booking updated successfully",
        booking=BookingResponse.model_validate(booking),
    )
