"""
Availability ledger and slot booking.

A doctor's availability is a list of {"day": str, "hours": [str]} entries.
Claiming a slot removes the hour from its day, and a day whose hours run out
is dropped from the list entirely. The ledger update and the new booking are
written in one flush, guarded by the doctor's version counter, so two callers
racing for the same doctor cannot both succeed.
"""
import copy
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from medibook.exceptions import (
    BookingNotFound,
    DayUnavailable,
    DoctorNotFound,
    NotFound,
    SlotTaken,
    ValidationError,
)
from medibook.models.booking import Booking
from medibook.models.doctor import Doctor

logger = logging.getLogger(__name__)


def find_day(availability: list[dict], day: str) -> Optional[dict]:
    for entry in availability or []:
        if entry.get("day") == day:
            return entry
    return None


def claim_slot(availability: list[dict], day: str, time: str) -> list[dict]:
    """Return a new availability list with `time` removed from `day`. The input is left untouched."""
    entry = find_day(availability, day)
    if entry is None:
        raise DayUnavailable()
    if time not in entry.get("hours", []):
        raise SlotTaken()

    updated = []
    for schedule in availability:
        if schedule.get("day") != day:
            updated.append(copy.deepcopy(schedule))
            continue
        hours = [hour for hour in schedule.get("hours", []) if hour != time]
        if hours:
            updated.append({**copy.deepcopy(schedule), "hours": hours})
    return updated


async def get_doctor(db: AsyncSession, doctor_id: int) -> Doctor:
    doctor = await db.get(Doctor, doctor_id)
    if not doctor:
        raise DoctorNotFound()
    return doctor


async def get_availability(db: AsyncSession, doctor_id: int) -> list[dict]:
    doctor = await get_doctor(db, doctor_id)
    return [
        {"day": schedule["day"], "times": list(schedule.get("hours", []))}
        for schedule in doctor.availability or []
    ]


async def book_slot(db: AsyncSession, doctor_id: int, day: str, time: str, user_id: int) -> Booking:
    if not day or not time:
        raise ValidationError("Day and time are required")

    doctor = await get_doctor(db, doctor_id)
    doctor.availability = claim_slot(doctor.availability or [], day, time)

    booking = Booking(
        doctor_id=doctor.id,
        user_id=user_id,
        day=day,
        time=time,
        status="pending",
        payment_status="unpaid",
    )
    db.add(booking)
    try:
        await db.flush()
    except StaleDataError as e:
        # Another booking changed this doctor's ledger after we read it
        await db.rollback()
        logger.warning(f"Lost slot race for doctor {doctor_id} on {day} {time}")
        raise SlotTaken() from e

    await db.refresh(booking)
    logger.info(f"User {user_id} booked doctor {doctor_id} on {day} at {time} (booking {booking.id})")
    return booking


async def update_status(db: AsyncSession, booking_id: int, status: str, payment_status: str) -> Booking:
    if not status or not payment_status:
        raise ValidationError("Status and payment status are required.")

    booking = await db.get(Booking, booking_id)
    if not booking:
        raise BookingNotFound()

    booking.status = status
    booking.payment_status = payment_status
    await db.flush()
    await db.refresh(booking)
    return booking


def _with_parties(query):
    return query.options(selectinload(Booking.user), selectinload(Booking.doctor)).order_by(Booking.id)


async def list_bookings(db: AsyncSession) -> list[Booking]:
    result = await db.execute(_with_parties(select(Booking)))
    bookings = result.scalars().all()
    if not bookings:
        raise NotFound("No bookings found.")
    return list(bookings)


async def list_user_bookings(db: AsyncSession, user_id: int) -> list[Booking]:
    result = await db.execute(_with_parties(select(Booking).where(Booking.user_id == user_id)))
    bookings = result.scalars().all()
    if not bookings:
        raise NotFound("No bookings found for this user.")
    return list(bookings)


async def list_doctor_bookings(db: AsyncSession, doctor_id: int) -> list[Booking]:
    result = await db.execute(_with_parties(select(Booking).where(Booking.doctor_id == doctor_id)))
    bookings = result.scalars().all()
    if not bookings:
        raise NotFound("No bookings found for this doctor.")
    return list(bookings)
