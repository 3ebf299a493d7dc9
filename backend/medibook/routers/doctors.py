import logging

from fastapi import APIRouter, Depends
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.auth import UserPrincipal, require_admin
from medibook.database import get_db
from medibook.exceptions import Conflict, DoctorNotFound, NotFound, ValidationError
from medibook.models.booking import Booking
from medibook.models.doctor import Doctor
from medibook.schemas.doctor import DoctorCreate, DoctorListResponse, DoctorResponse, DoctorUpdate
from medibook.services.password_service import hash_password

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_doctor(db: AsyncSession, doctor_id: int) -> Doctor:
    doctor = await db.get(Doctor, doctor_id)
    if not doctor:
        raise DoctorNotFound()
    return doctor


@router.get("", response_model=DoctorListResponse)
async def list_doctors(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Doctor).order_by(Doctor.id))
    doctors = result.scalars().all()
    return DoctorListResponse(
        count=len(doctors),
        doctors=[DoctorResponse.model_validate(d) for d in doctors],
    )


@router.post("", status_code=201)
async def create_doctor(
    data: DoctorCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_admin),
):
    existing = await db.scalar(select(Doctor).where(Doctor.email == data.email))
    if existing:
        raise Conflict("Doctor with this email already exists")

    payload = data.model_dump(exclude={"password"})
    doctor = Doctor(user_id=current_user.id, password=hash_password(data.password), **payload)
    db.add(doctor)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise Conflict("Doctor with this email already exists") from e
    await db.refresh(doctor)
    logger.info(f"Admin {current_user.id} added doctor {doctor.id}")
    return {"message": "Doctor added successfully", "doctor": DoctorResponse.model_validate(doctor)}


@router.get("/search/{specialty}", response_model=DoctorListResponse)
async def search_doctors(specialty: str, db: AsyncSession = Depends(get_db)):
    """Case-insensitive substring match on specialization."""
    specialty = specialty.strip()
    if not specialty:
        raise ValidationError("Invalid specialty parameter")

    result = await db.execute(
        select(Doctor).where(Doctor.specialization.ilike(f"%{specialty}%")).order_by(Doctor.id)
    )
    doctors = result.scalars().all()
    if not doctors:
        raise NotFound("No doctors found with this specialty")
    return DoctorListResponse(
        count=len(doctors),
        doctors=[DoctorResponse.model_validate(d) for d in doctors],
    )


@router.get("/{doctor_id}", response_model=DoctorResponse)
async def get_doctor(doctor_id: int, db: AsyncSession = Depends(get_db)):
    doctor = await _get_doctor(db, doctor_id)
    return DoctorResponse.model_validate(doctor)


@router.put("/{doctor_id}")
async def update_doctor(
    doctor_id: int,
    data: DoctorUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_admin),
):
    doctor = await _get_doctor(db, doctor_id)

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in update_data.items():
        setattr(doctor, key, value)

    await db.flush()
    await db.refresh(doctor)
    return {"message": "Doctor updated successfully", "doctor": DoctorResponse.model_validate(doctor)}


@router.delete("/{doctor_id}")
async def delete_doctor(
    doctor_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_admin),
):
    doctor = await _get_doctor(db, doctor_id)
    await db.execute(delete(Booking).where(Booking.doctor_id == doctor_id))
    await db.delete(doctor)
    await db.flush()
    logger.info(f"Admin {current_user.id} deleted doctor {doctor_id}")
    return {"message": "Doctor deleted successfully"}
