from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional


class DaySchedule(BaseModel):
    day: str = Field(min_length=1)
    hours: list[str]


class DoctorCreate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    specialization: str = Field(min_length=1)
    experience: int = Field(ge=0)
    qualifications: list[str]
    availability: list[DaySchedule]
    fee: float = Field(ge=0)
    addresses: list[str] = []

    class Config:
        str_strip_whitespace = True


class DoctorUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    specialization: Optional[str] = Field(default=None, min_length=1)
    experience: Optional[int] = Field(default=None, ge=0)
    qualifications: Optional[list[str]] = None
    availability: Optional[list[DaySchedule]] = None
    fee: Optional[float] = Field(default=None, ge=0)
    addresses: Optional[list[str]] = None

    class Config:
        str_strip_whitespace = True


class DoctorResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    name: str
    email: str
    specialization: str
    experience: int
    qualifications: list[str] = []
    availability: list[DaySchedule] = []
    fee: float
    addresses: list[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DoctorListResponse(BaseModel):
    count: int
    doctors: list[DoctorResponse]
