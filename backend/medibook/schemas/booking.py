from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class BookSlotRequest(BaseModel):
    day: str = Field(min_length=1)
    time: str = Field(min_length=1)


class BookingStatusUpdate(BaseModel):
    status: str = Field(min_length=1)
    payment_status: str = Field(min_length=1)


class BookedSlot(BaseModel):
    day: str
    time: str


class BookingResponse(BaseModel):
    id: int
    doctor_id: int
    user_id: int
    day: str
    time: str
    status: str
    payment_status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingCreatedResponse(BaseModel):
    message: str
    booked_slot: BookedSlot = Field(serialization_alias="bookedSlot")
    booking: BookingResponse


class BookingUpdatedResponse(BaseModel):
    message: str
    booking: BookingResponse


class BookingUser(BaseModel):
    id: int
    username: str
    email: str

    class Config:
        from_attributes = True


class BookingDoctor(BaseModel):
    id: int
    name: str
    specialization: str

    class Config:
        from_attributes = True


class BookingDetail(BookingResponse):
    user: Optional[BookingUser] = None
    doctor: Optional[BookingDoctor] = None


class BookingListResponse(BaseModel):
    bookings: list[BookingDetail]


class AvailableSlot(BaseModel):
    day: str
    times: list[str]


class AvailabilityResponse(BaseModel):
    available_slots: list[AvailableSlot]
