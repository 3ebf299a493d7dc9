from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional


class ProfilePhoto(BaseModel):
    url: str
    public_id: Optional[str] = None


class UserSummary(BaseModel):
    id: int
    username: str
    email: str
    profile_photo: ProfilePhoto

    class Config:
        from_attributes = True


class UserProfile(UserSummary):
    is_admin: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserListResponse(BaseModel):
    success: bool = True
    total_users: int
    users: list[UserSummary]


class UserUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None

    class Config:
        str_strip_whitespace = True


class PhotoResponse(BaseModel):
    message: str
    profile_photo: ProfilePhoto
