from typing import Union

from pydantic import BaseModel, EmailStr, Field, field_validator

from medibook.schemas.user import ProfilePhoto


class RegisterRequest(BaseModel):
    username: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8)
    confirm_password: str

    class Config:
        str_strip_whitespace = True


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)


class LoginResponse(BaseModel):
    id: int
    is_admin: bool
    profile_photo: ProfilePhoto
    token: str
    token_type: str = "bearer"


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class VerifyOtpRequest(BaseModel):
    email: EmailStr
    otp: Union[int, str]

    @field_validator("otp")
    @classmethod
    def normalise_otp(cls, v: Union[int, str]) -> str:
        # Clients send the code either as a JSON number or as a string
        code = str(v).strip()
        if not code:
            raise ValueError("OTP is required")
        return code


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    new_password: str = Field(min_length=8)


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8)
    confirm_password: str = Field(min_length=1)


class MessageResponse(BaseModel):
    message: str
