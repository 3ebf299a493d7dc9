from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.auth import create_token, get_current_account
from medibook.database import get_db
from medibook.models.user import User
from medibook.rate_limiter import limit_login_attempts
from medibook.schemas.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyOtpRequest,
)
from medibook.services import account_service, otp_service
from medibook.services.email_service import EmailService, get_email_service

router = APIRouter()


@router.post("/register", response_model=MessageResponse, status_code=201)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    await account_service.register_user(db, data)
    return MessageResponse(message="User registered successfully")


@router.post("/login", response_model=LoginResponse, dependencies=[Depends(limit_login_attempts)])
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Exchange email + password for a bearer token."""
    user = await account_service.authenticate(db, data.email, data.password)
    return LoginResponse(
        id=user.id,
        is_admin=user.is_admin,
        profile_photo=user.profile_photo,
        token=create_token(user),
    )


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    mailer: EmailService = Depends(get_email_service),
):
    await otp_service.request_otp(db, data.email, mailer)
    return MessageResponse(message="OTP sent to your email")


@router.post("/verify-otp", response_model=MessageResponse)
async def verify_otp(data: VerifyOtpRequest, db: AsyncSession = Depends(get_db)):
    await otp_service.verify_otp(db, data.email, data.otp)
    return MessageResponse(message="OTP verified, proceed to reset password")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(data: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    await otp_service.reset_password(db, data.email, data.new_password)
    return MessageResponse(message="Password reset successfully")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
    account: User = Depends(get_current_account),
):
    await account_service.change_password(
        db, account, data.old_password, data.new_password, data.confirm_password
    )
    return MessageResponse(message="Password updated successfully")
