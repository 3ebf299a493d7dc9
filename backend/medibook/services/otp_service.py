"""
One-time codes for the password reset handshake:
request (email) -> verify (email, code) -> reset (email, new password).
"""
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from medibook.config import get_settings
from medibook.exceptions import (
    InvalidOtp,
    OtpExpired,
    OtpNotVerified,
    UpstreamFailure,
    UserNotFound,
)
from medibook.models.user import User
from medibook.services.password_service import hash_password

logger = logging.getLogger(__name__)


def generate_otp() -> str:
    """Random 4-digit numeric code."""
    return str(secrets.randbelow(9000) + 1000)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def _get_user_by_email(db: AsyncSession, email: str) -> User:
    user = await db.scalar(select(User).where(User.email == email))
    if not user:
        raise UserNotFound()
    return user


async def request_otp(db: AsyncSession, email: str, mailer, now: Optional[datetime] = None) -> User:
    """
    Issue a fresh code for the account and email it.

    The code is committed before delivery is attempted, so a delivery failure
    leaves the code stored and surfaces as UpstreamFailure.
    """
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    user = await _get_user_by_email(db, email)

    otp = generate_otp()
    user.otp = otp
    user.otp_expire = now + timedelta(minutes=settings.otp_expire_minutes)
    await db.commit()
    logger.info(f"Password reset code issued for user {user.id}")

    result = await run_in_threadpool(
        mailer.send_password_reset_otp, email, otp, settings.otp_expire_minutes
    )
    if not result.get("success"):
        raise UpstreamFailure()
    return user


async def verify_otp(db: AsyncSession, email: str, code: str, now: Optional[datetime] = None) -> User:
    now = now or datetime.now(timezone.utc)
    user = await _get_user_by_email(db, email)

    if user.otp is None or user.otp_expire is None:
        raise InvalidOtp()
    if _as_utc(user.otp_expire) < now:
        raise OtpExpired()
    submitted = str(code).strip()
    if not submitted.isascii() or not hmac.compare_digest(user.otp.encode(), submitted.encode()):
        raise InvalidOtp()

    user.otp_verified = True
    user.otp = None
    user.otp_expire = None
    await db.flush()
    logger.info(f"Password reset code verified for user {user.id}")
    return user


async def reset_password(db: AsyncSession, email: str, new_password: str) -> User:
    """Consume a verified code: store the new password and revoke every issued token."""
    user = await _get_user_by_email(db, email)
    if not user.otp_verified:
        raise OtpNotVerified()

    user.password = hash_password(new_password)
    user.token_version = user.token_version + 1
    user.otp_verified = False
    await db.flush()
    await db.refresh(user)
    logger.info(f"Password reset for user {user.id}")
    return user
