"""Account lifecycle: registration, login, password changes and profile edits."""
import logging

from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from medibook.config import get_settings
from medibook.exceptions import Conflict, InvalidCredentials, UpstreamFailure, UserNotFound, ValidationError
from medibook.models.booking import Booking
from medibook.models.user import User
from medibook.schemas.auth import RegisterRequest
from medibook.schemas.user import UserUpdate
from medibook.services.password_service import hash_password, verify_password

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise UserNotFound()
    return user


async def register_user(db: AsyncSession, data: RegisterRequest) -> User:
    if data.password != data.confirm_password:
        raise ValidationError("Passwords do not match")

    existing = await db.scalar(select(User).where(User.email == data.email))
    if existing:
        raise Conflict("User already registered")

    user = User(
        username=data.username,
        email=data.email,
        password=hash_password(data.password),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise Conflict("User already registered") from e
    await db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    user = await db.scalar(select(User).where(User.email == email))
    if not user or not verify_password(password, user.password):
        raise InvalidCredentials()
    return user


async def change_password(
    db: AsyncSession, user: User, old_password: str, new_password: str, confirm_password: str
) -> User:
    if new_password != confirm_password:
        raise ValidationError("New password and confirm password do not match")
    if not verify_password(old_password, user.password):
        raise ValidationError("Old password is incorrect")

    user.password = hash_password(new_password)
    user.token_version = user.token_version + 1
    await db.flush()
    await db.refresh(user)
    logger.info(f"Password changed for user {user.id}; issued tokens revoked")
    return user


async def list_users(db: AsyncSession) -> tuple[list[User], int]:
    result = await db.execute(select(User).order_by(User.id))
    users = result.scalars().all()
    total = await db.scalar(select(func.count()).select_from(User)) or 0
    return list(users), total


async def update_user(db: AsyncSession, user_id: int, data: UserUpdate) -> User:
    user = await get_user(db, user_id)

    if data.email and data.email != user.email:
        taken = await db.scalar(select(User).where(User.email == data.email, User.id != user_id))
        if taken:
            raise Conflict("Email is already in use")
        user.email = data.email
    if data.username:
        user.username = data.username

    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise Conflict("Email is already in use") from e
    await db.refresh(user)
    return user


async def delete_user(db: AsyncSession, user_id: int) -> None:
    user = await get_user(db, user_id)
    await db.execute(delete(Booking).where(Booking.user_id == user_id))
    await db.delete(user)
    await db.flush()
    logger.info(f"Deleted user {user_id}")


async def set_profile_photo(
    db: AsyncSession, user: User, content: bytes, filename: str, content_type: str, storage
) -> User:
    """Upload a new photo, then drop the previously hosted one if there was one."""
    uploaded = await run_in_threadpool(storage.upload_image, content, filename, content_type)

    previous = user.profile_photo_public_id
    if previous:
        try:
            await run_in_threadpool(storage.remove_image, previous)
        except UpstreamFailure:
            await run_in_threadpool(storage.remove_image, uploaded["public_id"])
            raise

    user.profile_photo_url = uploaded["url"]
    user.profile_photo_public_id = uploaded["public_id"]
    await db.flush()
    await db.refresh(user)
    return user


async def remove_profile_photo(db: AsyncSession, user: User, storage) -> User:
    if not user.profile_photo_public_id:
        raise ValidationError("No photo available to remove.")

    await run_in_threadpool(storage.remove_image, user.profile_photo_public_id)

    user.profile_photo_url = get_settings().default_profile_photo_url
    user.profile_photo_public_id = None
    await db.flush()
    await db.refresh(user)
    return user
