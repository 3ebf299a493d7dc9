"""
Auth module: JWT creation/validation and the access-control FastAPI dependencies.

Tokens embed the user's token_version. Every password change bumps the stored
counter, so any token carrying an older value is rejected as stale.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.config import get_settings
from medibook.database import get_db
from medibook.exceptions import Forbidden, InvalidToken, StaleToken, Unauthenticated, UserNotFound
from medibook.models.user import User

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


@dataclass
class UserPrincipal:
    """Resolved identity attached to each request."""
    id: int
    is_admin: bool
    token_version: int

    def is_self(self, resource_owner_id: int) -> bool:
        return self.id == resource_owner_id

    def is_self_or_admin(self, resource_owner_id: int) -> bool:
        return self.is_admin or self.is_self(resource_owner_id)


def create_token(user, expires_in: Optional[int] = None) -> str:
    """Create a signed JWT for the given User model instance."""
    settings = get_settings()
    if expires_in is None:
        expires_in = settings.jwt_expire_days * SECONDS_PER_DAY
    payload = {
        "sub": str(user.id),
        "is_admin": bool(user.is_admin),
        "token_version": user.token_version,
        "exp": int(time.time()) + expires_in,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> UserPrincipal:
    """Decode and validate a JWT. Raises InvalidToken on a bad signature, expiry or payload."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        return UserPrincipal(
            id=int(payload["sub"]),
            is_admin=bool(payload.get("is_admin", False)),
            token_version=int(payload["token_version"]),
        )
    except (JWTError, KeyError, TypeError, ValueError) as e:
        raise InvalidToken() from e


async def verify_token(db: AsyncSession, token: str) -> tuple[UserPrincipal, User]:
    """Decode the token and check it against the stored revocation counter."""
    principal = decode_token(token)
    user = await db.get(User, principal.id)
    if not user:
        raise UserNotFound()
    if user.token_version != principal.token_version:
        raise StaleToken()
    return principal, user


async def get_current_account(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    """
    FastAPI dependency. Extracts the JWT from the Authorization header and
    returns the stored User it belongs to.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise Unauthenticated()
    token = auth_header[7:].strip()
    try:
        principal, user = await verify_token(db, token)
    except UserNotFound as e:
        raise Unauthenticated("User not found") from e
    except Unauthenticated as e:
        logger.info(f"Rejected token on {request.url.path}: {e.message}")
        raise
    request.state.principal = principal
    return user


async def get_current_user(
    request: Request, account: User = Depends(get_current_account)
) -> UserPrincipal:
    """Claims of the verified token for the current request."""
    return request.state.principal


async def require_admin(current_user: UserPrincipal = Depends(get_current_user)) -> UserPrincipal:
    if not current_user.is_admin:
        raise Forbidden("Access denied. Admin only.")
    return current_user


async def require_self(id: int, current_user: UserPrincipal = Depends(get_current_user)) -> UserPrincipal:
    if not current_user.is_self(id):
        raise Forbidden("Access denied. User mismatch.")
    return current_user


async def require_self_or_admin(
    id: int, current_user: UserPrincipal = Depends(get_current_user)
) -> UserPrincipal:
    if not current_user.is_self_or_admin(id):
        raise Forbidden("Access denied. Admin or user mismatch.")
    return current_user
