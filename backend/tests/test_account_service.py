from unittest.mock import AsyncMock

import pytest

from medibook.exceptions import Conflict
from medibook.schemas.auth import RegisterRequest
from medibook.schemas.user import UserUpdate
from medibook.services import account_service

REGISTER = RegisterRequest(
    username="alice", email="a@x.com", password="password123", confirm_password="password123"
)


@pytest.mark.asyncio
async def test_unique_index_violation_on_register_is_conflict(db_session, make_user):
    await make_user(email="a@x.com")
    # A concurrent request inserted the row after our lookup ran
    db_session.scalar = AsyncMock(return_value=None)

    with pytest.raises(Conflict) as exc_info:
        await account_service.register_user(db_session, REGISTER)
    assert exc_info.value.message == "User already registered"


@pytest.mark.asyncio
async def test_unique_index_violation_on_email_change_is_conflict(db_session, make_user):
    user = await make_user(email="u@x.com")
    await make_user(email="taken@x.com")
    db_session.scalar = AsyncMock(return_value=None)

    with pytest.raises(Conflict) as exc_info:
        await account_service.update_user(db_session, user.id, UserUpdate(email="taken@x.com"))
    assert exc_info.value.message == "Email is already in use"
