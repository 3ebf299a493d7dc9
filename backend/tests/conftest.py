"""
Shared pytest fixtures: a throwaway SQLite database per test, the FastAPI app
wired to it, and fakes for the mail and image hosts.
"""

import os

# Settings are read at import time, so the environment has to be ready first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("S3_PUBLIC_BASE_URL", "https://images.medibook.io")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from medibook.auth import create_token
from medibook.database import Base, get_db
from medibook.exceptions import UpstreamFailure
from medibook.main import create_app
from medibook.models import Booking, Doctor, User  # noqa: F401
from medibook.services.email_service import get_email_service
from medibook.services.image_service import get_image_storage
from medibook.services.password_service import hash_password

DEFAULT_PASSWORD = "password123"


class FakeMailer:
    """Records outgoing reset codes instead of talking to SMTP."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent = []

    def send_password_reset_otp(self, to_email: str, otp: str, expire_minutes: int) -> dict:
        self.sent.append({"to": to_email, "otp": otp, "expire_minutes": expire_minutes})
        if not self.succeed:
            return {"success": False, "error": "SMTP unavailable", "to": to_email}
        return {"success": True, "message": f"Email sent to {to_email}", "to": to_email}

    @property
    def last_otp(self) -> str:
        return self.sent[-1]["otp"]


class FakeImageStorage:
    """In-memory stand-in for the image host."""

    def __init__(self):
        self.objects = {}
        self.removed = []
        self.fail_uploads = False
        self.unremovable = set()
        self._counter = 0

    def upload_image(self, content: bytes, filename: str, content_type=None) -> dict:
        if self.fail_uploads:
            raise UpstreamFailure("Image upload failed!")
        self._counter += 1
        public_id = f"profile-photos/{self._counter}-{filename}"
        self.objects[public_id] = content
        return {"url": f"https://images.medibook.io/{public_id}", "public_id": public_id}

    def remove_image(self, public_id: str) -> None:
        if public_id in self.unremovable:
            raise UpstreamFailure("Image removal failed!")
        self.removed.append(public_id)
        self.objects.pop(public_id, None)


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite so separate sessions get separate connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'medibook.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def storage():
    return FakeImageStorage()


@pytest.fixture
def app(session_factory, mailer, storage):
    application = create_app()

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_email_service] = lambda: mailer
    application.dependency_overrides[get_image_storage] = lambda: storage
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(session_factory):
    """Insert a user directly and return it."""

    async def _make_user(email="patient@clinic.com", username="patient", password=DEFAULT_PASSWORD, is_admin=False):
        async with session_factory() as session:
            user = User(username=username, email=email, password=hash_password(password), is_admin=is_admin)
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make_user


@pytest.fixture
def make_doctor(session_factory):
    async def _make_doctor(
        email="house@clinic.com",
        availability=None,
        specialization="Cardiology",
        owner_id=None,
        name="Dr. House",
    ):
        async with session_factory() as session:
            doctor = Doctor(
                user_id=owner_id,
                name=name,
                email=email,
                password=hash_password("doctorpass"),
                specialization=specialization,
                experience=10,
                qualifications=["MD"],
                fee=150.0,
                addresses=["221B Baker Street"],
                availability=availability if availability is not None else [
                    {"day": "Mon", "hours": ["9:00", "10:00"]},
                    {"day": "Tue", "hours": ["11:00"]},
                ],
            )
            session.add(doctor)
            await session.commit()
            await session.refresh(doctor)
            return doctor

    return _make_doctor


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_token(user)}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def failing_mailer():
    return FakeMailer(succeed=False)
