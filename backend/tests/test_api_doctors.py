from unittest.mock import AsyncMock

import pytest
from fastapi import status

from medibook.database import get_db

DOCTOR = {
    "name": "Dr. Grey",
    "email": "grey@clinic.com",
    "password": "secret1",
    "specialization": "Neurology",
    "experience": 7,
    "qualifications": ["MD", "PhD"],
    "availability": [{"day": "Mon", "hours": ["9:00", "10:00"]}],
    "fee": 200,
    "addresses": ["Seattle Grace"],
}


class TestCreateDoctor:
    @pytest.mark.asyncio
    async def test_admin_creates_doctor(self, client, make_user, headers_for):
        admin = await make_user(email="admin@clinic.com", is_admin=True)
        response = await client.post("/api/doctors", json=DOCTOR, headers=headers_for(admin))

        assert response.status_code == status.HTTP_201_CREATED
        doctor = response.json()["doctor"]
        assert doctor["user_id"] == admin.id
        assert doctor["availability"] == [{"day": "Mon", "hours": ["9:00", "10:00"]}]
        assert "password" not in doctor

    @pytest.mark.asyncio
    async def test_duplicate_email(self, client, make_user, make_doctor, headers_for):
        admin = await make_user(email="admin@clinic.com", is_admin=True)
        await make_doctor(email="grey@clinic.com")
        response = await client.post("/api/doctors", json=DOCTOR, headers=headers_for(admin))
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Doctor with this email already exists"

    @pytest.mark.asyncio
    async def test_unique_index_violation_is_conflict(
        self, app, client, session_factory, make_user, make_doctor, headers_for
    ):
        admin = await make_user(email="admin@clinic.com", is_admin=True)
        await make_doctor(email="grey@clinic.com")

        # The duplicate lands between the lookup and the insert
        async def racing_db():
            async with session_factory() as session:
                session.scalar = AsyncMock(return_value=None)
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise

        app.dependency_overrides[get_db] = racing_db
        response = await client.post("/api/doctors", json=DOCTOR, headers=headers_for(admin))
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Doctor with this email already exists"

    @pytest.mark.asyncio
    async def test_negative_fee_rejected(self, client, make_user, headers_for):
        admin = await make_user(email="admin@clinic.com", is_admin=True)
        response = await client.post("/api/doctors", json={**DOCTOR, "fee": -1}, headers=headers_for(admin))
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_non_admin_forbidden(self, client, make_user, headers_for):
        user = await make_user()
        response = await client.post("/api/doctors", json=DOCTOR, headers=headers_for(user))
        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestReadDoctors:
    @pytest.mark.asyncio
    async def test_list_is_public(self, client, make_doctor):
        await make_doctor()
        await make_doctor(email="wilson@clinic.com", name="Dr. Wilson", specialization="Oncology")
        response = await client.get("/api/doctors")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["count"] == 2

    @pytest.mark.asyncio
    async def test_get_by_id(self, client, make_doctor):
        doctor = await make_doctor()
        response = await client.get(f"/api/doctors/{doctor.id}")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "Dr. House"

    @pytest.mark.asyncio
    async def test_get_missing(self, client):
        response = await client.get("/api/doctors/123")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Doctor not found"

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_substring(self, client, make_doctor):
        await make_doctor()
        await make_doctor(email="wilson@clinic.com", name="Dr. Wilson", specialization="Oncology")
        response = await client.get("/api/doctors/search/CARDIO")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["count"] == 1
        assert data["doctors"][0]["specialization"] == "Cardiology"

    @pytest.mark.asyncio
    async def test_search_without_matches(self, client, make_doctor):
        await make_doctor()
        response = await client.get("/api/doctors/search/dermatology")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_search_blank(self, client):
        response = await client.get("/api/doctors/search/%20")
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestUpdateDeleteDoctor:
    @pytest.mark.asyncio
    async def test_partial_update(self, client, make_user, make_doctor, headers_for):
        admin = await make_user(email="admin@clinic.com", is_admin=True)
        doctor = await make_doctor()
        response = await client.put(
            f"/api/doctors/{doctor.id}",
            json={"fee": 99.5, "availability": [{"day": "Fri", "hours": ["8:00"]}]},
            headers=headers_for(admin),
        )
        assert response.status_code == status.HTTP_200_OK
        updated = response.json()["doctor"]
        assert updated["fee"] == 99.5
        assert updated["availability"] == [{"day": "Fri", "hours": ["8:00"]}]
        assert updated["name"] == "Dr. House"

    @pytest.mark.asyncio
    async def test_delete(self, client, make_user, make_doctor, headers_for):
        admin = await make_user(email="admin@clinic.com", is_admin=True)
        doctor = await make_doctor()
        response = await client.delete(f"/api/doctors/{doctor.id}", headers=headers_for(admin))
        assert response.status_code == status.HTTP_200_OK

        response = await client.get(f"/api/doctors/{doctor.id}")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_update_requires_admin(self, client, make_user, make_doctor, headers_for):
        user = await make_user()
        doctor = await make_doctor()
        response = await client.put(f"/api/doctors/{doctor.id}", json={"fee": 1}, headers=headers_for(user))
        assert response.status_code == status.HTTP_403_FORBIDDEN
