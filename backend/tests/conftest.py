import os

# Point the application settings at SQLite before anything imports them
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import carebase.models  # noqa: F401  (registers ORM models with Base.metadata)
from carebase.db.client import SqlTableClient
from carebase.db.postgres import Base
from carebase.services.patient_mapping import PatientFormValues

from tests.fakes import FakeTableClient


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db_client():
    """A real table client over an isolated in-memory SQLite database."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield SqlTableClient(session_factory, Base.metadata)
    await engine.dispose()


@pytest.fixture
def fake_client():
    return FakeTableClient()


@pytest.fixture
def form_values():
    """Registration form as the front-end posts it."""
    return PatientFormValues.model_validate({
        "firstName": "Maria",
        "lastName": "Lopez",
        "dateOfBirth": "1984-06-12",
        "gender": "female",
        "address": "12 Elm Street",
        "phone": "555-201-3344",
        "email": "maria.lopez@example.com",
        "maritalStatus": "",
        "city": "Springfield",
        "state": "IL",
        "zipCode": "62701",
        "bloodType": "A+",
        "hasAllergies": True,
        "allergies": ["Penicillin", "Latex"],
        "currentMedications": "Lisinopril 10mg",
        "pastSurgeries": "",
        "chronicConditions": "Hypertension",
        "contactName": "Jorge Lopez",
        "relationship": "spouse",
        "contactPhone": "555-201-9988",
        "hasInsurance": True,
        "insuranceProvider": "BlueCross",
        "insuranceId": "BC-778812",
        "groupNumber": "GRP-1120",
        "policyHolderName": "Maria Lopez",
        "relationshipToPatient": "self",
    })

