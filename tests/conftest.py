"""Shared fixtures: in-memory SQLite engine, seeded clinic data, API client."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENV", "test")

from typing import AsyncGenerator, NamedTuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401 - register tables
from app.core.db import get_session
from app.models.catalog import Package, Patient, TherapyType
from app.models.therapist import Therapist
from app.models.user import User


class Clinic(NamedTuple):
    therapist: Therapist  # NPL001
    other_therapist: Therapist  # NPL002
    patient: Patient
    package: Package
    therapy: TherapyType


@pytest_asyncio.fixture
async def session_maker() -> AsyncGenerator[async_sessionmaker, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as s:
        yield s


@pytest_asyncio.fixture
async def clinic(session_maker) -> Clinic:
    """Two active therapists, one patient, a 3-session package and a therapy type."""
    async with session_maker() as s:
        u1 = User(name="Asha Rao", email="asha@example.com", role="therapist")
        u2 = User(name="Vikram Das", email="vikram@example.com", role="therapist")
        s.add_all([u1, u2])
        await s.flush()
        t1 = Therapist(display_id="NPL001", user_id=u1.id)
        t2 = Therapist(display_id="NPL002", user_id=u2.id)
        patient = Patient(patient_code="P0001", name="Meera", mobile="9000000001")
        package = Package(name="Starter", total_sessions=3, cost_per_session=500, total_cost=1500)
        therapy = TherapyType(name="Speech therapy")
        s.add_all([t1, t2, patient, package, therapy])
        await s.commit()
        return Clinic(t1, t2, patient, package, therapy)


@pytest_asyncio.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    from app.main import app

    async def _get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = _get_session
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def booking_payload(clinic):
    """Factory for BookingCreate bodies; each session is (date, slot id[, therapist id])."""
    from app.models.booking import BookingCreate, SessionIn

    def _make(*sessions, **extra) -> BookingCreate:
        items = []
        for s in sessions:
            therapist_id = s[2] if len(s) > 2 else clinic.therapist.id
            items.append(SessionIn(date=s[0], slot_id=s[1], therapist_id=therapist_id))
        return BookingCreate(
            package=clinic.package.id,
            patient=clinic.patient.id,
            therapy=clinic.therapy.id,
            therapist=clinic.therapist.id,
            sessions=items,
            **extra,
        )

    return _make
