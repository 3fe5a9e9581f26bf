"""
Shared pytest fixtures for TicketGate tests.

Sets required environment variables BEFORE any ticketgate module is imported
so that pydantic-settings and SQLAlchemy engine initialisation use safe test
values.
"""
from __future__ import annotations

import os
from types import SimpleNamespace
from typing import AsyncGenerator

# ── Set env vars before any ticketgate import ─────────────────────────────────
os.environ.setdefault("BOT_TOKEN", "test-token-for-pytest")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ADMIN_EMAILS", "")

# ── Third-party ───────────────────────────────────────────────────────────────
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# ── Package imports (safe after env vars are set) ─────────────────────────────
from ticketgate.models.base import Base
from ticketgate.models.models import Activity, Booking, BookingStatus, User, UserRole


# ── DB fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture
async def async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a fresh AsyncSession backed by an isolated in-memory SQLite database.
    Schema is created fresh for every test function; engine is always disposed
    on teardown, even if the test raises an exception.
    """
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with factory() as session:
            yield session
    finally:
        await engine.dispose()


@pytest.fixture
async def file_session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """
    Session factory over a file-backed SQLite database, so that several
    sessions (separate connections) see the same rows — used for races.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


# ── Data helpers ──────────────────────────────────────────────────────────────

async def add_booking(
    session: AsyncSession,
    booking_id: str,
    activity: Activity,
    status: str = BookingStatus.CONFIRMED,
    user: User | None = None,
    persons: int = 2,
) -> Booking:
    """Insert a booking with an explicit id (e.g. "B1", "TICK-1")."""
    booking = Booking(
        id=booking_id,
        order_number=f"ORD-{booking_id}",
        activity_id=activity.id,
        user_id=user.id if user else None,
        title=activity.title,
        booking_date="2025-07-22",
        total_persons=persons,
        total_price=120.0,
        status=status,
    )
    session.add(booking)
    await session.flush()
    return booking


async def seed_world(session: AsyncSession) -> SimpleNamespace:
    """
    admin@test.com        ADMIN
    owner.a@test.com      OWNER of "Kayak Tour"   (activity_a)
    owner.b@test.com      OWNER of "Safari Drive" (activity_b)
    guest@test.com        CUSTOMER
    """
    admin   = User(email="admin@test.com",   full_name="Admin",   role=UserRole.ADMIN)
    owner_a = User(email="owner.a@test.com", full_name="Owner A", role=UserRole.OWNER)
    owner_b = User(email="owner.b@test.com", full_name="Owner B", role=UserRole.OWNER)
    guest   = User(email="guest@test.com",   full_name="Guest",   role=UserRole.CUSTOMER, telegram_id=555)
    session.add_all([admin, owner_a, owner_b, guest])
    await session.flush()

    activity_a = Activity(title="Kayak Tour",   location="Lagoon", owner_id=owner_a.id)
    activity_b = Activity(title="Safari Drive", location="Park",   owner_id=owner_b.id)
    session.add_all([activity_a, activity_b])
    await session.flush()

    return SimpleNamespace(
        admin=admin,
        owner_a=owner_a,
        owner_b=owner_b,
        guest=guest,
        activity_a=activity_a,
        activity_b=activity_b,
    )


@pytest.fixture
async def world(async_session) -> SimpleNamespace:
    w = await seed_world(async_session)
    await async_session.commit()
    return w


@pytest.fixture
def make_booking(async_session):
    """``await make_booking("B1", activity, status)`` inside the test session."""
    async def _make(booking_id: str, activity: Activity, status: str = BookingStatus.CONFIRMED, **kw) -> Booking:
        return await add_booking(async_session, booking_id, activity, status, **kw)
    return _make


@pytest.fixture
async def race_booking(file_session_factory) -> str:
    """A CONFIRMED booking committed to the file-backed database."""
    async with file_session_factory() as session:
        w = await seed_world(session)
        await add_booking(session, "TICK-1", w.activity_a)
        await session.commit()
    return "TICK-1"
