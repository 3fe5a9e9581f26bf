"""
SQLAlchemy declarative base and async engine/session factory.

Every booking-store round trip is bounded by STORE_TIMEOUT_SECONDS, both at
the service seam (asyncio.wait_for) and at the driver: connection setup for
asyncpg, lock waits for SQLite.
"""
from __future__ import annotations

from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from ticketgate.config import settings


class Base(DeclarativeBase):
    pass


def engine_options(url: str, timeout: float) -> Dict[str, Any]:
    """Driver-specific create_async_engine() keyword arguments."""
    if url.startswith("sqlite"):
        # SQLite busy timeout: how long a writer waits for a competing redeem
        return {"connect_args": {"timeout": timeout}}
    return {"pool_pre_ping": True, "connect_args": {"timeout": timeout}}


engine = create_async_engine(
    settings.async_database_url,
    echo=False,
    **engine_options(settings.async_database_url, settings.STORE_TIMEOUT_SECONDS),
)

AsyncSessionFactory: async_sessionmaker[AsyncSession] = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
