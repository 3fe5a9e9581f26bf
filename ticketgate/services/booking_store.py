"""
Booking store — all database operations for users, activities and bookings,
plus the authorization checks the verification core consults.

All functions receive an AsyncSession parameter and are intentionally
pure async functions (no class coupling) for easy unit testing.
Booking status is only ever written through `conditional_transition`.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ticketgate.models.models import (
    Activity,
    Booking,
    BookingStatus,
    User,
    UserRole,
)


def _now_ms(now: Optional[datetime] = None) -> int:
    now = now or datetime.now(timezone.utc)
    return int(now.timestamp() * 1000)


# ── Users ─────────────────────────────────────────────────────────────────────

async def upsert_user(
    session: AsyncSession,
    email: str,
    full_name: str,
    role: str = UserRole.CUSTOMER,
    telegram_id: Optional[int] = None,
) -> User:
    """Create or update a user record keyed by e-mail."""
    email = email.strip().lower()
    user = await get_user_by_email(session, email)
    if user is None:
        user = User(email=email, full_name=full_name, role=role, telegram_id=telegram_id)
        session.add(user)
        await session.flush()
    else:
        user.full_name = full_name
        user.role      = role
        if telegram_id is not None:
            user.telegram_id = telegram_id
    return user


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(
        select(User).where(func.lower(User.email) == email.strip().lower())
    )
    return result.scalar_one_or_none()


async def get_user_by_telegram_id(session: AsyncSession, telegram_id: int) -> Optional[User]:
    result = await session.execute(
        select(User).where(User.telegram_id == telegram_id)
    )
    return result.scalar_one_or_none()


# ── Activities ────────────────────────────────────────────────────────────────

async def create_activity(
    session: AsyncSession,
    title: str,
    owner_id: Optional[int],
    location: Optional[str] = None,
) -> Activity:
    activity = Activity(title=title, owner_id=owner_id, location=location)
    session.add(activity)
    await session.flush()
    return activity


# ── Bookings ──────────────────────────────────────────────────────────────────

async def create_booking(
    session: AsyncSession,
    activity: Activity,
    user_id: Optional[int],
    booking_date: str,
    total_persons: int,
    total_price: float = 0.0,
    now: Optional[datetime] = None,
) -> Booking:
    """
    Create a PENDING booking with TICK-<ms> / ORD-<ms> identifiers.
    The millisecond stamp is bumped until it is free.
    """
    stamp = _now_ms(now)
    while await session.get(Booking, f"TICK-{stamp}") is not None:
        stamp += 1

    booking = Booking(
        id=f"TICK-{stamp}",
        order_number=f"ORD-{stamp}",
        activity_id=activity.id,
        user_id=user_id,
        title=activity.title,
        booking_date=booking_date,
        total_persons=total_persons,
        total_price=total_price,
        status=BookingStatus.PENDING,
    )
    session.add(booking)
    await session.flush()
    return booking


async def get_booking(session: AsyncSession, ticket_id: str) -> Optional[Booking]:
    """Authoritative booking by id; always refreshed from the database."""
    result = await session.execute(
        select(Booking)
        .where(Booking.id == ticket_id)
        .options(
            selectinload(Booking.activity),
            selectinload(Booking.user),
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_booking_status(session: AsyncSession, ticket_id: str) -> Optional[str]:
    result = await session.execute(
        select(Booking.status).where(Booking.id == ticket_id)
    )
    return result.scalar_one_or_none()


async def conditional_transition(
    session: AsyncSession,
    ticket_id: str,
    expected_status: str,
    new_status: str,
    **values,
) -> bool:
    """
    Atomically move a booking from `expected_status` to `new_status`.

    Issues ``UPDATE … WHERE id = :id AND status = :expected`` so that
    concurrent callers racing on the same booking see exactly one success.
    Extra keyword arguments are written in the same statement.
    Returns True when this call performed the transition.
    """
    if new_status not in BookingStatus.TRANSITIONS.get(expected_status, ()):
        raise ValueError(f"Illegal booking transition {expected_status} → {new_status}")

    result = await session.execute(
        update(Booking)
        .where(Booking.id == ticket_id, Booking.status == expected_status)
        .values(status=new_status, **values)
    )
    return result.rowcount == 1


async def confirm_booking(session: AsyncSession, ticket_id: str) -> bool:
    """Payment success: PENDING → CONFIRMED."""
    return await conditional_transition(
        session, ticket_id, BookingStatus.PENDING, BookingStatus.CONFIRMED
    )


async def cancel_booking(session: AsyncSession, ticket_id: str) -> bool:
    """Cancel a booking that is still PENDING or CONFIRMED."""
    current = await get_booking_status(session, ticket_id)
    if current is None or current in BookingStatus.TERMINAL:
        return False
    return await conditional_transition(
        session, ticket_id, current, BookingStatus.CANCELLED
    )


async def list_user_tickets(session: AsyncSession, user_id: int) -> List[Booking]:
    """Bookings that currently carry a usable ticket (CONFIRMED)."""
    result = await session.execute(
        select(Booking)
        .where(Booking.user_id == user_id, Booking.status == BookingStatus.CONFIRMED)
        .order_by(Booking.booking_date, Booking.id)
    )
    return list(result.scalars().all())


# ── Authorization ─────────────────────────────────────────────────────────────

async def is_admin(
    session: AsyncSession,
    caller: str,
    admin_emails: Iterable[str] = (),
) -> bool:
    """Caller is an admin by role or by the configured admin e-mail list."""
    if not caller:
        return False
    caller = caller.strip().lower()
    if caller in {e.lower() for e in admin_emails}:
        return True
    user = await get_user_by_email(session, caller)
    return user is not None and user.role == UserRole.ADMIN


async def is_owner_of(session: AsyncSession, caller: str, activity_id: int) -> bool:
    """Caller owns the activity the booking belongs to."""
    if not caller:
        return False
    result = await session.execute(
        select(Activity.id)
        .join(User, Activity.owner_id == User.id)
        .where(
            Activity.id == activity_id,
            func.lower(User.email) == caller.strip().lower(),
        )
    )
    return result.scalar_one_or_none() is not None
