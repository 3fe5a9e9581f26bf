from ticketgate.models.base import Base, engine, AsyncSessionFactory
from ticketgate.models.models import (
    User,
    Activity,
    Booking,
    UserRole,
    BookingStatus,
)

__all__ = [
    "Base",
    "engine",
    "AsyncSessionFactory",
    "User",
    "Activity",
    "Booking",
    "UserRole",
    "BookingStatus",
]
