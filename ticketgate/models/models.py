"""
ORM models for the TicketGate booking/ticket service.

Domain overview
---------------
User      — admin, activity owner or customer (identified by e-mail)
Activity  — a bookable travel activity, owned by exactly one owner
  └─ Booking — a customer's reservation; its id doubles as the ticket id
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ticketgate.models.base import Base

# ─────────────────────────── Constants ────────────────────────────────────────

class UserRole:
    ADMIN    = "ADMIN"
    OWNER    = "OWNER"      # travel activity owner
    CUSTOMER = "CUSTOMER"

    STAFF = (ADMIN, OWNER)


class BookingStatus:
    PENDING   = "PENDING"     # awaiting payment
    CONFIRMED = "CONFIRMED"   # paid, ticket issued
    COMPLETED = "COMPLETED"   # ticket redeemed at the venue
    CANCELLED = "CANCELLED"

    ALL = (PENDING, CONFIRMED, COMPLETED, CANCELLED)
    TERMINAL = (COMPLETED, CANCELLED)

    # current → allowed next states
    TRANSITIONS: dict[str, tuple[str, ...]] = {
        PENDING:   (CONFIRMED, CANCELLED),
        CONFIRMED: (COMPLETED, CANCELLED),
        COMPLETED: (),
        CANCELLED: (),
    }

    EMOJI = {
        PENDING:   "🕓",
        CONFIRMED: "✅",
        COMPLETED: "🏁",
        CANCELLED: "❌",
    }


# ─────────────────────────── Models ───────────────────────────────────────────

class User(Base):
    """Platform account; staff accounts may be linked to a Telegram chat."""
    __tablename__ = "users"

    id:          Mapped[int]           = mapped_column(Integer, primary_key=True, autoincrement=True)
    email:       Mapped[str]           = mapped_column(String(255), unique=True, index=True)
    full_name:   Mapped[str]           = mapped_column(String(255))
    role:        Mapped[str]           = mapped_column(String(20), default=UserRole.CUSTOMER)
    telegram_id: Mapped[Optional[int]] = mapped_column(BigInteger, unique=True, nullable=True)
    created_at:  Mapped[datetime]      = mapped_column(DateTime, default=func.now())

    activities: Mapped[List["Activity"]] = relationship(back_populates="owner")
    bookings:   Mapped[List["Booking"]]  = relationship(back_populates="user")

    @property
    def is_staff(self) -> bool:
        return self.role in UserRole.STAFF


class Activity(Base):
    """A travel activity offered by an owner."""
    __tablename__ = "activities"

    id:       Mapped[int]           = mapped_column(Integer, primary_key=True, autoincrement=True)
    title:    Mapped[str]           = mapped_column(String(255))
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    owner_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)

    owner:    Mapped[Optional["User"]] = relationship(back_populates="activities")
    bookings: Mapped[List["Booking"]]  = relationship(back_populates="activity")


class Booking(Base):
    """
    A reservation for an activity on a given date.

    `id` has the form TICK-<epoch ms> and is also the ticket id encoded in the QR.
    `status` only changes through conditional transitions (see booking_store).
    """
    __tablename__ = "bookings"

    id:            Mapped[str]                = mapped_column(String(64), primary_key=True)
    order_number:  Mapped[str]                = mapped_column(String(64), unique=True)
    activity_id:   Mapped[int]                = mapped_column(ForeignKey("activities.id"))
    user_id:       Mapped[Optional[int]]      = mapped_column(ForeignKey("users.id"), nullable=True)
    title:         Mapped[str]                = mapped_column(String(255))
    booking_date:  Mapped[str]                = mapped_column(String(10))   # ISO date of the activity
    total_persons: Mapped[int]                = mapped_column(Integer)
    total_price:   Mapped[float]              = mapped_column(Float, default=0.0)
    status:        Mapped[str]                = mapped_column(String(20), default=BookingStatus.PENDING, index=True)
    booking_time:  Mapped[datetime]           = mapped_column(DateTime, default=func.now())
    qr_code_data:  Mapped[Optional[str]]      = mapped_column(String(2000), nullable=True)
    redeemed_at:   Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    redeemed_by:   Mapped[Optional[str]]      = mapped_column(String(255), nullable=True)

    activity: Mapped["Activity"]       = relationship(back_populates="bookings")
    user:     Mapped[Optional["User"]] = relationship(back_populates="bookings")

    @property
    def status_emoji(self) -> str:
        return BookingStatus.EMOJI.get(self.status, "❓")

    def snapshot(self) -> dict:
        """Authoritative booking fields as exposed in verification responses."""
        return {
            "id":           self.id,
            "orderNumber":  self.order_number,
            "title":        self.title,
            "bookingDate":  self.booking_date,
            "totalPersons": self.total_persons,
            "totalPrice":   self.total_price,
            "activityId":   self.activity_id,
            "status":       self.status,
            "redeemedAt":   self.redeemed_at.isoformat() if self.redeemed_at else None,
            "redeemedBy":   self.redeemed_by,
        }
