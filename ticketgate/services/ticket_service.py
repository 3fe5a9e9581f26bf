"""
Ticket issuance for confirmed bookings.

Builds the signed QR payload for a booking, stores it on the booking record
and renders it as a PNG. Uses `segno` — a pure-Python QR encoder (no native
libs required).
"""
from __future__ import annotations

import io
import logging
from datetime import datetime, timezone
from typing import Optional

import segno
from sqlalchemy.ext.asyncio import AsyncSession

from ticketgate.models.models import Booking, BookingStatus
from ticketgate.services import verification_code
from ticketgate.services.booking_store import confirm_booking, get_booking
from ticketgate.services.ticket_codec import encode, ticket_from_booking
from ticketgate.services.verification_code import CodePolicy

logger = logging.getLogger(__name__)


def build_token(booking: Booking, policy: CodePolicy, now: Optional[datetime] = None) -> str:
    """QR payload text for `booking`, with a code for the bucket of `now`."""
    now = now or datetime.now(timezone.utc)
    code = verification_code.generate(
        booking.id, now, secret=policy.secret, bucket_seconds=policy.bucket_seconds
    )
    return encode(ticket_from_booking(booking, code))


async def issue_ticket(
    session: AsyncSession,
    booking: Booking,
    policy: CodePolicy,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """
    Issue (or re-issue) the ticket token for a CONFIRMED booking.
    Returns None for bookings in any other state.
    """
    if booking.status != BookingStatus.CONFIRMED:
        logger.warning("Ticket not issued for booking %s in status %s", booking.id, booking.status)
        return None

    token = build_token(booking, policy, now)
    booking.qr_code_data = token
    await session.flush()
    logger.info("Ticket issued for booking %s", booking.id)
    return token


async def confirm_and_issue(
    session: AsyncSession,
    ticket_id: str,
    policy: CodePolicy,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """Payment success: move the booking to CONFIRMED and issue its ticket."""
    if not await confirm_booking(session, ticket_id):
        logger.warning("Booking %s could not be confirmed", ticket_id)
        return None
    booking = await get_booking(session, ticket_id)
    return await issue_ticket(session, booking, policy, now)


def render_ticket_png(token: str, scale: int = 8, border: int = 2) -> bytes:
    """
    Render a ticket token as a PNG image.

    Parameters
    ----------
    token  : the QR payload text
    scale  : pixels per module
    border : quiet-zone width in modules
    """
    return render_ticket_buffered(token, scale=scale, border=border).read()


def render_ticket_buffered(token: str, scale: int = 8, border: int = 2) -> io.BytesIO:
    """
    Same as render_ticket_png but returns a seeked BytesIO buffer.
    Useful for aiogram's BufferedInputFile.
    """
    qr  = segno.make_qr(token, error="H")
    buf = io.BytesIO()
    qr.save(buf, kind="png", scale=scale, border=border)
    buf.seek(0)
    return buf
