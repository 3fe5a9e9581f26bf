"""
Redemption state machine.

    PENDING ──payment──▶ CONFIRMED ──scan + confirm──▶ COMPLETED
       └──────────cancel──────┴──────────▶ CANCELLED

COMPLETED and CANCELLED are terminal. The only transition owned here is
CONFIRMED → COMPLETED; it is performed by a conditional UPDATE, so two
scanners racing on the same booking produce one REDEEMED and one
ALREADY_REDEEMED.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ticketgate.models.models import BookingStatus
from ticketgate.services.booking_store import conditional_transition, get_booking_status
from ticketgate.services.outcomes import Outcome, RedeemResult

logger = logging.getLogger(__name__)

_NOT_REDEEMABLE_REASONS = {
    BookingStatus.PENDING:   "payment not completed",
    BookingStatus.CANCELLED: "booking was cancelled",
}


def can_transition(current: str, new: str) -> bool:
    return new in BookingStatus.TRANSITIONS.get(current, ())


def _outcome_for_status(booking_id: str, status: Optional[str]) -> RedeemResult:
    if status == BookingStatus.COMPLETED:
        return RedeemResult(Outcome.ALREADY_REDEEMED, booking_id)
    reason = _NOT_REDEEMABLE_REASONS.get(status, f"status is {status}")
    return RedeemResult(Outcome.NOT_REDEEMABLE, booking_id, reason)


async def attempt_redeem(
    session: AsyncSession,
    booking_id: str,
    current_status: str,
    *,
    redeemed_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> RedeemResult:
    """
    Redeem a booking observed in `current_status`.

    CONFIRMED  → conditional transition to COMPLETED (committed at once);
                 a lost race is re-read and reported as ALREADY_REDEEMED.
    COMPLETED  → ALREADY_REDEEMED, nothing is written.
    otherwise  → NOT_REDEEMABLE, nothing is written.
    """
    if current_status != BookingStatus.CONFIRMED:
        return _outcome_for_status(booking_id, current_status)

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    won = await conditional_transition(
        session,
        booking_id,
        BookingStatus.CONFIRMED,
        BookingStatus.COMPLETED,
        redeemed_at=now,
        redeemed_by=redeemed_by,
    )
    # End the write transaction right away, also when nothing matched
    await session.commit()

    if won:
        logger.info("Booking %s redeemed by %s", booking_id, redeemed_by or "unknown")
        return RedeemResult(Outcome.REDEEMED, booking_id)

    live_status = await get_booking_status(session, booking_id)
    logger.info(
        "Redeem race lost for booking %s (live status: %s)", booking_id, live_status
    )
    return _outcome_for_status(booking_id, live_status)
