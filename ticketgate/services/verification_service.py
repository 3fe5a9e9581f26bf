"""
Verification endpoint handler — scan-to-decision pipeline.

verify_scan:   decode → expected-booking check → authoritative lookup →
               authorization → code check → VALID (read-only, never redeems)
redeem_ticket: lookup → authorization → redemption state machine

Both return typed results; store failures surface as NETWORK_ERROR so the
operator can retry instead of rejecting a good ticket.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Iterable, Optional, Union

from sqlalchemy.exc import DBAPIError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from ticketgate.models.models import Booking
from ticketgate.services import verification_code
from ticketgate.services.booking_store import get_booking, is_admin, is_owner_of
from ticketgate.services.outcomes import (
    DecodeError,
    Outcome,
    RedemptionResponse,
    VerificationResult,
    redemption,
    verification,
)
from ticketgate.services.redemption import attempt_redeem
from ticketgate.services.ticket_codec import decode
from ticketgate.services.verification_code import CodePolicy

logger = logging.getLogger(__name__)

Log = Union[logging.Logger, logging.LoggerAdapter]

DEFAULT_TIMEOUT = 5.0

# Failures of the store itself, as opposed to a bad ticket
STORE_ERRORS = (DBAPIError, PoolTimeoutError, asyncio.TimeoutError, OSError)


async def is_authorized(
    session: AsyncSession,
    caller: str,
    booking: Booking,
    admin_emails: Iterable[str] = (),
) -> bool:
    """Admins may handle any booking; owners only bookings of their activities."""
    if await is_admin(session, caller, admin_emails):
        return True
    return await is_owner_of(session, caller, booking.activity_id)


async def verify_scan(
    session: AsyncSession,
    raw: object,
    caller: str,
    *,
    expected_booking_id: Optional[str] = None,
    policy: CodePolicy = CodePolicy(),
    admin_emails: Iterable[str] = (),
    timeout: float = DEFAULT_TIMEOUT,
    log: Log = logger,
) -> VerificationResult:
    raw_text = raw if isinstance(raw, str) else None

    decoded = decode(raw)
    if isinstance(decoded, DecodeError):
        code = (
            Outcome.MISSING_FIELDS
            if decoded.code == Outcome.MISSING_REQUIRED_FIELD
            else Outcome.MALFORMED_PAYLOAD
        )
        log.info("Scan rejected: %s (%s)", code, decoded.detail)
        return verification(code, decoded.detail, raw_payload=raw_text)

    ticket = decoded
    if expected_booking_id and ticket.ticket_id != expected_booking_id:
        log.info("Scan rejected: expected %s, scanned %s", expected_booking_id, ticket.ticket_id)
        return verification(
            Outcome.BOOKING_MISMATCH,
            f"expected {expected_booking_id}, scanned {ticket.ticket_id}",
            raw_payload=raw_text,
        )

    try:
        booking = await asyncio.wait_for(get_booking(session, ticket.ticket_id), timeout)
        if booking is None:
            log.info("Scan rejected: unknown ticket %s", ticket.ticket_id)
            return verification(Outcome.UNKNOWN_TICKET, ticket.ticket_id, raw_payload=raw_text)

        allowed = await asyncio.wait_for(
            is_authorized(session, caller, booking, admin_emails), timeout
        )
    except STORE_ERRORS as e:
        log.warning("Booking store failure while verifying %s: %r", ticket.ticket_id, e)
        return verification(Outcome.NETWORK_ERROR, raw_payload=raw_text)

    if not allowed:
        log.warning("Caller %s is not allowed to verify booking %s", caller, booking.id)
        return verification(Outcome.FORBIDDEN)

    # The code is checked against the stored booking id, never the payload's other fields
    if not verification_code.verify(
        booking.id,
        ticket.verification_code,
        secret=policy.secret,
        bucket_seconds=policy.bucket_seconds,
    ):
        log.warning("Verification code mismatch for booking %s", booking.id)
        return verification(Outcome.CODE_MISMATCH, raw_payload=raw_text)

    log.info("Ticket %s verified by %s (live status: %s)", booking.id, caller, booking.status)
    return verification(Outcome.VALID, booking=booking.snapshot())


async def redeem_ticket(
    session: AsyncSession,
    ticket_id: str,
    caller: str,
    *,
    admin_emails: Iterable[str] = (),
    timeout: float = DEFAULT_TIMEOUT,
    now: Optional[datetime] = None,
    log: Log = logger,
) -> RedemptionResponse:
    """Explicit follow-up to a VALID scan: mark the booking COMPLETED."""
    if not ticket_id:
        return redemption(Outcome.UNKNOWN_TICKET)

    try:
        booking = await asyncio.wait_for(get_booking(session, ticket_id), timeout)
        if booking is None:
            return redemption(Outcome.UNKNOWN_TICKET, ticket_id)

        if not await asyncio.wait_for(
            is_authorized(session, caller, booking, admin_emails), timeout
        ):
            log.warning("Caller %s is not allowed to redeem booking %s", caller, ticket_id)
            return redemption(Outcome.FORBIDDEN)

        result = await asyncio.wait_for(
            attempt_redeem(session, booking.id, booking.status, redeemed_by=caller, now=now),
            timeout,
        )
        booking = await asyncio.wait_for(get_booking(session, ticket_id), timeout)
    except STORE_ERRORS as e:
        log.warning("Booking store failure while redeeming %s: %r", ticket_id, e)
        # An abandoned attempt must not be committed later by the caller's session
        try:
            await session.rollback()
        except STORE_ERRORS as rollback_error:
            log.warning("Rollback after failed redeem of %s failed: %r", ticket_id, rollback_error)
        return redemption(Outcome.NETWORK_ERROR)

    log.info("Redeem %s by %s: %s", ticket_id, caller, result.code)
    return redemption(
        result.code,
        result.reason,
        booking=booking.snapshot() if booking is not None else None,
    )
