"""
Ticket token codec.

Turns a `Ticket` into the compact JSON text embedded in the QR image and back.
Purely structural: no lookups, no trust decisions.
"""
from __future__ import annotations

import json
from typing import Union

from pydantic import ValidationError

from ticketgate.models.models import Booking
from ticketgate.services.outcomes import DecodeError, Outcome
from ticketgate.validators import REQUIRED_KEYS, Ticket


def encode(ticket: Ticket) -> str:
    """Canonical compact JSON in wire key order; unset fields are omitted."""
    return ticket.model_dump_json(by_alias=True, exclude_none=True)


def decode(raw: object) -> Union[Ticket, DecodeError]:
    """
    Parse scanned text into a `Ticket`.

    Returns a `DecodeError` (never raises) when the text is not a JSON object,
    when `ticketId` / `verificationCode` are absent or blank, or when any other
    field has the wrong shape.
    """
    if not isinstance(raw, str) or not raw.strip():
        return DecodeError(Outcome.MALFORMED_PAYLOAD, "empty payload")

    try:
        data = json.loads(raw)
    except ValueError:
        return DecodeError(Outcome.MALFORMED_PAYLOAD, "not valid JSON")

    if not isinstance(data, dict):
        return DecodeError(Outcome.MALFORMED_PAYLOAD, "payload is not an object")

    missing = [
        key for key in REQUIRED_KEYS
        if not isinstance(data.get(key), str) or not data[key].strip()
    ]
    if missing:
        return DecodeError(Outcome.MISSING_REQUIRED_FIELD, ", ".join(missing))

    try:
        return Ticket.model_validate(data)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        return DecodeError(Outcome.MALFORMED_PAYLOAD, "bad field: " + ", ".join(fields))


def ticket_from_booking(booking: Booking, verification_code: str) -> Ticket:
    """Build the token snapshot for an authoritative booking record."""
    return Ticket(
        ticket_id=booking.id,
        event_title=booking.title,
        date=booking.booking_date,
        persons=booking.total_persons,
        order_number=booking.order_number,
        status=booking.status,
        verification_code=verification_code,
    )
