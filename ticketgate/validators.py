"""
Ticket payload model — Pydantic v2.

Describes the JSON object embedded in a ticket QR code. Used both to build
tokens at issuance time and to validate scanned text before any lookup.
"""
from __future__ import annotations

import re
from datetime import date as _date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

# Keys whose absence makes a scanned payload unusable
REQUIRED_KEYS = ("ticketId", "verificationCode")

_ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class Ticket(BaseModel):
    """
    Decoded QR ticket.

    Attributes
    ----------
    ticket_id         : booking id (``TICK-<ms>``), trust-bearing
    event_title       : activity title at booking time (informational)
    date              : calendar date of the activity
    persons           : number of attendees covered (> 0)
    order_number      : secondary reference (``ORD-<ms>``)
    status            : booking status snapshot at encode time, never trusted
    verification_code : code bound to ``ticket_id`` (see verification_code)
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    ticket_id: StrictStr = Field(alias="ticketId")
    event_title: Optional[StrictStr] = Field(default=None, alias="eventTitle")
    date: Optional[_date] = None
    persons: Optional[StrictInt] = None
    order_number: Optional[StrictStr] = Field(default=None, alias="orderNumber")
    status: Optional[Literal["PENDING", "CONFIRMED", "COMPLETED", "CANCELLED"]] = None
    verification_code: StrictStr = Field(alias="verificationCode")

    @field_validator("ticket_id", "verification_code")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        try:
            v.encode("utf-8")
        except UnicodeEncodeError:
            raise ValueError("must be valid UTF-8 text") from None
        return v

    @field_validator("date", mode="before")
    @classmethod
    def validate_iso_date(cls, v: object) -> object:
        # Wire dates are ISO strings; numbers or datetimes are not coerced
        if v is None or type(v) is _date:
            return v
        if not isinstance(v, str) or not _ISO_DATE_RE.fullmatch(v):
            raise ValueError("date must be an ISO YYYY-MM-DD string")
        return v

    @field_validator("persons")
    @classmethod
    def validate_persons(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("persons must be a positive integer")
        return v
