"""
Typed outcomes returned by the ticket services.

Every step of the scan → verify → redeem pipeline reports one of a closed set
of codes instead of raising, so callers branch on `result.code` and render
`result.message` without interpreting error subtypes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class Outcome:
    # codec
    MALFORMED_PAYLOAD      = "MALFORMED_PAYLOAD"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"

    # verification
    VALID            = "VALID"
    MISSING_FIELDS   = "MISSING_FIELDS"
    BOOKING_MISMATCH = "BOOKING_MISMATCH"
    UNKNOWN_TICKET   = "UNKNOWN_TICKET"
    FORBIDDEN        = "FORBIDDEN"
    CODE_MISMATCH    = "CODE_MISMATCH"

    # redemption
    REDEEMED         = "REDEEMED"
    ALREADY_REDEEMED = "ALREADY_REDEEMED"
    NOT_REDEEMABLE   = "NOT_REDEEMABLE"

    # infrastructure
    NETWORK_ERROR = "NETWORK_ERROR"

    MESSAGES = {
        MALFORMED_PAYLOAD:      "Invalid: malformed QR",
        MISSING_REQUIRED_FIELD: "Invalid: missing fields",
        VALID:                  "Ticket verified",
        MISSING_FIELDS:         "Invalid: missing fields",
        BOOKING_MISMATCH:       "Invalid: booking mismatch",
        UNKNOWN_TICKET:         "Invalid: unknown ticket",
        FORBIDDEN:              "Forbidden: not allowed to handle this booking",
        CODE_MISMATCH:          "Invalid: code mismatch",
        REDEEMED:               "Booking marked as completed",
        ALREADY_REDEEMED:       "Ticket already used",
        NOT_REDEEMABLE:         "Booking cannot be redeemed",
        NETWORK_ERROR:          "Booking store unavailable, try again",
    }


@dataclass(frozen=True)
class DecodeError:
    code: str     # Outcome.MALFORMED_PAYLOAD | Outcome.MISSING_REQUIRED_FIELD
    detail: str = ""


@dataclass(frozen=True)
class RedeemResult:
    code: str     # REDEEMED | ALREADY_REDEEMED | NOT_REDEEMABLE
    booking_id: str
    reason: str = ""

    @property
    def redeemed(self) -> bool:
        return self.code == Outcome.REDEEMED


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a scan; `booking` is the authoritative snapshot when known."""
    code: str
    message: str
    booking: Optional[dict] = None
    raw_payload: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.code == Outcome.VALID

    def to_response(self) -> dict[str, Any]:
        response: dict[str, Any] = {"success": self.is_valid, "message": self.message}
        if self.booking is not None:
            response["data"] = self.booking
        elif not self.is_valid and self.raw_payload is not None:
            response["data"] = {"rawPayload": self.raw_payload}
        return response


@dataclass(frozen=True)
class RedemptionResponse:
    code: str
    message: str
    booking: Optional[dict] = None

    @property
    def success(self) -> bool:
        # Re-redeeming a used ticket is reported, not treated as a failure
        return self.code in (Outcome.REDEEMED, Outcome.ALREADY_REDEEMED)

    def to_response(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message}


def verification(code: str, detail: str = "", **kwargs: Any) -> VerificationResult:
    message = Outcome.MESSAGES[code]
    if detail:
        message = f"{message} ({detail})"
    return VerificationResult(code=code, message=message, **kwargs)


def redemption(code: str, detail: str = "", **kwargs: Any) -> RedemptionResponse:
    message = Outcome.MESSAGES[code]
    if detail:
        message = f"{message} ({detail})"
    return RedemptionResponse(code=code, message=message, **kwargs)
