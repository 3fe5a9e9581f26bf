"""
Telegram (legacy Markdown) cards for verification and redemption outcomes.
"""
from __future__ import annotations

from typing import Optional

from ticketgate.models.models import BookingStatus
from ticketgate.services.outcomes import Outcome, RedemptionResponse, VerificationResult

_RAW_PREVIEW_LIMIT = 600

_OUTCOME_EMOJI = {
    Outcome.VALID:            "✅",
    Outcome.REDEEMED:         "🏁",
    Outcome.ALREADY_REDEEMED: "ℹ️",
    Outcome.NETWORK_ERROR:    "📡",
    Outcome.FORBIDDEN:        "⛔️",
}


def booking_card(snapshot: dict) -> str:
    status = snapshot.get("status", "")
    lines = [
        f"🎟 *{snapshot.get('title', '')}*",
        f"🆔 Ticket: `{snapshot.get('id', '')}`",
        f"🧾 Order: `{snapshot.get('orderNumber') or 'N/A'}`",
        f"📅 Date: `{snapshot.get('bookingDate', '')}`",
        f"👥 Persons: {snapshot.get('totalPersons', '')}",
        f"📌 Status: {BookingStatus.EMOJI.get(status, '❓')} {status}",
    ]
    if snapshot.get("redeemedAt"):
        lines.append(f"🕓 Used at: `{snapshot['redeemedAt']}` by {snapshot.get('redeemedBy') or 'unknown'}")
    return "\n".join(lines)


def _raw_block(raw: Optional[str]) -> str:
    if not raw:
        return ""
    preview = raw if len(raw) <= _RAW_PREVIEW_LIMIT else raw[:_RAW_PREVIEW_LIMIT] + "…"
    # Backticks would close the code block early
    preview = preview.replace("`", "'")
    return f"\n\n*Scanned data:*\n```\n{preview}\n```"


def format_verification(result: VerificationResult) -> str:
    if result.is_valid:
        booking = result.booking or {}
        status = booking.get("status")
        if status == BookingStatus.COMPLETED:
            # Re-scan of a used ticket is informational, not a failure
            head = "ℹ️ *Ticket already used*"
        elif status == BookingStatus.CONFIRMED:
            head = "✅ *Valid ticket* — check the details, then confirm."
        else:
            head = f"⚠️ *Authentic ticket, but booking is {status}*"
        return f"{head}\n\n{booking_card(booking)}"

    emoji = _OUTCOME_EMOJI.get(result.code, "❌")
    text = f"{emoji} *{result.message}*"
    if result.code == Outcome.NETWORK_ERROR:
        return text + "\n\nThe ticket was not judged. Send it again to retry."
    return text + _raw_block(result.raw_payload)


def format_redemption(response: RedemptionResponse) -> str:
    emoji = _OUTCOME_EMOJI.get(response.code, "❌")
    text = f"{emoji} *{response.message}*"
    if response.booking:
        text += "\n\n" + booking_card(response.booking)
    if response.code == Outcome.NETWORK_ERROR:
        text += "\n\nNothing was changed. Try again."
    return text
