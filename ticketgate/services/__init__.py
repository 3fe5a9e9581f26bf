from ticketgate.services.booking_store import (
    upsert_user, get_user_by_email, get_user_by_telegram_id,
    create_activity, create_booking, get_booking, get_booking_status,
    conditional_transition, confirm_booking, cancel_booking, list_user_tickets,
    is_admin, is_owner_of,
)
from ticketgate.services.outcomes import (
    Outcome, DecodeError, RedeemResult, VerificationResult, RedemptionResponse,
)
from ticketgate.services.redemption import attempt_redeem, can_transition
from ticketgate.services.ticket_codec import encode, decode, ticket_from_booking
from ticketgate.services.ticket_service import (
    build_token, issue_ticket, confirm_and_issue,
    render_ticket_png, render_ticket_buffered,
)
from ticketgate.services.verification_code import CodePolicy
from ticketgate.services.verification_service import verify_scan, redeem_ticket, is_authorized
from ticketgate.services.notification_service import notify_ticket_issued, notify_ticket_redeemed

__all__ = [
    # booking store
    "upsert_user", "get_user_by_email", "get_user_by_telegram_id",
    "create_activity", "create_booking", "get_booking", "get_booking_status",
    "conditional_transition", "confirm_booking", "cancel_booking", "list_user_tickets",
    "is_admin", "is_owner_of",
    # outcomes
    "Outcome", "DecodeError", "RedeemResult", "VerificationResult", "RedemptionResponse",
    # state machine
    "attempt_redeem", "can_transition",
    # codec
    "encode", "decode", "ticket_from_booking",
    # issuance
    "build_token", "issue_ticket", "confirm_and_issue",
    "render_ticket_png", "render_ticket_buffered",
    # verification
    "CodePolicy", "verify_scan", "redeem_ticket", "is_authorized",
    # notifications
    "notify_ticket_issued", "notify_ticket_redeemed",
]
