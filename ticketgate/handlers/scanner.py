"""
Staff ticket scanner.

Workflow:
  1. Operator taps "📷 Scan ticket" (or sends /booking <id> to pre-select one)
  2. Operator scans the customer's QR with any reader and pastes the text here
  3. Bot verifies it against the live booking and shows the outcome card
  4. For a valid CONFIRMED booking the operator taps "Mark as completed"

Verification never redeems on its own; step 4 is a separate, idempotent call.
"""
import logging
from typing import Optional

from aiogram import F, Router
from aiogram.enums import ParseMode
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from ticketgate.config import settings
from ticketgate.keyboards import (
    MainMenuCb,
    ScanCb,
    scan_again_kb,
    scan_cancel_kb,
    staff_main_menu,
    verified_ticket_kb,
)
from ticketgate.middlewares import IsStaff
from ticketgate.models.models import BookingStatus
from ticketgate.services import (
    CodePolicy,
    Outcome,
    get_booking,
    notify_ticket_redeemed,
    redeem_ticket,
    verify_scan,
)
from ticketgate.services.formatting import format_redemption, format_verification
from ticketgate.states import ScannerStates

logger = logging.getLogger(__name__)
router = Router(name="scanner")
router.callback_query.filter(IsStaff())
router.message.filter(IsStaff())

_EXPECTED_KEY = "expected_booking_id"


def _policy() -> CodePolicy:
    return CodePolicy(secret=settings.ticket_secret_bytes, bucket_seconds=settings.CODE_BUCKET_SECONDS)


def _caller_log(caller_email: str) -> logging.LoggerAdapter:
    return logging.LoggerAdapter(logger, {"caller": caller_email})


def _scan_prompt(expected: Optional[str]) -> str:
    text = (
        "📷 *Scan ticket*\n\n"
        "Scan the customer's QR code with any reader app and paste the\n"
        "decoded text here."
    )
    if expected:
        text += f"\n\n🎯 Expected booking: `{expected}`"
    return text


# ── Entry ─────────────────────────────────────────────────────────────────────

@router.callback_query(MainMenuCb.filter(F.action == "scan"))
@router.callback_query(ScanCb.filter(F.action == "again"))
async def cq_scan_entry(callback: CallbackQuery, state: FSMContext) -> None:
    await state.set_state(ScannerStates.waiting_payload)
    data = await state.get_data()
    await callback.message.answer(
        _scan_prompt(data.get(_EXPECTED_KEY)),
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=scan_cancel_kb(),
    )
    await callback.answer()


@router.message(Command("booking"))
async def cmd_expect_booking(message: Message, command: CommandObject, state: FSMContext) -> None:
    booking_id = (command.args or "").strip()
    if not booking_id:
        await message.answer("Usage: `/booking TICK-1752052434284`", parse_mode=ParseMode.MARKDOWN)
        return

    await state.set_state(ScannerStates.waiting_payload)
    await state.update_data(**{_EXPECTED_KEY: booking_id})
    await message.answer(
        _scan_prompt(booking_id),
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=scan_cancel_kb(),
    )


# ── Payload input ─────────────────────────────────────────────────────────────

@router.message(ScannerStates.waiting_payload, Command("cancel"))
async def cmd_scan_cancel(message: Message, state: FSMContext) -> None:
    await state.clear()
    await message.answer(
        "❌ *Scanning cancelled.*",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=staff_main_menu(),
    )


@router.message(ScannerStates.waiting_payload)
async def msg_scan_payload(
    message: Message,
    session: AsyncSession,
    state: FSMContext,
    caller_email: str = "",
) -> None:
    raw = message.text or ""
    data = await state.get_data()
    expected = data.get(_EXPECTED_KEY)

    result = await verify_scan(
        session,
        raw,
        caller_email,
        expected_booking_id=expected,
        policy=_policy(),
        admin_emails=settings.admin_emails_list,
        timeout=settings.STORE_TIMEOUT_SECONDS,
        log=_caller_log(caller_email),
    )

    if result.code == Outcome.NETWORK_ERROR:
        # Stay in the scanning state so the operator can simply resend
        await message.answer(
            format_verification(result),
            parse_mode=ParseMode.MARKDOWN,
            reply_markup=scan_cancel_kb(),
        )
        return

    await state.clear()

    if result.is_valid:
        redeemable = result.booking.get("status") == BookingStatus.CONFIRMED
        kb = verified_ticket_kb(result.booking["id"], redeemable)
    else:
        kb = scan_again_kb()

    await message.answer(format_verification(result), parse_mode=ParseMode.MARKDOWN, reply_markup=kb)


# ── Redemption ────────────────────────────────────────────────────────────────

@router.callback_query(ScanCb.filter(F.action == "redeem"))
async def cq_redeem(
    callback: CallbackQuery,
    callback_data: ScanCb,
    session: AsyncSession,
    caller_email: str = "",
) -> None:
    response = await redeem_ticket(
        session,
        callback_data.bid,
        caller_email,
        admin_emails=settings.admin_emails_list,
        timeout=settings.STORE_TIMEOUT_SECONDS,
        log=_caller_log(caller_email),
    )

    await callback.message.edit_text(
        format_redemption(response),
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=scan_again_kb(),
    )
    await callback.answer(response.message, show_alert=not response.success)

    if response.code == Outcome.REDEEMED:
        booking = await get_booking(session, callback_data.bid)
        if booking is not None:
            await notify_ticket_redeemed(callback.bot, booking)


# ── Cancel ────────────────────────────────────────────────────────────────────

@router.callback_query(ScanCb.filter(F.action == "cancel"))
async def cq_scan_cancel(callback: CallbackQuery, state: FSMContext) -> None:
    await state.clear()
    await callback.message.edit_text(
        "❌ *Scanning cancelled.*",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=staff_main_menu(),
    )
    await callback.answer()
