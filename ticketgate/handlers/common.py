"""
Common handlers: /start, main menu routing.
"""
import logging
from typing import Optional

from aiogram import F, Router
from aiogram.enums import ParseMode
from aiogram.filters import CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from ticketgate.keyboards import MainMenuCb, customer_main_menu, staff_main_menu
from ticketgate.models.models import User

logger = logging.getLogger(__name__)
router = Router(name="common")


def _welcome_text(caller: User, is_staff: bool) -> str:
    if is_staff:
        return (
            f"⚡ *Venue check-in* — {caller.full_name}\n\n"
            f"Scan a customer's ticket QR, check the verified details and\n"
            f"mark the booking as completed.\n\n"
            f"Tip: `/booking TICK-…` checks the next scan against one booking."
        )
    return (
        f"🌴 Welcome, {caller.full_name}!\n\n"
        f"Your confirmed bookings and their QR tickets are one tap away."
    )


# ── /start ────────────────────────────────────────────────────────────────────

@router.message(CommandStart())
async def cmd_start(
    message: Message,
    state: FSMContext,
    caller: Optional[User] = None,
    is_staff: bool = False,
) -> None:
    await state.clear()
    if caller is None:
        await message.answer(
            "🔗 This Telegram account is not linked to a booking account yet.\n\n"
            f"Your Telegram ID: `{message.from_user.id}`\n"
            "Add it to your profile on the booking site, then send /start again.",
            parse_mode=ParseMode.MARKDOWN,
        )
        return

    kb = staff_main_menu() if is_staff else customer_main_menu()
    await message.answer(_welcome_text(caller, is_staff), parse_mode=ParseMode.MARKDOWN, reply_markup=kb)


@router.callback_query(MainMenuCb.filter(F.action == "main"))
async def cq_main_menu(
    callback: CallbackQuery,
    state: FSMContext,
    caller: Optional[User] = None,
    is_staff: bool = False,
) -> None:
    await state.clear()
    if caller is None:
        await callback.answer("Account not linked. Send /start.", show_alert=True)
        return
    kb = staff_main_menu() if is_staff else customer_main_menu()
    await callback.message.edit_text(
        _welcome_text(caller, is_staff), parse_mode=ParseMode.MARKDOWN, reply_markup=kb
    )
    await callback.answer()
