"""
Global fallback handler — included LAST in the dispatcher.

Catches any callback query that no other router handled, e.g. stale
keyboards after a restart (MemoryStorage is wiped on redeploy).
"""
from aiogram import Router
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery

from ticketgate.keyboards import customer_main_menu, staff_main_menu

router = Router(name="fallback")


@router.callback_query()
async def cq_fallback(
    callback: CallbackQuery,
    state: FSMContext,
    is_staff: bool = False,
) -> None:
    await callback.answer("⚠️ This button has expired. Start again.", show_alert=True)
    await state.clear()
    kb = staff_main_menu() if is_staff else customer_main_menu()
    try:
        await callback.message.edit_text(
            "🔄 *Session reset.* Back to the main menu:",
            parse_mode=ParseMode.MARKDOWN,
            reply_markup=kb,
        )
    except TelegramBadRequest:
        pass
