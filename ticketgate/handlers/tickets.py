"""
Customer tickets: list confirmed bookings and send their QR codes.
"""
import logging
from typing import Optional

from aiogram import F, Router
from aiogram.enums import ParseMode
from aiogram.types import BufferedInputFile, CallbackQuery
from sqlalchemy.ext.asyncio import AsyncSession

from ticketgate.config import settings
from ticketgate.keyboards import MainMenuCb, TicketCb, back_to_main, ticket_list_kb
from ticketgate.models.models import User
from ticketgate.services import (
    CodePolicy,
    get_booking,
    issue_ticket,
    list_user_tickets,
    render_ticket_buffered,
)
from ticketgate.services.notification_service import format_ticket_caption

logger = logging.getLogger(__name__)
router = Router(name="tickets")


@router.callback_query(MainMenuCb.filter(F.action == "my_tickets"))
async def cq_my_tickets(
    callback: CallbackQuery,
    session: AsyncSession,
    caller: Optional[User] = None,
) -> None:
    if caller is None:
        await callback.answer("Account not linked. Send /start.", show_alert=True)
        return

    bookings = await list_user_tickets(session, caller.id)
    if not bookings:
        await callback.message.edit_text(
            "🎟 You have no confirmed bookings with a ticket yet.",
            reply_markup=back_to_main(),
        )
    else:
        await callback.message.edit_text(
            "🎟 *Your tickets* — tap one to get its QR code:",
            parse_mode=ParseMode.MARKDOWN,
            reply_markup=ticket_list_kb(bookings),
        )
    await callback.answer()


@router.callback_query(TicketCb.filter(F.action == "show"))
async def cq_show_ticket(
    callback: CallbackQuery,
    callback_data: TicketCb,
    session: AsyncSession,
    caller: Optional[User] = None,
) -> None:
    booking = await get_booking(session, callback_data.bid)
    if caller is None or booking is None or booking.user_id != caller.id:
        await callback.answer("Ticket not found.", show_alert=True)
        return

    token = booking.qr_code_data
    if not token:
        policy = CodePolicy(secret=settings.ticket_secret_bytes, bucket_seconds=settings.CODE_BUCKET_SECONDS)
        token = await issue_ticket(session, booking, policy)
    if not token:
        await callback.answer(f"No ticket for a {booking.status} booking.", show_alert=True)
        return

    await callback.message.answer_photo(
        BufferedInputFile(render_ticket_buffered(token).read(), filename=f"{booking.id}.png"),
        caption=format_ticket_caption(booking),
        parse_mode=ParseMode.MARKDOWN,
    )
    await callback.answer()
