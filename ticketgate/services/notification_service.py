"""
Customer notification service.

Customers linked to a Telegram chat receive their ticket QR when a booking is
confirmed and a short receipt when the ticket is redeemed at the venue.
"""
from __future__ import annotations

import logging
from typing import Optional

from aiogram import Bot
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest, TelegramForbiddenError
from aiogram.types import BufferedInputFile

from ticketgate.models.models import Booking
from ticketgate.services.ticket_service import render_ticket_buffered

logger = logging.getLogger(__name__)


def _chat_id(booking: Booking) -> Optional[int]:
    if booking.user is None:
        return None
    return booking.user.telegram_id


def format_ticket_caption(booking: Booking) -> str:
    return (
        f"🎟 *{booking.title}*\n"
        f"📅 Date: `{booking.booking_date}`\n"
        f"👥 Persons: {booking.total_persons}\n"
        f"🧾 Order: `{booking.order_number}`\n"
        f"🆔 Ticket: `{booking.id}`\n\n"
        f"Show this QR code at the venue."
    )


async def notify_ticket_issued(bot: Bot, booking: Booking, token: str) -> bool:
    """
    Send the ticket QR image to the customer.
    Returns False when the customer has no chat or blocked the bot.
    """
    chat_id = _chat_id(booking)
    if chat_id is None:
        return False

    photo = BufferedInputFile(render_ticket_buffered(token).read(), filename=f"{booking.id}.png")
    try:
        await bot.send_photo(
            chat_id=chat_id,
            photo=photo,
            caption=format_ticket_caption(booking),
            parse_mode=ParseMode.MARKDOWN,
        )
    except (TelegramForbiddenError, TelegramBadRequest) as e:
        logger.warning("Could not send ticket %s to telegram_id=%d: %s", booking.id, chat_id, e)
        return False
    return True


async def notify_ticket_redeemed(bot: Bot, booking: Booking) -> None:
    """Receipt for a freshly redeemed ticket. Only called on REDEEMED, never on re-scans."""
    chat_id = _chat_id(booking)
    if chat_id is None:
        return

    text = (
        f"🏁 *Ticket used*\n\n"
        f"🎟 {booking.title}\n"
        f"📅 `{booking.booking_date}` · 👥 {booking.total_persons}\n\n"
        f"Enjoy your activity!"
    )
    try:
        await bot.send_message(chat_id=chat_id, text=text, parse_mode=ParseMode.MARKDOWN)
    except (TelegramForbiddenError, TelegramBadRequest) as e:
        logger.warning("Could not notify telegram_id=%d: %s", chat_id, e)
