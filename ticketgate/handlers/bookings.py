"""
Admin booking commands.

  /confirm <id>        — payment received: PENDING → CONFIRMED, ticket issued and sent
  /cancel_booking <id> — cancel a PENDING or CONFIRMED booking
"""
import logging

from aiogram import Router
from aiogram.enums import ParseMode
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from ticketgate.config import settings
from ticketgate.services import (
    CodePolicy,
    cancel_booking,
    confirm_and_issue,
    get_booking,
    is_admin,
    notify_ticket_issued,
)

logger = logging.getLogger(__name__)
router = Router(name="bookings")


async def _admin_booking_id(message: Message, command: CommandObject, session: AsyncSession, caller_email: str):
    if not await is_admin(session, caller_email, settings.admin_emails_list):
        await message.answer("⛔️ Admins only.")
        return None
    booking_id = (command.args or "").strip()
    if not booking_id:
        await message.answer(
            f"Usage: `/{command.command} TICK-1752052434284`", parse_mode=ParseMode.MARKDOWN
        )
        return None
    return booking_id


@router.message(Command("confirm"))
async def cmd_confirm(
    message: Message,
    command: CommandObject,
    session: AsyncSession,
    caller_email: str = "",
) -> None:
    booking_id = await _admin_booking_id(message, command, session, caller_email)
    if booking_id is None:
        return

    policy = CodePolicy(secret=settings.ticket_secret_bytes, bucket_seconds=settings.CODE_BUCKET_SECONDS)
    token = await confirm_and_issue(session, booking_id, policy)
    if token is None:
        await message.answer(
            f"⚠️ Booking `{booking_id}` is unknown or not PENDING.", parse_mode=ParseMode.MARKDOWN
        )
        return
    await session.commit()
    logger.info("Booking %s confirmed by %s", booking_id, caller_email)

    booking = await get_booking(session, booking_id)
    delivered = await notify_ticket_issued(message.bot, booking, token)
    await message.answer(
        f"✅ Booking `{booking_id}` confirmed, ticket issued."
        + ("" if delivered else "\nThe customer has no linked Telegram chat."),
        parse_mode=ParseMode.MARKDOWN,
    )


@router.message(Command("cancel_booking"))
async def cmd_cancel(
    message: Message,
    command: CommandObject,
    session: AsyncSession,
    caller_email: str = "",
) -> None:
    booking_id = await _admin_booking_id(message, command, session, caller_email)
    if booking_id is None:
        return

    if not await cancel_booking(session, booking_id):
        await message.answer(
            f"⚠️ Booking `{booking_id}` is unknown or already final.", parse_mode=ParseMode.MARKDOWN
        )
        return
    await session.commit()
    logger.info("Booking %s cancelled by %s", booking_id, caller_email)
    await message.answer(f"🚫 Booking `{booking_id}` cancelled.", parse_mode=ParseMode.MARKDOWN)
