"""
Caller identity middleware.

Resolves the Telegram sender to a platform account and attaches
`caller` (User | None), `caller_email` and `is_staff` to handler data.
Must run after DatabaseMiddleware (needs `session`).
The IsStaff filter (below) can be used as a router-level filter.
"""
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.filters import BaseFilter
from aiogram.types import CallbackQuery, Message, TelegramObject

from ticketgate.config import settings
from ticketgate.models.models import UserRole
from ticketgate.services.booking_store import get_user_by_telegram_id


class IdentityMiddleware(BaseMiddleware):
    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        tg_user = data.get("event_from_user")
        session = data.get("session")
        caller = None
        if tg_user is not None and session is not None:
            caller = await get_user_by_telegram_id(session, tg_user.id)

        data["caller"] = caller
        data["caller_email"] = caller.email if caller else ""
        data["is_staff"] = bool(
            caller
            and (caller.role in UserRole.STAFF or caller.email in settings.admin_emails_list)
        )
        return await handler(event, data)


# ── Reusable filter ──────────────────────────────────────────────────────────

class IsStaff(BaseFilter):
    """Restricts scanner routers to admins and activity owners."""

    async def __call__(self, event: Message | CallbackQuery, is_staff: bool = False) -> bool:
        if not is_staff:
            if isinstance(event, Message):
                await event.answer("⛔️ Access denied.")
            elif isinstance(event, CallbackQuery):
                await event.answer("⛔️ Access denied.", show_alert=True)
        return is_staff
