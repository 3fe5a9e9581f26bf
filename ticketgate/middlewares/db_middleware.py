"""
Database session middleware.

Injects an AsyncSession into every handler's data dict under key "session".
Whatever the handler left pending (a confirmed booking, an issued ticket) is
committed once it returns; redemption commits on its own, so a handler that
only verified or redeemed leaves no open transaction behind.
"""
from typing import Any, Awaitable, Callable, Dict, Optional

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ticketgate.models.base import AsyncSessionFactory


class DatabaseMiddleware(BaseMiddleware):
    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None) -> None:
        self._session_factory = session_factory or AsyncSessionFactory

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        async with self._session_factory() as session:
            data["session"] = session
            try:
                result = await handler(event, data)
                if session.in_transaction():
                    await session.commit()
                return result
            except Exception:
                await session.rollback()
                raise
