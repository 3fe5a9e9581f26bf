"""
TicketGate — venue check-in bot for travel activity bookings.
Entry point: creates the bot, registers routers + middleware, handles graceful shutdown.
"""
import asyncio
import logging
import signal
import sys

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import ErrorEvent
from sqlalchemy.exc import SQLAlchemyError

from ticketgate.config import settings
from ticketgate.middlewares import DatabaseMiddleware, IdentityMiddleware, RateLimitMiddleware
from ticketgate.models.base import Base, engine

# ── Handlers ──────────────────────────────────────────────────────────────────
from ticketgate.handlers.common import router as common_router
from ticketgate.handlers.bookings import router as bookings_router
from ticketgate.handlers.tickets import router as tickets_router
from ticketgate.handlers.scanner import router as scanner_router
from ticketgate.handlers.fallback import router as fallback_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


async def create_tables() -> None:
    """Create all database tables on startup."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ready.")
    except (SQLAlchemyError, OSError) as e:
        logger.critical(
            "❌ Cannot connect to database!\n"
            "   URL: %s\n"
            "   Error: %s\n\n"
            "   → Locally: start PostgreSQL or use SQLite "
            "(DATABASE_URL=sqlite+aiosqlite:///./ticketgate.db)",
            settings.DATABASE_URL.split("@")[-1],   # hide credentials in log
            e,
        )
        sys.exit(1)


def build_dispatcher() -> Dispatcher:
    dp = Dispatcher(storage=MemoryStorage())

    # ── Global error handler: ensures callbacks are always answered ──────────
    @dp.errors()
    async def handle_error(event: ErrorEvent) -> None:
        logger.exception("Unhandled error: %s", event.exception)
        update = event.update
        if update.callback_query:
            try:
                await update.callback_query.answer(
                    "⚠️ Something went wrong. Please try again.", show_alert=True
                )
            except TelegramBadRequest:
                pass

    # ── Global middlewares: rate limit first, identity needs the session ──────
    dp.update.middleware(RateLimitMiddleware(settings.RATE_LIMIT, settings.RATE_PERIOD))
    dp.update.middleware(DatabaseMiddleware())
    dp.update.middleware(IdentityMiddleware())

    # ── Routers: order matters for handler priority ──────────────────────────
    dp.include_router(common_router)
    dp.include_router(bookings_router)
    dp.include_router(tickets_router)
    dp.include_router(scanner_router)

    # !! Must be last: catches any callback not handled above !!
    dp.include_router(fallback_router)

    return dp


async def main() -> None:
    logger.info("Starting TicketGate bot…")
    if not settings.ticket_secret_bytes:
        logger.warning(
            "TICKET_SECRET is not set: verification codes use the public "
            "VER-<id>-<bucket> scheme and can be forged by anyone."
        )
    await create_tables()

    bot = Bot(
        token=settings.BOT_TOKEN,
        default=DefaultBotProperties(parse_mode=ParseMode.MARKDOWN),
    )
    dp = build_dispatcher()

    # ── Graceful shutdown on SIGTERM (Docker) ─────────────────────────────────
    loop = asyncio.get_running_loop()

    def _handle_signal():
        logger.info("Received shutdown signal, stopping…")
        asyncio.ensure_future(dp.stop_polling())

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _handle_signal)
        except NotImplementedError:
            # Windows does not support add_signal_handler
            pass

    try:
        logger.info("Bot is running. Press Ctrl+C to stop.")
        await dp.start_polling(
            bot,
            allowed_updates=dp.resolve_used_update_types(),
            handle_signals=False,
        )
    finally:
        logger.info("Shutting down…")
        await bot.session.close()
        await engine.dispose()
        logger.info("Shutdown complete.")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
