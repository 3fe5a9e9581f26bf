"""
Keyboards — context-aware (staff scanner vs. customer tickets).
"""
from typing import List

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from ticketgate.keyboards.callbacks import MainMenuCb, ScanCb, TicketCb
from ticketgate.models.models import Booking


def customer_main_menu() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="🎟 My tickets", callback_data=MainMenuCb(action="my_tickets").pack()),
    )
    return builder.as_markup()


def staff_main_menu() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="📷 Scan ticket", callback_data=MainMenuCb(action="scan").pack()),
    )
    builder.row(
        InlineKeyboardButton(text="🎟 My tickets", callback_data=MainMenuCb(action="my_tickets").pack()),
    )
    return builder.as_markup()


def back_to_main() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="🔙 Main menu", callback_data=MainMenuCb(action="main").pack()))
    return builder.as_markup()


def scan_cancel_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="❌ Cancel", callback_data=ScanCb(action="cancel").pack()))
    return builder.as_markup()


def verified_ticket_kb(booking_id: str, redeemable: bool) -> InlineKeyboardMarkup:
    """Second step of verify-then-confirm: the operator redeems explicitly."""
    builder = InlineKeyboardBuilder()
    if redeemable:
        builder.row(
            InlineKeyboardButton(
                text="✅ Mark as completed",
                callback_data=ScanCb(action="redeem", bid=booking_id).pack(),
            )
        )
    builder.row(
        InlineKeyboardButton(text="📷 Scan next", callback_data=ScanCb(action="again").pack()),
        InlineKeyboardButton(text="🔙 Menu",      callback_data=MainMenuCb(action="main").pack()),
    )
    return builder.as_markup()


def scan_again_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="📷 Scan again", callback_data=ScanCb(action="again").pack()),
        InlineKeyboardButton(text="🔙 Menu",       callback_data=MainMenuCb(action="main").pack()),
    )
    return builder.as_markup()


def ticket_list_kb(bookings: List[Booking]) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for b in bookings:
        builder.row(
            InlineKeyboardButton(
                text=f"{b.status_emoji} {b.title} · {b.booking_date}",
                callback_data=TicketCb(action="show", bid=b.id).pack(),
            )
        )
    builder.row(InlineKeyboardButton(text="🔙 Main menu", callback_data=MainMenuCb(action="main").pack()))
    return builder.as_markup()
