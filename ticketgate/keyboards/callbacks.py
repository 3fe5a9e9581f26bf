"""
Centralized CallbackData factories.
Telegram limits callback_data to 64 bytes — all prefixes are kept short.
"""
from aiogram.filters.callback_data import CallbackData


class MainMenuCb(CallbackData, prefix="mm"):
    action: str           # main | scan | my_tickets


class ScanCb(CallbackData, prefix="scn"):
    action: str           # redeem | again | cancel
    bid: str = ""         # booking / ticket id


class TicketCb(CallbackData, prefix="tkt"):
    action: str           # show
    bid: str = ""
