from ticketgate.keyboards.callbacks import MainMenuCb, ScanCb, TicketCb
from ticketgate.keyboards.menus import (
    customer_main_menu,
    staff_main_menu,
    back_to_main,
    scan_cancel_kb,
    verified_ticket_kb,
    scan_again_kb,
    ticket_list_kb,
)

__all__ = [
    # callbacks
    "MainMenuCb", "ScanCb", "TicketCb",
    # menus
    "customer_main_menu", "staff_main_menu", "back_to_main",
    # scanner
    "scan_cancel_kb", "verified_ticket_kb", "scan_again_kb",
    # tickets
    "ticket_list_kb",
]
