"""TicketGate — QR ticket issuance and venue check-in for travel activity bookings."""
