from aiogram.fsm.state import State, StatesGroup


class ScannerStates(StatesGroup):
    """FSM for the operator's ticket scanner."""
    waiting_payload = State()   # Operator pastes decoded QR text
