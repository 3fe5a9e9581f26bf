from ticketgate.states.scanner_states import ScannerStates

__all__ = ["ScannerStates"]
