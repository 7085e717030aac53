"""Ship name normalization and ship history tracking."""

from charsync.ships.history import ShipHistoryRecorder
from charsync.ships.names import normalize_ship_name

__all__ = [
    "ShipHistoryRecorder",
    "normalize_ship_name",
]
