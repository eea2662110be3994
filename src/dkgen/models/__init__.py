"""Player and lineup models."""

from .lineup import Lineup, LineupError, Slot
from .player import InjuryStatus, PlayerRecord, Position

__all__ = [
    "InjuryStatus",
    "Lineup",
    "LineupError",
    "PlayerRecord",
    "Position",
    "Slot",
]
