"""Canonical player models shared across ingestion, rules and generation."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class Position(str, Enum):
    QB = "QB"
    RB = "RB"
    WR = "WR"
    TE = "TE"
    DST = "DST"

    @property
    def is_flex_eligible(self) -> bool:
        return self in (Position.RB, Position.WR, Position.TE)


class InjuryStatus(str, Enum):
    ACTIVE = "ACTIVE"
    QUESTIONABLE = "QUESTIONABLE"
    DOUBTFUL = "DOUBTFUL"
    OUT = "OUT"


class PlayerRecord(BaseModel):
    """Normalized player payload used by the rule engine and generator.

    Records compare by value, so two distinct records can be equal. Lineups
    and the generator track occupancy by object identity instead.
    """

    name: str = Field(..., min_length=1)
    team: str = Field(..., min_length=1)
    opponent: str = ""
    position: Position
    salary: int = Field(..., gt=0)
    projection: float = Field(..., ge=0.0)
    value: float = 0.0
    ownership: float = Field(0.0, ge=0.0, le=1.0)
    slate_id: str = ""
    player_id: Optional[str] = None
    injury_status: Optional[InjuryStatus] = None
    is_on_bye: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def identifier(self) -> str:
        return self.player_id or self.name

    @property
    def is_out(self) -> bool:
        return self.injury_status is InjuryStatus.OUT

    @property
    def is_available(self) -> bool:
        return not self.is_out and not self.is_on_bye

    @property
    def value_per_dollar(self) -> float:
        """Projected points per $1000 of salary."""

        return self.projection / (self.salary / 1000.0)

    def __str__(self) -> str:
        return f"{self.name} ({self.position.value}, {self.team}) ${self.salary} - {self.projection:.1f} pts"
