from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from dkgen.models import PlayerRecord


class LineupPlayerResponse(BaseModel):
    slot: str
    player_id: str
    name: str
    team: str
    position: str
    salary: int
    projection: float
    ownership: float


class LineupResponse(BaseModel):
    lineup_id: str
    salary: int
    projection: float
    score: float
    players: List[LineupPlayerResponse]


class LineupRequest(BaseModel):
    lineups: int = Field(default=1, ge=0)
    max_attempts: int | None = Field(default=None, ge=0)
    timeout_ms: int | None = Field(default=None, ge=0)
    strategy: str = Field(default="brute_force")
    scoring_strategy: str = Field(default="total_projection")
    salary_cap: int = Field(default=50_000, gt=0)
    max_from_one_team: int | None = Field(default=None, ge=1, le=9)
    allow_duplicates: bool = False
    sort_results: bool = True
    prune_salary: bool = False


class GenerateRequest(LineupRequest):
    players: List[PlayerRecord]
