from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field

from dkgen.models import PlayerRecord


class ValidateRequest(BaseModel):
    players: List[PlayerRecord]
    slots: Dict[str, int] = Field(
        ..., description="Slot name (QB, RB1, ..., DST) to index into players"
    )
    salary_cap: int = Field(default=50_000, gt=0)
    max_from_one_team: int | None = Field(default=None, ge=1, le=9)
    disabled_rules: List[str] = Field(default_factory=list)


class RuleResultResponse(BaseModel):
    rule_name: str
    is_valid: bool
    message: str | None = None


class ValidationResponse(BaseModel):
    is_valid: bool
    passed: List[RuleResultResponse]
    failed: List[RuleResultResponse]
    warnings: List[RuleResultResponse]
    total_rules_checked: int
    salary: int
    projection: float
