from __future__ import annotations

from typing import List

from pydantic import BaseModel

from .lineup import LineupResponse


class GenerationStatsResponse(BaseModel):
    attempts: int
    valid_lineups: int
    invalid_lineups: int
    rule_failures: int
    duplicate_lineups: int
    duration_ms: float
    timeout_occurred: bool
    stop_reason: str


class ParseReportResponse(BaseModel):
    total_rows: int
    parsed_rows: int
    skipped_rows: int
    errors: List[str]


class LineupBatchResponse(BaseModel):
    lineups: List[LineupResponse]
    stats: GenerationStatsResponse
    report: ParseReportResponse | None = None
    message: str | None = None
