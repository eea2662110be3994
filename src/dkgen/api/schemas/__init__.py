"""Pydantic models for API I/O."""

from .batch import GenerationStatsResponse, LineupBatchResponse, ParseReportResponse
from .lineup import GenerateRequest, LineupPlayerResponse, LineupRequest, LineupResponse
from .validation import RuleResultResponse, ValidateRequest, ValidationResponse

__all__ = [
    "GenerateRequest",
    "GenerationStatsResponse",
    "LineupBatchResponse",
    "LineupPlayerResponse",
    "LineupRequest",
    "LineupResponse",
    "ParseReportResponse",
    "RuleResultResponse",
    "ValidateRequest",
    "ValidationResponse",
]
