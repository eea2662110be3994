"""Backtracking lineup generation, scoring and ranking."""

from .generator import (
    GenerationConfig,
    GenerationResult,
    GenerationStats,
    GenerationStrategy,
    InsufficientPlayerPool,
    LineupGenerator,
    StopReason,
    UnsupportedStrategy,
    generate_lineups,
)
from .scoring import (
    ScoredLineup,
    ScoringStrategy,
    TieBreakerScore,
    find_best_lineup,
    rank_lineups,
    score_lineup,
)

__all__ = [
    "GenerationConfig",
    "GenerationResult",
    "GenerationStats",
    "GenerationStrategy",
    "InsufficientPlayerPool",
    "LineupGenerator",
    "ScoredLineup",
    "ScoringStrategy",
    "StopReason",
    "TieBreakerScore",
    "UnsupportedStrategy",
    "find_best_lineup",
    "generate_lineups",
    "rank_lineups",
    "score_lineup",
]
