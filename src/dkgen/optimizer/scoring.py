"""Lineup scoring strategies and deterministic multi-level tie-breaking."""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from ..models.lineup import ROSTER_SIZE, Lineup
from ..models.player import Position


ScoringFunction = Callable[[Lineup], float]

SCORE_EPSILON = 0.01
EFFICIENCY_EPSILON = 0.01
SALARY_EPSILON = 100.0
TEAM_DIVERSITY_EPSILON = 0.05
OWNERSHIP_DIVERSITY_EPSILON = 0.02

OWNERSHIP_PIVOT = 1.5
BALANCED_WEIGHTS = (0.5, 0.3, 0.2)


class ScoringStrategy(str, Enum):
    TOTAL_PROJECTION = "total_projection"
    VALUE_WEIGHTED = "value_weighted"
    OWNERSHIP_ADJUSTED = "ownership_adjusted"
    BALANCED = "balanced"
    CUSTOM = "custom"


def ownership_adjusted_score(lineup: Lineup) -> float:
    """Sum of projections discounted by how chalky each player is."""

    return math.fsum(p.projection * (OWNERSHIP_PIVOT - p.ownership) for p in lineup.players())


def balanced_score(lineup: Lineup) -> float:
    raw_weight, value_weight, ownership_weight = BALANCED_WEIGHTS
    return (
        raw_weight * lineup.total_projection
        + value_weight * lineup.salary_efficiency()
        + ownership_weight * ownership_adjusted_score(lineup)
    )


def score_lineup(
    lineup: Lineup,
    strategy: ScoringStrategy = ScoringStrategy.TOTAL_PROJECTION,
    scoring_function: Optional[ScoringFunction] = None,
) -> float:
    if strategy is ScoringStrategy.VALUE_WEIGHTED:
        return lineup.salary_efficiency()
    if strategy is ScoringStrategy.OWNERSHIP_ADJUSTED:
        return ownership_adjusted_score(lineup)
    if strategy is ScoringStrategy.BALANCED:
        return balanced_score(lineup)
    if strategy is ScoringStrategy.CUSTOM and scoring_function is not None:
        return float(scoring_function(lineup))
    return lineup.total_projection


def team_diversity(lineup: Lineup) -> float:
    return len(lineup.team_counts()) / ROSTER_SIZE


def ownership_diversity(lineup: Lineup) -> float:
    ownerships = [p.ownership for p in lineup.players()]
    if len(ownerships) < 2:
        return 0.0
    return statistics.pstdev(ownerships)


def position_balance(lineup: Lineup) -> float:
    """1 - coefficient of variation of non-DST projections, floored at 0."""

    projections = [p.projection for p in lineup.players() if p.position is not Position.DST]
    if len(projections) < 2:
        return 0.0
    mean = statistics.fmean(projections)
    if mean <= 0:
        return 0.0
    cv = statistics.pstdev(projections) / mean
    return 1.0 - min(cv, 1.0)


TIE_BREAK_EPSILONS = (
    EFFICIENCY_EPSILON,
    SALARY_EPSILON,
    TEAM_DIVERSITY_EPSILON,
    OWNERSHIP_DIVERSITY_EPSILON,
    0.0,
)
RANKING_EPSILONS = (SCORE_EPSILON,) + TIE_BREAK_EPSILONS


def _compare(left: Sequence[float], right: Sequence[float], epsilons: Sequence[float]) -> int:
    """1 if ``left`` wins, -1 if ``right`` wins, 0 if every level is within epsilon."""

    for a, b, epsilon in zip(left, right, epsilons):
        diff = a - b
        if abs(diff) > epsilon:
            return 1 if diff > 0 else -1
    return 0


@dataclass(frozen=True)
class TieBreakerScore:
    salary_efficiency: float
    salary_used: int
    team_diversity: float
    ownership_diversity: float
    position_balance: float

    @classmethod
    def from_lineup(cls, lineup: Lineup) -> "TieBreakerScore":
        return cls(
            salary_efficiency=lineup.salary_efficiency(),
            salary_used=lineup.total_salary,
            team_diversity=team_diversity(lineup),
            ownership_diversity=ownership_diversity(lineup),
            position_balance=position_balance(lineup),
        )

    def values(self) -> Tuple[float, ...]:
        return (
            self.salary_efficiency,
            float(self.salary_used),
            self.team_diversity,
            self.ownership_diversity,
            self.position_balance,
        )

    def is_better_than(self, other: "TieBreakerScore") -> bool:
        return _compare(self.values(), other.values(), TIE_BREAK_EPSILONS) > 0


@dataclass(frozen=True)
class ScoredLineup:
    lineup: Lineup
    primary_score: float
    tie_breaker: TieBreakerScore

    @classmethod
    def build(
        cls,
        lineup: Lineup,
        strategy: ScoringStrategy = ScoringStrategy.TOTAL_PROJECTION,
        scoring_function: Optional[ScoringFunction] = None,
    ) -> "ScoredLineup":
        return cls(
            lineup=lineup,
            primary_score=score_lineup(lineup, strategy, scoring_function),
            tie_breaker=TieBreakerScore.from_lineup(lineup),
        )

    def values(self) -> Tuple[float, ...]:
        return (self.primary_score,) + self.tie_breaker.values()

    def is_better_than(self, other: "ScoredLineup") -> bool:
        """Pairwise ranking: levels within their epsilon defer to the next level."""

        return _compare(self.values(), other.values(), RANKING_EPSILONS) > 0


_Ranked = Tuple[int, Tuple[float, ...], ScoredLineup]


def _anchored_sort(entries: List[_Ranked], level: int) -> List[_Ranked]:
    """Order entries best-first one criterion at a time.

    Entries are sorted on the current level and cut into groups, each anchored
    at its highest value; an entry joins the open group while it is within
    epsilon of that anchor. Groups are ordered among themselves and each one
    is resolved by the next level, so the result is a single consistent order.
    Entries tied on every level keep discovery order.
    """

    if level == len(RANKING_EPSILONS) or len(entries) < 2:
        return sorted(entries, key=lambda entry: entry[0])

    epsilon = RANKING_EPSILONS[level]
    ordered = sorted(entries, key=lambda entry: entry[1][level], reverse=True)
    result: List[_Ranked] = []
    group: List[_Ranked] = []
    anchor = 0.0
    for entry in ordered:
        value = entry[1][level]
        if group and anchor - value > epsilon:
            result.extend(_anchored_sort(group, level + 1))
            group = []
        if not group:
            anchor = value
        group.append(entry)
    result.extend(_anchored_sort(group, level + 1))
    return result


def rank_lineups(
    lineups: Iterable[Lineup],
    strategy: ScoringStrategy = ScoringStrategy.TOTAL_PROJECTION,
    scoring_function: Optional[ScoringFunction] = None,
    *,
    sort: bool = True,
) -> List[ScoredLineup]:
    """Score lineups and order them best-first.

    Two lineups whose primary scores are within ``SCORE_EPSILON`` of their
    group's best score are ordered by the tie-break levels instead.
    """

    scored = [ScoredLineup.build(lineup, strategy, scoring_function) for lineup in lineups]
    if not sort:
        return scored
    entries = [(idx, item.values(), item) for idx, item in enumerate(scored)]
    return [item for _, _, item in _anchored_sort(entries, 0)]


def find_best_lineup(
    lineups: Iterable[Lineup],
    strategy: ScoringStrategy = ScoringStrategy.TOTAL_PROJECTION,
    scoring_function: Optional[ScoringFunction] = None,
) -> Optional[ScoredLineup]:
    ranked = rank_lineups(lineups, strategy, scoring_function)
    return ranked[0] if ranked else None
