"""Exhaustive backtracking lineup generator."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..config.roster import DRAFTKINGS_CLASSIC
from ..models.lineup import ROSTER_SIZE, Lineup, Slot
from ..models.player import PlayerRecord, Position
from ..rules.core import SalaryCapRule, create_draftkings_rule_engine
from ..rules.engine import RuleEngine
from .scoring import ScoredLineup, ScoringFunction, ScoringStrategy, rank_lineups


logger = logging.getLogger(__name__)

_MAX_ATTEMPTS_ENV = "DKGEN_MAX_ATTEMPTS"
_TIMEOUT_MS_ENV = "DKGEN_TIMEOUT_MS"

_MAX_ATTEMPTS_DEFAULT = 1_000_000
_TIMEOUT_MS_DEFAULT = 30_000
_LOG_INTERVAL_DEFAULT = 10_000


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


class GenerationStrategy(str, Enum):
    BRUTE_FORCE = "brute_force"
    RANDOM_SAMPLING = "random_sampling"
    GENETIC_ALGORITHM = "genetic_algorithm"
    SIMULATED_ANNEALING = "simulated_annealing"


class StopReason(str, Enum):
    TARGET_REACHED = "target_reached"
    MAX_ATTEMPTS = "max_attempts"
    TIMEOUT = "timeout"
    EXHAUSTED = "exhausted"


class UnsupportedStrategy(NotImplementedError):
    def __init__(self, strategy: GenerationStrategy):
        super().__init__(f"Generation strategy {strategy.value!r} is not implemented")
        self.strategy = strategy


class InsufficientPlayerPool(ValueError):
    def __init__(self, position: str, required: int, found: int):
        super().__init__(
            f"insufficient-{position}: need at least {required} {position} players, found {found}"
        )
        self.position = position
        self.required = required
        self.found = found

    @property
    def code(self) -> str:
        return f"insufficient-{self.position}"


@dataclass(frozen=True)
class GenerationConfig:
    strategy: GenerationStrategy = GenerationStrategy.BRUTE_FORCE
    max_attempts: int = _MAX_ATTEMPTS_DEFAULT
    timeout_ms: int = _TIMEOUT_MS_DEFAULT
    target_lineups: int = 1
    scoring_strategy: ScoringStrategy = ScoringStrategy.TOTAL_PROJECTION
    scoring_function: Optional[ScoringFunction] = None
    allow_duplicates: bool = False
    sort_results: bool = True
    salary_cap: int = DRAFTKINGS_CLASSIC.salary_cap
    prune_salary: bool = False
    enable_logging: bool = False
    log_interval: int = _LOG_INTERVAL_DEFAULT

    def __post_init__(self) -> None:
        object.__setattr__(self, "strategy", GenerationStrategy(self.strategy))
        object.__setattr__(self, "scoring_strategy", ScoringStrategy(self.scoring_strategy))
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be non-negative")
        if self.timeout_ms < 0:
            raise ValueError("timeout_ms must be non-negative")
        if self.target_lineups < 0:
            raise ValueError("target_lineups must be non-negative (0 means unlimited)")
        if self.log_interval < 1:
            raise ValueError("log_interval must be at least 1")

    @classmethod
    def from_env(cls, **overrides) -> "GenerationConfig":
        """Defaults with DKGEN_MAX_ATTEMPTS / DKGEN_TIMEOUT_MS applied, then overrides."""

        values = {
            "max_attempts": _env_int(_MAX_ATTEMPTS_ENV, _MAX_ATTEMPTS_DEFAULT, min_value=0),
            "timeout_ms": _env_int(_TIMEOUT_MS_ENV, _TIMEOUT_MS_DEFAULT, min_value=0),
        }
        values.update(overrides)
        return cls(**values)

    def with_max_attempts(self, max_attempts: int) -> "GenerationConfig":
        return replace(self, max_attempts=max_attempts)

    def with_timeout(self, timeout_ms: int) -> "GenerationConfig":
        return replace(self, timeout_ms=timeout_ms)

    def with_target_lineups(self, target_lineups: int) -> "GenerationConfig":
        return replace(self, target_lineups=target_lineups)

    def with_scoring(
        self,
        scoring_strategy: ScoringStrategy,
        scoring_function: Optional[ScoringFunction] = None,
    ) -> "GenerationConfig":
        return replace(self, scoring_strategy=scoring_strategy, scoring_function=scoring_function)

    def with_logging(self, enabled: bool = True, interval: Optional[int] = None) -> "GenerationConfig":
        return replace(
            self,
            enable_logging=enabled,
            log_interval=self.log_interval if interval is None else interval,
        )


@dataclass(frozen=True)
class GenerationStats:
    attempts: int = 0
    valid_lineups: int = 0
    invalid_lineups: int = 0
    rule_failures: int = 0
    duplicate_lineups: int = 0
    duration_ms: float = 0.0
    timeout_occurred: bool = False
    stop_reason: StopReason = StopReason.EXHAUSTED

    @property
    def success_rate(self) -> float:
        if self.attempts == 0:
            return 0.0
        return self.valid_lineups / self.attempts

    def summary(self) -> str:
        return (
            f"{self.attempts} attempts, {self.valid_lineups} valid, {self.invalid_lineups} invalid "
            f"({self.rule_failures} rule failures, {self.duplicate_lineups} duplicates) "
            f"in {self.duration_ms:.1f} ms, stopped: {self.stop_reason.value}"
        )


@dataclass(frozen=True)
class GenerationResult:
    lineups: Tuple[Lineup, ...]
    scored: Tuple[ScoredLineup, ...]
    stats: GenerationStats
    config: GenerationConfig = field(repr=False, default_factory=GenerationConfig)

    @property
    def best(self) -> Optional[ScoredLineup]:
        return self.scored[0] if self.scored else None


@dataclass
class _SearchCounters:
    attempts: int = 0
    valid_lineups: int = 0
    invalid_lineups: int = 0
    rule_failures: int = 0
    duplicate_lineups: int = 0
    timeout_occurred: bool = False
    stop_reason: StopReason = StopReason.EXHAUSTED

    def freeze(self, duration_ms: float) -> GenerationStats:
        return GenerationStats(
            attempts=self.attempts,
            valid_lineups=self.valid_lineups,
            invalid_lineups=self.invalid_lineups,
            rule_failures=self.rule_failures,
            duplicate_lineups=self.duplicate_lineups,
            duration_ms=duration_ms,
            timeout_occurred=self.timeout_occurred,
            stop_reason=self.stop_reason,
        )


_FLEX_ORDER = (Position.RB, Position.WR, Position.TE)


class LineupGenerator:
    """Depth-first search over slot assignments, validated at each leaf.

    A single ``Lineup`` buffer is mutated in place while walking the tree;
    accepted candidates are copied out before the search backtracks.
    """

    def __init__(
        self,
        players: Iterable[PlayerRecord],
        rule_engine: Optional[RuleEngine] = None,
        config: Optional[GenerationConfig] = None,
    ):
        self.config = config or GenerationConfig()
        self.players: Tuple[PlayerRecord, ...] = tuple(players)
        self.rule_engine = rule_engine or create_draftkings_rule_engine(self.config.salary_cap)
        self._buckets: Dict[Position, List[PlayerRecord]] = {pos: [] for pos in Position}
        for player in self.players:
            self._buckets[player.position].append(player)
        self._slot_candidates: Dict[Slot, Tuple[PlayerRecord, ...]] = {
            slot: self._candidates_for(slot) for slot in Slot.ordered()
        }
        self._reset()

    def _candidates_for(self, slot: Slot) -> Tuple[PlayerRecord, ...]:
        if slot is Slot.FLEX:
            return tuple(p for pos in _FLEX_ORDER for p in self._buckets[pos])
        (position,) = slot.eligible_positions
        return tuple(self._buckets[position])

    def _reset(self) -> None:
        self._lineup = Lineup()
        self._accepted: List[Lineup] = []
        self._signatures: Set[Tuple[int, ...]] = set()
        self._stats = _SearchCounters()
        self._started = 0.0

    # ------------------------------------------------------------------
    # pool checks

    def position_counts(self) -> Dict[Position, int]:
        return {pos: len(bucket) for pos, bucket in self._buckets.items()}

    def validate_player_pool(self) -> None:
        """Raise InsufficientPlayerPool if no complete lineup can be assembled."""

        roster = DRAFTKINGS_CLASSIC
        for position in Position:
            required = roster.position_requirements.get(position.value, 0)
            found = len(self._buckets[position])
            if found < required:
                raise InsufficientPlayerPool(position.value, required, found)

        flex_required = roster.minimum_flex_pool()
        flex_found = sum(len(self._buckets[pos]) for pos in _FLEX_ORDER)
        if flex_found < flex_required:
            raise InsufficientPlayerPool("FLEX", flex_required, flex_found)

    # ------------------------------------------------------------------
    # search

    def generate(self) -> GenerationResult:
        config = self.config
        if config.strategy is not GenerationStrategy.BRUTE_FORCE:
            raise UnsupportedStrategy(config.strategy)

        self.validate_player_pool()
        self._check_salary_cap()
        self._reset()
        self._started = time.perf_counter()
        if config.enable_logging:
            logger.info(
                "Starting lineup generation: %d players, max_attempts=%d, timeout=%dms, target=%d",
                len(self.players),
                config.max_attempts,
                config.timeout_ms,
                config.target_lineups,
            )

        self._search(0)

        stats = self._stats.freeze(self._elapsed_ms())
        if stats.stop_reason is StopReason.TIMEOUT:
            logger.warning(
                "Lineup generation timed out after %.0f ms (%d attempts, %d valid)",
                stats.duration_ms,
                stats.attempts,
                stats.valid_lineups,
            )
        if config.enable_logging:
            logger.info("Lineup generation finished: %s", stats.summary())

        scored = rank_lineups(
            self._accepted,
            config.scoring_strategy,
            config.scoring_function,
            sort=config.sort_results,
        )
        return GenerationResult(
            lineups=tuple(item.lineup for item in scored),
            scored=tuple(scored),
            stats=stats,
            config=config,
        )

    def generate_single(self) -> Optional[ScoredLineup]:
        single = LineupGenerator(
            self.players,
            self.rule_engine,
            self.config.with_target_lineups(1),
        )
        return single.generate().best

    def _check_salary_cap(self) -> None:
        rule = self.rule_engine.get_rule(SalaryCapRule.name)
        if isinstance(rule, SalaryCapRule) and rule.salary_cap != self.config.salary_cap:
            logger.warning(
                "Generation salary cap %d differs from SalaryCapRule cap %d",
                self.config.salary_cap,
                rule.salary_cap,
            )

    def _elapsed_ms(self) -> float:
        return (time.perf_counter() - self._started) * 1000.0

    def _should_stop(self) -> bool:
        stats = self._stats
        config = self.config
        if stats.attempts >= config.max_attempts:
            stats.stop_reason = StopReason.MAX_ATTEMPTS
            return True
        if config.target_lineups > 0 and stats.valid_lineups >= config.target_lineups:
            stats.stop_reason = StopReason.TARGET_REACHED
            return True
        if self._elapsed_ms() >= config.timeout_ms:
            stats.stop_reason = StopReason.TIMEOUT
            stats.timeout_occurred = True
            return True
        return False

    def _search(self, depth: int) -> bool:
        """Fill slots from ``depth`` onward; returns True once the search must stop."""

        if self._should_stop():
            return True

        if depth == ROSTER_SIZE:
            self._evaluate_leaf()
            return False

        slot = Slot.ordered()[depth]
        lineup = self._lineup
        cap = self.config.salary_cap
        for candidate in self._slot_candidates[slot]:
            if lineup.contains_player(candidate):
                continue
            if self.config.prune_salary and candidate.salary > lineup.remaining_salary(cap):
                continue
            lineup.place(slot, candidate)
            stop = self._search(depth + 1)
            lineup.unplace(slot)
            if stop or self._should_stop():
                return True
        return False

    def _evaluate_leaf(self) -> None:
        stats = self._stats
        stats.attempts += 1
        lineup = self._lineup
        result = self.rule_engine.validate_lineup(lineup)

        if result.is_valid:
            signature = lineup.signature()
            if not self.config.allow_duplicates and signature in self._signatures:
                stats.invalid_lineups += 1
                stats.duplicate_lineups += 1
            else:
                self._signatures.add(signature)
                self._accepted.append(lineup.copy())
                stats.valid_lineups += 1
                logger.debug(
                    "Accepted lineup #%d: $%d, %.2f pts",
                    stats.valid_lineups,
                    lineup.total_salary,
                    lineup.total_projection,
                )
        else:
            stats.invalid_lineups += 1
            stats.rule_failures += 1

        if self.config.enable_logging and stats.attempts % self.config.log_interval == 0:
            logger.info(
                "Progress: %d attempts, %d valid, %d invalid, %.0f ms elapsed",
                stats.attempts,
                stats.valid_lineups,
                stats.invalid_lineups,
                self._elapsed_ms(),
            )


def generate_lineups(
    players: Sequence[PlayerRecord],
    config: Optional[GenerationConfig] = None,
    rule_engine: Optional[RuleEngine] = None,
) -> GenerationResult:
    """Convenience wrapper around :class:`LineupGenerator`."""

    return LineupGenerator(players, rule_engine, config).generate()
