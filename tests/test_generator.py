import time

import pytest

from dkgen.models import InjuryStatus, Slot
from dkgen.optimizer import (
    GenerationConfig,
    GenerationStrategy,
    InsufficientPlayerPool,
    LineupGenerator,
    StopReason,
    UnsupportedStrategy,
    generate_lineups,
)
from dkgen.rules import FunctionRule, RulePriority, create_draftkings_rule_engine

from tests.factories import exact_cap_pool, make_player, pool_list, single_path_pool


# 3 RBs over RB1/RB2/FLEX and 3 WRs over WR1-WR3: 6 * 6 complete assignments.
LEAVES_PER_QB = 36


def test_minimal_pool_yields_exact_cap_lineup():
    pool = exact_cap_pool()
    result = generate_lineups(pool_list(pool), GenerationConfig(target_lineups=1))

    assert len(result.lineups) == 1
    lineup = result.lineups[0]
    assert lineup.is_complete
    assert lineup.total_salary == 50_000
    assert lineup[Slot.QB] is pool["qb"]
    assert lineup[Slot.FLEX] is pool["rb3"]
    assert result.stats.valid_lineups == 1
    assert result.stats.attempts == 1
    assert result.stats.stop_reason is StopReason.TARGET_REACHED
    assert result.best.lineup is lineup


def test_single_path_pool_yields_one_lineup_at_the_cap():
    pool = single_path_pool()

    result = generate_lineups(pool_list(pool), GenerationConfig(target_lineups=1))

    assert len(result.lineups) == 1
    lineup = result.lineups[0]
    assert lineup.total_salary == 50_000
    assert lineup[Slot.FLEX] is pool["wr_extra"]
    assert not lineup.contains_player(pool["rb_extra"])
    # FLEX tries the RB bucket before the WR bucket.
    assert result.stats.attempts == 2
    assert result.stats.rule_failures == 1


def test_accepted_lineups_are_copies_of_the_search_buffer():
    pool = exact_cap_pool()
    generator = LineupGenerator(pool_list(pool), config=GenerationConfig(target_lineups=0))

    result = generator.generate()

    assert len({id(lineup) for lineup in result.lineups}) == len(result.lineups)
    assert all(lineup.is_complete for lineup in result.lineups)


def test_missing_position_fails_before_any_attempt():
    pool = exact_cap_pool()
    players = [p for key, p in pool.items() if not key.startswith("wr")]
    calls = []
    engine = create_draftkings_rule_engine()
    engine.add_rule(FunctionRule("Spy", lambda lineup: calls.append(1), RulePriority.LOW))

    with pytest.raises(InsufficientPlayerPool) as excinfo:
        LineupGenerator(players, engine).generate()

    assert excinfo.value.position == "WR"
    assert excinfo.value.code == "insufficient-WR"
    assert excinfo.value.found == 0
    assert calls == []


def test_flex_pool_shortfall_is_reported():
    pool = exact_cap_pool()
    del pool["rb3"]

    with pytest.raises(InsufficientPlayerPool) as excinfo:
        LineupGenerator(pool_list(pool)).validate_player_pool()

    assert excinfo.value.position == "FLEX"
    assert excinfo.value.required == 7
    assert excinfo.value.found == 6


def test_attempt_budget_caps_search_without_error():
    pool = exact_cap_pool(dst_salary=3400)
    result = generate_lineups(pool_list(pool), GenerationConfig(max_attempts=5))

    assert result.lineups == ()
    assert result.stats.attempts == 5
    assert result.stats.invalid_lineups == 5
    assert result.stats.rule_failures == 5
    assert result.stats.stop_reason is StopReason.MAX_ATTEMPTS
    assert not result.stats.timeout_occurred


def test_exhausting_the_tree_reports_exhausted():
    pool = exact_cap_pool(dst_salary=3400)
    result = generate_lineups(pool_list(pool), GenerationConfig(target_lineups=0))

    assert result.lineups == ()
    assert result.stats.attempts == LEAVES_PER_QB
    assert result.stats.stop_reason is StopReason.EXHAUSTED


def test_unlimited_target_enumerates_every_slot_assignment():
    pool = exact_cap_pool()
    result = generate_lineups(pool_list(pool), GenerationConfig(target_lineups=0))

    assert result.stats.valid_lineups == LEAVES_PER_QB
    assert len(result.lineups) == LEAVES_PER_QB
    assert result.stats.duplicate_lineups == 0
    assert result.stats.success_rate == pytest.approx(1.0)


def test_duplicate_assignments_are_rejected_unless_allowed():
    pool = exact_cap_pool()
    players = pool_list(pool) + [pool["qb"]]

    deduped = generate_lineups(players, GenerationConfig(target_lineups=0))
    assert deduped.stats.attempts == 2 * LEAVES_PER_QB
    assert deduped.stats.valid_lineups == LEAVES_PER_QB
    assert deduped.stats.duplicate_lineups == LEAVES_PER_QB
    assert deduped.stats.invalid_lineups == LEAVES_PER_QB
    assert deduped.stats.rule_failures == 0
    signatures = [lineup.signature() for lineup in deduped.lineups]
    assert len(set(signatures)) == len(signatures)

    allowed = generate_lineups(players, GenerationConfig(target_lineups=0, allow_duplicates=True))
    assert allowed.stats.valid_lineups == 2 * LEAVES_PER_QB


def test_generation_is_deterministic():
    players = pool_list(exact_cap_pool())
    config = GenerationConfig(target_lineups=10)

    first = generate_lineups(players, config)
    second = generate_lineups(players, config)

    assert [l.signature() for l in first.lineups] == [l.signature() for l in second.lineups]
    assert first.stats.attempts == second.stats.attempts


def test_zero_timeout_stops_immediately():
    result = generate_lineups(pool_list(exact_cap_pool()), GenerationConfig(timeout_ms=0))

    assert result.stats.timeout_occurred
    assert result.stats.stop_reason is StopReason.TIMEOUT
    assert result.stats.attempts == 0
    assert result.lineups == ()


def test_zero_max_attempts_runs_nothing():
    result = generate_lineups(pool_list(exact_cap_pool()), GenerationConfig(max_attempts=0))

    assert result.stats.attempts == 0
    assert result.stats.stop_reason is StopReason.MAX_ATTEMPTS


def test_unsupported_strategy_raises_not_implemented():
    config = GenerationConfig(strategy=GenerationStrategy.GENETIC_ALGORITHM)

    with pytest.raises(NotImplementedError):
        LineupGenerator(pool_list(exact_cap_pool()), config=config).generate()
    with pytest.raises(UnsupportedStrategy):
        LineupGenerator(
            pool_list(exact_cap_pool()),
            config=GenerationConfig(strategy="random_sampling"),
        ).generate()


def test_salary_pruning_skips_branches_without_changing_results():
    pool = exact_cap_pool()
    players = pool_list(pool) + [make_player("Pricey", "QB", 20_000, 40.0, team="LAR")]

    plain = generate_lineups(players, GenerationConfig(target_lineups=0))
    pruned = generate_lineups(players, GenerationConfig(target_lineups=0, prune_salary=True))

    assert plain.stats.attempts == 2 * LEAVES_PER_QB
    assert pruned.stats.attempts == LEAVES_PER_QB
    assert plain.stats.valid_lineups == pruned.stats.valid_lineups == LEAVES_PER_QB


def test_generate_single_returns_best_lineup():
    best = LineupGenerator(pool_list(exact_cap_pool())).generate_single()

    assert best is not None
    assert best.lineup.total_salary == 50_000


def test_results_are_ranked_best_first():
    pool = exact_cap_pool()
    players = pool_list(pool) + [
        make_player("Star", "WR", 5500, 30.0, team="CIN"),
    ]

    result = generate_lineups(players, GenerationConfig(target_lineups=0))

    scores = [scored.primary_score for scored in result.scored]
    assert scores == sorted(scores, reverse=True)
    assert any(p.name == "Star" for p in result.best.lineup.players())


def test_progress_logging_respects_interval(caplog):
    config = GenerationConfig(target_lineups=0, enable_logging=True, log_interval=12)

    with caplog.at_level("INFO", logger="dkgen.optimizer.generator"):
        generate_lineups(pool_list(exact_cap_pool()), config)

    progress = [r for r in caplog.records if r.getMessage().startswith("Progress:")]
    assert len(progress) == LEAVES_PER_QB // 12


def test_config_validation_and_helpers():
    with pytest.raises(ValueError):
        GenerationConfig(max_attempts=-1)
    with pytest.raises(ValueError):
        GenerationConfig(log_interval=0)

    base = GenerationConfig()
    tuned = base.with_max_attempts(10).with_timeout(50).with_target_lineups(3)
    assert (tuned.max_attempts, tuned.timeout_ms, tuned.target_lineups) == (10, 50, 3)
    assert base.max_attempts == 1_000_000
    assert base.timeout_ms == 30_000


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("DKGEN_MAX_ATTEMPTS", "123")
    monkeypatch.setenv("DKGEN_TIMEOUT_MS", "not-a-number")

    config = GenerationConfig.from_env(target_lineups=2)

    assert config.max_attempts == 123
    assert config.timeout_ms == 30_000
    assert config.target_lineups == 2


def test_pruning_skips_the_extra_that_overshoots_the_cap():
    pool = single_path_pool()

    result = generate_lineups(pool_list(pool), GenerationConfig(target_lineups=1, prune_salary=True))

    assert result.stats.attempts == 1
    assert result.lineups[0][Slot.FLEX] is pool["wr_extra"]


def test_unavailable_and_same_name_players_never_accepted():
    pool = exact_cap_pool()
    hurt = make_player("Hurt", "WR", 5500, 30.0, team="PHI", injury_status=InjuryStatus.OUT)
    resting = make_player("Resting", "WR", 5500, 30.0, team="PHI", is_on_bye=True)
    # Only fits the cap alongside the original Walt, in place of Wes.
    walt_twin = make_player("Walt", "WR", 6000, 13.5, team="PHI")
    players = pool_list(pool) + [hurt, resting, walt_twin]

    result = generate_lineups(players, GenerationConfig(target_lineups=0))

    assert result.lineups
    assert result.stats.rule_failures > 0
    for lineup in result.lineups:
        names = [p.name for p in lineup.players()]
        assert len(set(names)) == 9
        assert all(p.is_available for p in lineup.players())
        assert not lineup.contains_player(walt_twin)


def test_team_limit_holds_for_every_accepted_lineup():
    pool = {key: p.model_copy(update={"team": "KC"}) for key, p in exact_cap_pool().items()}
    pool["dst_alt"] = make_player("Bills", "DST", 3500, 7.0, team="BUF")

    result = generate_lineups(pool_list(pool), GenerationConfig(target_lineups=0))

    assert result.stats.attempts == 2 * LEAVES_PER_QB
    assert result.stats.valid_lineups == LEAVES_PER_QB
    assert result.stats.rule_failures == LEAVES_PER_QB
    for lineup in result.lineups:
        assert max(lineup.team_counts().values()) <= 8
        assert lineup[Slot.DST] is pool["dst_alt"]


def test_timeout_mid_search_keeps_lineups_found_so_far():
    def slow(lineup):
        time.sleep(0.02)

    engine = create_draftkings_rule_engine()
    engine.add_rule(FunctionRule("Slow", slow, RulePriority.LOW))
    players = pool_list(exact_cap_pool())

    timed = generate_lineups(players, GenerationConfig(target_lineups=0, timeout_ms=50), engine)
    capped = generate_lineups(players, GenerationConfig(target_lineups=0, max_attempts=3))
    exhausted = generate_lineups(players, GenerationConfig(target_lineups=0))

    assert timed.stats.stop_reason is StopReason.TIMEOUT
    assert timed.stats.timeout_occurred
    assert 0 < timed.stats.attempts < LEAVES_PER_QB
    assert len(timed.lineups) == timed.stats.valid_lineups == timed.stats.attempts
    assert capped.stats.stop_reason is StopReason.MAX_ATTEMPTS
    assert not capped.stats.timeout_occurred
    assert exhausted.stats.stop_reason is StopReason.EXHAUSTED
    assert not exhausted.stats.timeout_occurred
