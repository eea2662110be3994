import pytest

from dkgen.models import InjuryStatus, Lineup, Slot
from dkgen.rules import (
    FlexPositionRule,
    PlayerAvailabilityRule,
    PositionConstraintRule,
    RulePriority,
    SalaryCapRule,
    TeamLimitRule,
    UniquePlayerRule,
    create_draftkings_rule_engine,
    validate_lineup_quick,
)

from tests.factories import exact_cap_pool, full_lineup, make_player


def _assignment(pool):
    return {
        Slot.QB: pool["qb"],
        Slot.RB1: pool["rb1"],
        Slot.RB2: pool["rb2"],
        Slot.WR1: pool["wr1"],
        Slot.WR2: pool["wr2"],
        Slot.WR3: pool["wr3"],
        Slot.TE: pool["te"],
        Slot.FLEX: pool["rb3"],
        Slot.DST: pool["dst"],
    }


def test_draftkings_engine_accepts_exact_cap_lineup():
    engine = create_draftkings_rule_engine()
    result = engine.validate_lineup(full_lineup(exact_cap_pool()))

    assert result.is_valid
    assert result.total_rules_checked == 6
    assert result.failed_rules == ()
    assert validate_lineup_quick(full_lineup(exact_cap_pool()))


def test_engine_has_expected_rule_priorities():
    engine = create_draftkings_rule_engine()

    assert {r.name for r in engine.get_rules_by_priority(RulePriority.CRITICAL)} == {
        "SalaryCapRule",
        "PositionConstraintRule",
        "FlexPositionRule",
        "UniquePlayerRule",
    }
    assert {r.name for r in engine.get_rules_by_priority(RulePriority.HIGH)} == {
        "TeamLimitRule",
        "PlayerAvailabilityRule",
    }


def test_salary_cap_must_be_spent_exactly():
    lineup = full_lineup(exact_cap_pool(dst_salary=3400))
    result = SalaryCapRule().check(lineup)

    assert not result.is_valid
    assert "49900" in result.message
    assert "50000" in result.message

    over = full_lineup(exact_cap_pool(dst_salary=3600))
    assert not SalaryCapRule().check(over).is_valid
    assert SalaryCapRule(50_100).check(over).is_valid


def test_position_constraint_reports_missing_group():
    lineup = full_lineup(exact_cap_pool())
    lineup.unplace(Slot.TE)

    result = PositionConstraintRule().check(lineup)

    assert not result.is_valid
    assert result.message == "Lineup must have exactly 1 TE (found 0)"


def test_qb_in_flex_fails_flex_and_position_rules():
    pool = exact_cap_pool()
    backup_qb = make_player("Backup", "QB", 5000, team="NE")
    assignment = _assignment(pool)
    assignment[Slot.FLEX] = backup_qb
    lineup = Lineup.from_slots(assignment, check=False)

    result = create_draftkings_rule_engine().validate_lineup(lineup)
    failed = {r.rule_name: r.message for r in result.failed_rules}

    assert not result.is_valid
    assert "QB" in failed["FlexPositionRule"]
    assert failed["PositionConstraintRule"] == "Lineup must have exactly 1 FLEX (found 0)"
    assert result.warnings == ()


def test_flex_rule_passes_on_empty_and_eligible_flex():
    assert FlexPositionRule().check(Lineup()).is_valid
    assert FlexPositionRule().check(full_lineup(exact_cap_pool())).is_valid


def test_unique_rule_detects_shared_identity():
    pool = exact_cap_pool()
    assignment = _assignment(pool)
    assignment[Slot.FLEX] = pool["rb1"]
    lineup = Lineup.from_slots(assignment, check=False)

    result = UniquePlayerRule().check(lineup)

    assert not result.is_valid
    assert result.message.startswith("Duplicate player found: Rashad")
    assert "1 (RB1)" in result.message
    assert "7 (FLEX)" in result.message


def test_unique_rule_detects_shared_name_across_records():
    pool = exact_cap_pool()
    assignment = _assignment(pool)
    assignment[Slot.FLEX] = make_player("Rashad", "RB", 5000, team="BUF")
    lineup = Lineup.from_slots(assignment, check=False)

    result = UniquePlayerRule().check(lineup)

    assert not result.is_valid
    assert result.message.startswith("Duplicate player name found: Rashad")


def test_team_limit_rule():
    players = [make_player(f"P{i}", "WR", 5000, team="KC") for i in range(9)]
    lineup = Lineup.from_slots(dict(zip(Slot.ordered(), players)), check=False)

    result = TeamLimitRule().check(lineup)

    assert not result.is_valid
    assert result.message == "Team KC has 9 players, exceeding the maximum of 8"
    assert TeamLimitRule(max_players=9).check(lineup).is_valid


@pytest.mark.parametrize(
    ("extra", "fragment"),
    [
        ({"injury_status": InjuryStatus.OUT}, "is marked as OUT"),
        ({"is_on_bye": True}, "is on bye week"),
    ],
)
def test_availability_rule_rejects_unusable_players(extra, fragment):
    pool = exact_cap_pool()
    assignment = _assignment(pool)
    assignment[Slot.TE] = make_player("Hurt", "TE", 4000, team="DET", **extra)
    lineup = Lineup.from_slots(assignment)

    result = PlayerAvailabilityRule().check(lineup)

    assert not result.is_valid
    assert "Player Hurt in position 6" in result.message
    assert fragment in result.message


def test_questionable_player_is_available():
    pool = exact_cap_pool()
    assignment = _assignment(pool)
    assignment[Slot.TE] = make_player("Q", "TE", 4000, injury_status=InjuryStatus.QUESTIONABLE)

    assert PlayerAvailabilityRule().check(Lineup.from_slots(assignment)).is_valid
