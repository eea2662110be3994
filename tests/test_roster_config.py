import pytest

from dkgen.config import get_rules, get_rules_by_key, iter_rules


def test_get_rules_handles_site_and_sport_uppercase():
    rules = get_rules("dk", "nfl")
    assert rules.site == "DK"
    assert rules.roster_size == 9
    assert rules.slot_positions["FLEX"] == {"RB", "WR", "TE"}


def test_get_rules_by_key_string_alias():
    rules = get_rules_by_key("DK_NFL")
    assert rules.salary_cap == 50_000
    assert get_rules_by_key(("dk", "nfl")) is rules


def test_get_rules_missing_raises():
    with pytest.raises(KeyError):
        get_rules("FD", "NFL")
    with pytest.raises(ValueError):
        get_rules_by_key("DKNFL")


def test_slot_groups_and_flex_pool():
    rules = get_rules("DK", "NFL")

    assert rules.slot_group("WR3") == "WR"
    assert rules.slot_group("FLEX") == "FLEX"
    assert rules.flex_eligible_positions() == {"RB", "WR", "TE"}
    assert rules.minimum_flex_pool() == 7
    assert [r.site for r in iter_rules()] == ["DK"]
