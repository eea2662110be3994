"""DraftKings NFL classic roster rules."""

from __future__ import annotations

from typing import Dict, List

from ..config.roster import DRAFTKINGS_CLASSIC, RosterRules
from ..models.lineup import Lineup, Slot
from .engine import Rule, RuleEngine, RulePriority, RuleResult


class SalaryCapRule(Rule):
    """The full salary cap must be spent, not merely respected."""

    name = "SalaryCapRule"
    priority = RulePriority.CRITICAL

    def __init__(self, salary_cap: int = DRAFTKINGS_CLASSIC.salary_cap, **kwargs):
        super().__init__(**kwargs)
        self.salary_cap = salary_cap

    def check(self, lineup: Lineup) -> RuleResult:
        if lineup.total_salary != self.salary_cap:
            return self.fail(
                f"Lineup salary ${lineup.total_salary} must equal exactly "
                f"${self.salary_cap} (DraftKings requirement)"
            )
        return self.ok()


class PositionConstraintRule(Rule):
    """Every slot group must hold its required number of eligible players.

    A slot only counts toward its group when its occupant is eligible for
    that slot, so a QB parked in FLEX leaves FLEX unfilled.
    """

    name = "PositionConstraintRule"
    priority = RulePriority.CRITICAL

    def __init__(self, roster: RosterRules = DRAFTKINGS_CLASSIC, **kwargs):
        super().__init__(**kwargs)
        self.roster = roster

    def check(self, lineup: Lineup) -> RuleResult:
        counts: Dict[str, int] = {group: 0 for group in self.roster.position_requirements}
        for slot, player in lineup.items():
            if player is not None and slot.accepts(player):
                counts[slot.group] = counts.get(slot.group, 0) + 1

        for group, required in self.roster.position_requirements.items():
            found = counts.get(group, 0)
            if found != required:
                return self.fail(f"Lineup must have exactly {required} {group} (found {found})")

        filled = lineup.filled_count
        if filled != self.roster.roster_size:
            return self.fail(
                f"Lineup must have exactly {self.roster.roster_size} positions filled (found {filled})"
            )
        return self.ok()


class FlexPositionRule(Rule):
    name = "FlexPositionRule"
    priority = RulePriority.CRITICAL

    def check(self, lineup: Lineup) -> RuleResult:
        player = lineup[Slot.FLEX]
        if player is not None and not player.position.is_flex_eligible:
            return self.fail(
                f"FLEX position must be filled by RB, WR, or TE (found {player.position.value})"
            )
        return self.ok()


class UniquePlayerRule(Rule):
    name = "UniquePlayerRule"
    priority = RulePriority.CRITICAL

    def check(self, lineup: Lineup) -> RuleResult:
        by_identity: Dict[int, Slot] = {}
        by_name: Dict[str, Slot] = {}
        for slot, player in lineup.items():
            if player is None:
                continue
            earlier = by_identity.get(id(player))
            if earlier is not None:
                return self.fail(
                    f"Duplicate player found: {player.name} appears in positions "
                    f"{earlier.slot_index} ({earlier.value}) and {slot.slot_index} ({slot.value})"
                )
            earlier = by_name.get(player.name)
            if earlier is not None:
                return self.fail(
                    f"Duplicate player name found: {player.name} appears in positions "
                    f"{earlier.slot_index} ({earlier.value}) and {slot.slot_index} ({slot.value})"
                )
            by_identity[id(player)] = slot
            by_name[player.name] = slot
        return self.ok()


class TeamLimitRule(Rule):
    name = "TeamLimitRule"
    priority = RulePriority.HIGH

    def __init__(self, max_players: int = DRAFTKINGS_CLASSIC.team_max_players, **kwargs):
        super().__init__(**kwargs)
        self.max_players = max_players

    def check(self, lineup: Lineup) -> RuleResult:
        for team, count in lineup.team_counts().items():
            if count > self.max_players:
                return self.fail(
                    f"Team {team} has {count} players, exceeding the maximum of {self.max_players}"
                )
        return self.ok()


class PlayerAvailabilityRule(Rule):
    name = "PlayerAvailabilityRule"
    priority = RulePriority.HIGH

    def check(self, lineup: Lineup) -> RuleResult:
        for slot, player in lineup.items():
            if player is None:
                continue
            if player.is_out:
                return self.fail(
                    f"Player {player.name} in position {slot.slot_index} is marked as OUT "
                    "and cannot be used"
                )
            if player.is_on_bye:
                return self.fail(
                    f"Player {player.name} in position {slot.slot_index} is on bye week "
                    "and cannot be used"
                )
        return self.ok()


def default_rules(
    salary_cap: int = DRAFTKINGS_CLASSIC.salary_cap,
    max_team_players: int = DRAFTKINGS_CLASSIC.team_max_players,
    roster: RosterRules = DRAFTKINGS_CLASSIC,
) -> List[Rule]:
    return [
        SalaryCapRule(salary_cap),
        PositionConstraintRule(roster),
        FlexPositionRule(),
        UniquePlayerRule(),
        TeamLimitRule(max_team_players),
        PlayerAvailabilityRule(),
    ]


def create_draftkings_rule_engine(
    salary_cap: int = DRAFTKINGS_CLASSIC.salary_cap,
    max_team_players: int = DRAFTKINGS_CLASSIC.team_max_players,
) -> RuleEngine:
    """Engine preloaded with the standard DraftKings NFL classic rule set."""

    return RuleEngine(default_rules(salary_cap, max_team_players))


def validate_lineup_quick(lineup: Lineup, salary_cap: int = DRAFTKINGS_CLASSIC.salary_cap) -> bool:
    return create_draftkings_rule_engine(salary_cap).is_valid(lineup)


__all__ = [
    "FlexPositionRule",
    "PlayerAvailabilityRule",
    "PositionConstraintRule",
    "SalaryCapRule",
    "TeamLimitRule",
    "UniquePlayerRule",
    "create_draftkings_rule_engine",
    "default_rules",
    "validate_lineup_quick",
]