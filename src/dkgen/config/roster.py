"""Roster configuration for supported site/sport combinations."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Set, Tuple, Union


@dataclass(frozen=True)
class RosterRules:
    site: str
    sport: str
    salary_cap: int
    roster_order: Tuple[str, ...]
    slot_positions: Mapping[str, Set[str]]
    team_max_players: int
    position_requirements: Mapping[str, int]
    flex_slots: Set[str]

    @property
    def roster_size(self) -> int:
        return len(self.roster_order)

    def slot_group(self, slot: str) -> str:
        """Collapse numbered slots ("RB2") to their requirement group ("RB")."""

        return re.sub(r"\d+$", "", slot)

    def flex_eligible_positions(self) -> Set[str]:
        eligible: Set[str] = set()
        for slot in self.flex_slots:
            eligible.update(self.slot_positions[slot])
        return eligible

    def minimum_flex_pool(self) -> int:
        """Players needed from flex-eligible positions to fill every skill slot."""

        groups = self.flex_eligible_positions() | {self.slot_group(s) for s in self.flex_slots}
        return sum(
            count for group, count in self.position_requirements.items() if group in groups
        )


_ROSTER_RULES: Dict[Tuple[str, str], RosterRules] = {
    ("DK", "NFL"): RosterRules(
        site="DK",
        sport="NFL",
        salary_cap=50_000,
        roster_order=("QB", "RB1", "RB2", "WR1", "WR2", "WR3", "TE", "FLEX", "DST"),
        slot_positions={
            "QB": {"QB"},
            "RB1": {"RB"},
            "RB2": {"RB"},
            "WR1": {"WR"},
            "WR2": {"WR"},
            "WR3": {"WR"},
            "TE": {"TE"},
            "FLEX": {"RB", "WR", "TE"},
            "DST": {"DST"},
        },
        team_max_players=8,
        position_requirements={"QB": 1, "RB": 2, "WR": 3, "TE": 1, "FLEX": 1, "DST": 1},
        flex_slots={"FLEX"},
    ),
}


def iter_rules() -> Iterable[RosterRules]:
    """Return an iterator of all configured rule sets."""

    return _ROSTER_RULES.values()


def get_rules(site: str, sport: str) -> RosterRules:
    """Fetch rules for a site/sport pair, raising KeyError if missing."""

    key = (site.upper(), sport.upper())
    if key not in _ROSTER_RULES:
        raise KeyError(f"No roster rules configured for site={site!r}, sport={sport!r}")
    return _ROSTER_RULES[key]


def get_rules_by_key(site_key: Union[str, Tuple[str, str]]) -> RosterRules:
    """Resolve rules using either "SITE_SPORT" or (site, sport)."""

    if isinstance(site_key, tuple):
        site, sport = site_key
        return get_rules(site, sport)

    if not isinstance(site_key, str):
        raise TypeError("site_key must be a str or (site, sport) tuple")

    parts = site_key.split("_", 1)
    if len(parts) != 2:
        raise ValueError(f"site_key must look like 'SITE_SPORT', got {site_key!r}")

    site, sport = parts
    return get_rules(site, sport)


DRAFTKINGS_CLASSIC = get_rules("DK", "NFL")
