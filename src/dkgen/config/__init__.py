"""DraftKings roster rules and the site/sport registry."""

from .roster import DRAFTKINGS_CLASSIC, RosterRules, get_rules, get_rules_by_key, iter_rules

__all__ = [
    "DRAFTKINGS_CLASSIC",
    "RosterRules",
    "get_rules",
    "get_rules_by_key",
    "iter_rules",
]
