"""Lineup validation rules and the engine that runs them."""

from .core import (
    FlexPositionRule,
    PlayerAvailabilityRule,
    PositionConstraintRule,
    SalaryCapRule,
    TeamLimitRule,
    UniquePlayerRule,
    create_draftkings_rule_engine,
    default_rules,
    validate_lineup_quick,
)
from .engine import (
    DependencyCycle,
    DependencyType,
    DuplicateRuleName,
    FunctionRule,
    Rule,
    RuleDependency,
    RuleEngine,
    RuleEngineError,
    RuleEngineStats,
    RuleNotFound,
    RulePriority,
    RuleResult,
    ValidationResult,
)

__all__ = [
    "DependencyCycle",
    "DependencyType",
    "DuplicateRuleName",
    "FlexPositionRule",
    "FunctionRule",
    "PlayerAvailabilityRule",
    "PositionConstraintRule",
    "Rule",
    "RuleDependency",
    "RuleEngine",
    "RuleEngineError",
    "RuleEngineStats",
    "RuleNotFound",
    "RulePriority",
    "RuleResult",
    "SalaryCapRule",
    "TeamLimitRule",
    "UniquePlayerRule",
    "ValidationResult",
    "create_draftkings_rule_engine",
    "default_rules",
    "validate_lineup_quick",
]
