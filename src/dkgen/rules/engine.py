"""Priority-ordered rule engine with inter-rule dependencies."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from ..models.lineup import Lineup


logger = logging.getLogger(__name__)


class RulePriority(IntEnum):
    CRITICAL = 0
    HIGH = 1
    MEDIUM = 2
    LOW = 3

    @property
    def is_blocking(self) -> bool:
        """CRITICAL and HIGH failures invalidate a lineup; the rest are warnings."""

        return self <= RulePriority.HIGH


class DependencyType(str, Enum):
    REQUIRES = "REQUIRES"
    CONFLICTS = "CONFLICTS"
    ENHANCES = "ENHANCES"


class RuleEngineError(Exception):
    """Base class for rule registration errors."""


class DuplicateRuleName(RuleEngineError):
    def __init__(self, name: str):
        super().__init__(f"Rule with name {name!r} already exists")
        self.name = name


class RuleNotFound(RuleEngineError, KeyError):
    def __init__(self, name: str):
        super().__init__(f"Rule {name!r} not found")
        self.name = name

    def __str__(self) -> str:
        return self.args[0]


class DependencyCycle(RuleEngineError):
    def __init__(self, rule_name: str, target: str):
        super().__init__(
            f"Adding REQUIRES {rule_name!r} -> {target!r} would create a circular dependency"
        )
        self.rule_name = rule_name
        self.target = target


@dataclass(frozen=True)
class RuleResult:
    rule_name: str
    is_valid: bool
    message: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.is_valid and not self.message:
            raise ValueError(f"Failing result for {self.rule_name!r} needs a message")

    @classmethod
    def passed(cls, rule_name: str) -> "RuleResult":
        return cls(rule_name, True)

    @classmethod
    def failed(cls, rule_name: str, message: str) -> "RuleResult":
        return cls(rule_name, False, message)


class Rule(ABC):
    """A single lineup check.

    Subclasses set ``name``/``priority`` as class attributes and implement
    :meth:`check`. Rules hold no per-lineup state.
    """

    name: str = ""
    priority: RulePriority = RulePriority.MEDIUM

    def __init__(
        self,
        *,
        name: Optional[str] = None,
        priority: Optional[RulePriority] = None,
        enabled: bool = True,
    ):
        if name is not None:
            self.name = name
        if priority is not None:
            self.priority = RulePriority(priority)
        if not self.name:
            self.name = type(self).__name__
        self.enabled = enabled

    @abstractmethod
    def check(self, lineup: Lineup) -> RuleResult:
        """Evaluate the rule against ``lineup``."""

    def validate(self, lineup: Lineup) -> RuleResult:
        if not self.enabled:
            return self.ok()
        return self.check(lineup)

    def ok(self) -> RuleResult:
        return RuleResult.passed(self.name)

    def fail(self, message: str) -> RuleResult:
        return RuleResult.failed(self.name, message)

    def __repr__(self) -> str:
        state = "enabled" if self.enabled else "disabled"
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority.name}, {state})"


class FunctionRule(Rule):
    """Adapt a plain callable into a rule.

    The callable returns ``None``/``True`` to pass, or a message string (or
    ``False``) to fail.
    """

    def __init__(
        self,
        name: str,
        func: Callable[[Lineup], object],
        priority: RulePriority = RulePriority.MEDIUM,
        *,
        enabled: bool = True,
    ):
        super().__init__(name=name, priority=priority, enabled=enabled)
        self._func = func

    def check(self, lineup: Lineup) -> RuleResult:
        outcome = self._func(lineup)
        if isinstance(outcome, RuleResult):
            return outcome
        if outcome is None or outcome is True:
            return self.ok()
        if outcome is False:
            return self.fail(f"{self.name} failed")
        return self.fail(str(outcome))


@dataclass(frozen=True)
class RuleDependency:
    rule_name: str
    dependency_type: DependencyType
    target: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "dependency_type", DependencyType(self.dependency_type))


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    passed_rules: Tuple[RuleResult, ...] = ()
    failed_rules: Tuple[RuleResult, ...] = ()
    warnings: Tuple[RuleResult, ...] = ()
    total_rules_checked: int = 0

    @property
    def failure_count(self) -> int:
        return len(self.failed_rules)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    @property
    def error_messages(self) -> List[str]:
        return [r.message for r in self.failed_rules if r.message]

    @property
    def warning_messages(self) -> List[str]:
        return [r.message for r in self.warnings if r.message]

    def summary(self) -> str:
        status = "VALID" if self.is_valid else "INVALID"
        return (
            f"{status}: {len(self.passed_rules)} passed, {self.failure_count} failed, "
            f"{self.warning_count} warnings ({self.total_rules_checked} rules checked)"
        )


@dataclass
class RuleEngineStats:
    total_rules: int
    enabled_rules: int
    dependency_count: int
    rules_by_priority: Dict[RulePriority, int] = field(default_factory=dict)


class RuleEngine:
    """Ordered registry of rules evaluated against a single lineup."""

    def __init__(self, rules: Iterable[Rule] = ()):
        self._rules: List[Rule] = []
        self._index: Dict[str, int] = {}
        self._dependencies: List[RuleDependency] = []
        for rule in rules:
            self.add_rule(rule)

    # ------------------------------------------------------------------
    # registration

    def add_rule(self, rule: Rule) -> None:
        if rule.name in self._index:
            raise DuplicateRuleName(rule.name)
        self._index[rule.name] = len(self._rules)
        self._rules.append(rule)
        logger.debug("Registered rule %s (%s)", rule.name, rule.priority.name)

    def remove_rule(self, name: str) -> bool:
        idx = self._index.get(name)
        if idx is None:
            return False
        del self._rules[idx]
        self._index = {rule.name: i for i, rule in enumerate(self._rules)}
        self._dependencies = [
            dep for dep in self._dependencies if dep.rule_name != name and dep.target != name
        ]
        return True

    def get_rule(self, name: str) -> Optional[Rule]:
        idx = self._index.get(name)
        return self._rules[idx] if idx is not None else None

    def _require(self, name: str) -> Rule:
        rule = self.get_rule(name)
        if rule is None:
            raise RuleNotFound(name)
        return rule

    def enable_rule(self, name: str) -> None:
        self._require(name).enabled = True

    def disable_rule(self, name: str) -> None:
        self._require(name).enabled = False

    def set_priority_enabled(self, priority: RulePriority, enabled: bool) -> int:
        changed = 0
        for rule in self._rules:
            if rule.priority == priority and rule.enabled != enabled:
                rule.enabled = enabled
                changed += 1
        return changed

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return tuple(self._rules)

    @property
    def rule_count(self) -> int:
        return len(self._rules)

    @property
    def enabled_rule_count(self) -> int:
        return sum(1 for rule in self._rules if rule.enabled)

    def get_rules_by_priority(self, priority: RulePriority) -> List[Rule]:
        return [rule for rule in self._rules if rule.priority == priority]

    def count_rules_by_priority(self) -> Dict[RulePriority, int]:
        counts = {priority: 0 for priority in RulePriority}
        for rule in self._rules:
            counts[rule.priority] += 1
        return counts

    def stats(self) -> RuleEngineStats:
        return RuleEngineStats(
            total_rules=self.rule_count,
            enabled_rules=self.enabled_rule_count,
            dependency_count=len(self._dependencies),
            rules_by_priority=self.count_rules_by_priority(),
        )

    # ------------------------------------------------------------------
    # dependencies

    def add_dependency(self, dependency: RuleDependency) -> None:
        """Register an edge without endpoint or cycle checks."""

        self._dependencies.append(dependency)

    def add_dependency_with_validation(self, dependency: RuleDependency) -> None:
        self._require(dependency.rule_name)
        self._require(dependency.target)
        if dependency.dependency_type is DependencyType.REQUIRES and self._reaches(
            dependency.target, dependency.rule_name
        ):
            raise DependencyCycle(dependency.rule_name, dependency.target)
        self.add_dependency(dependency)

    @property
    def dependencies(self) -> Tuple[RuleDependency, ...]:
        return tuple(self._dependencies)

    def dependencies_for(self, rule_name: str) -> List[RuleDependency]:
        return [dep for dep in self._dependencies if dep.rule_name == rule_name]

    def _reaches(self, start: str, goal: str) -> bool:
        """True when ``goal`` is reachable from ``start`` along REQUIRES edges."""

        stack = [start]
        seen: Set[str] = set()
        while stack:
            current = stack.pop()
            if current == goal:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(
                dep.target
                for dep in self._dependencies
                if dep.rule_name == current and dep.dependency_type is DependencyType.REQUIRES
            )
        return False

    def _dependencies_allow(self, rule: Rule, passed: Set[str]) -> bool:
        for dep in self.dependencies_for(rule.name):
            if dep.dependency_type is DependencyType.REQUIRES and dep.target not in passed:
                return False
            if dep.dependency_type is DependencyType.CONFLICTS and dep.target in passed:
                return False
        return True

    # ------------------------------------------------------------------
    # evaluation

    def validate_lineup(self, lineup: Lineup) -> ValidationResult:
        """Run every rule in priority order and aggregate the outcome.

        Disabled rules and rules gated off by a dependency count as passed
        without running. A rule that raises is recorded as a failure and
        always invalidates the lineup.
        """

        ordered = sorted(self._rules, key=lambda r: r.priority)
        passed: List[RuleResult] = []
        failed: List[RuleResult] = []
        warnings: List[RuleResult] = []
        passed_names: Set[str] = set()
        is_valid = True

        for rule in ordered:
            if not rule.enabled or not self._dependencies_allow(rule, passed_names):
                passed.append(rule.ok())
                passed_names.add(rule.name)
                continue

            try:
                result = rule.check(lineup)
            except Exception as exc:
                logger.warning("Rule %s raised during validation", rule.name, exc_info=True)
                failed.append(RuleResult.failed(rule.name, f"Rule validation error: {exc}"))
                is_valid = False
                continue

            if result.is_valid:
                passed.append(result)
                passed_names.add(rule.name)
            elif rule.priority.is_blocking:
                failed.append(result)
                is_valid = False
            else:
                warnings.append(result)

        return ValidationResult(
            is_valid=is_valid,
            passed_rules=tuple(passed),
            failed_rules=tuple(failed),
            warnings=tuple(warnings),
            total_rules_checked=len(ordered),
        )

    def is_valid(self, lineup: Lineup) -> bool:
        return self.validate_lineup(lineup).is_valid

    def __repr__(self) -> str:
        return f"RuleEngine(rules={self.rule_count}, enabled={self.enabled_rule_count})"
