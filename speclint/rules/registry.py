"""
Explicit registry of the rules available to the executor.

Rules are registered one by one (or from a catalog list) by the hosting
application; registration order is the execution order.
"""

import logging
from typing import Dict, Iterable, List, Optional

from ..config import LinterSettings, get_settings
from ..errors import RuleRegistrationError
from .base import BaseRule, RuleSet
from .catalog import CATALOG

logger = logging.getLogger(__name__)


class RuleRegistry:
    """Holds rule instances keyed by rule id."""

    def __init__(self):
        self._rules: Dict[str, BaseRule] = {}

    def register(self, rule: BaseRule) -> BaseRule:
        """Register a rule instance; ids must be unique and every rule needs a check."""
        if not isinstance(rule, BaseRule):
            raise RuleRegistrationError(f"Not a rule: {rule!r}")
        if rule.id in self._rules:
            raise RuleRegistrationError(f"Duplicate rule id '{rule.id}' ({type(rule).__name__})")
        if not rule.check_names():
            raise RuleRegistrationError(f"Rule '{rule.id}' ({type(rule).__name__}) declares no checks")
        self._rules[rule.id] = rule
        logger.debug(f"Registered rule {rule.id} '{rule.title}' of rule set '{rule.rule_set.id}'")
        return rule

    def register_all(self, rules: Iterable[BaseRule]) -> None:
        for rule in rules:
            self.register(rule)

    def rules(self, enabled_only: bool = False) -> List[BaseRule]:
        return [rule for rule in self._rules.values() if rule.enabled or not enabled_only]

    def get(self, rule_id: str) -> Optional[BaseRule]:
        return self._rules.get(rule_id)

    def rule_sets(self) -> List[RuleSet]:
        """Distinct rule sets in order of first registration."""
        seen: Dict[str, RuleSet] = {}
        for rule in self._rules.values():
            seen.setdefault(rule.rule_set.id, rule.rule_set)
        return list(seen.values())

    def by_rule_set(self) -> Dict[str, List[BaseRule]]:
        """Rules partitioned by rule set id."""
        partitions: Dict[str, List[BaseRule]] = {}
        for rule in self._rules.values():
            partitions.setdefault(rule.rule_set.id, []).append(rule)
        return partitions

    def disable_rule(self, rule_id: str) -> None:
        """Disable a rule."""
        if rule_id in self._rules:
            self._rules[rule_id].rule.enabled = False

    def enable_rule(self, rule_id: str) -> None:
        """Enable a rule."""
        if rule_id in self._rules:
            self._rules[rule_id].rule.enabled = True

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __len__(self) -> int:
        return len(self._rules)


def default_registry(settings: Optional[LinterSettings] = None) -> RuleRegistry:
    """Registry with the built-in catalog, honouring ``disabled_rules``."""
    settings = settings or get_settings()
    registry = RuleRegistry()
    registry.register_all(rule_class() for rule_class in CATALOG)
    for rule_id in settings.disabled_rules:
        if rule_id not in registry:
            logger.warning(f"Cannot disable unknown rule '{rule_id}'")
            continue
        registry.disable_rule(rule_id)
    return registry
