"""
Runs registered rules against a context and aggregates their findings.

Checks run sequentially in registration order; the access trace is reset
before each one. Violations suppressed by an ignore directive for the rule's
id are dropped. A check that raises is recorded as a `RuleFailure` and every
other check still runs.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..config import LinterSettings, get_settings
from ..logging import log_rule_operation
from ..openapi.parser import Dialect
from ..openapi.pointer import JsonPointer
from .base import BaseRule, Severity, Violation
from .context import Context, create_context
from .registry import RuleRegistry, default_registry

logger = logging.getLogger(__name__)


class RuleResult(BaseModel):
    """A violation together with the rule that reported it."""
    rule_id: str
    title: str
    severity: Severity
    rule_set: str
    description: str
    pointer: Optional[JsonPointer] = None

    def to_violation(self) -> Violation:
        return Violation(description=self.description, pointer=self.pointer)


class RuleFailure(BaseModel):
    """A check that raised instead of returning violations."""
    rule_id: str
    check: str
    error: str


class ValidationReport(BaseModel):
    dialect: Optional[Dialect] = None
    validation_time: datetime
    results: List[RuleResult] = Field(default_factory=list)
    failures: List[RuleFailure] = Field(default_factory=list)
    rules_checked: List[str] = Field(default_factory=list)
    ignored_count: int = 0
    summary: Dict[str, int] = Field(default_factory=dict)

    def has_failures(self) -> bool:
        """Check if any rule check raised."""
        return bool(self.failures)

    def results_by_severity(self, severity: Severity) -> List[RuleResult]:
        return [result for result in self.results if result.severity == severity]

    def violations(self) -> List[Violation]:
        return [result.to_violation() for result in self.results]


class RuleExecutor:
    """Validates documents with the rules of a registry."""

    def __init__(self, registry: Optional[RuleRegistry] = None, settings: Optional[LinterSettings] = None):
        self.settings = settings or get_settings()
        self.registry = registry if registry is not None else default_registry(self.settings)

    def validate(self, content: str, dialect: Optional[Dialect] = None) -> Optional[ValidationReport]:
        """Validate raw document text; ``None`` if it cannot be parsed."""
        context = create_context(content, dialect, self.settings)
        if context is None:
            logger.info("Document could not be parsed, no validation performed")
            return None
        return self.validate_context(context)

    def validate_context(self, context: Context) -> ValidationReport:
        """Run every applicable rule against ``context``."""
        min_severity = Severity(self.settings.min_severity)
        results: List[RuleResult] = []
        failures: List[RuleFailure] = []
        rules_checked: List[str] = []
        ignored = 0

        for rule in self.registry.rules(enabled_only=True):
            if rule.id in self.settings.disabled_rules:
                continue
            if not rule.severity.at_least(min_severity):
                logger.debug(f"Skipping rule {rule.id}: {rule.severity.value} is below {min_severity.value}")
                continue

            rules_checked.append(rule.id)
            for name, check_function in rule.checks():
                context.recorder.reset()
                try:
                    violations = [v for v in check_function(context) or [] if v is not None]
                    malformed = [v for v in violations if not isinstance(v, Violation)]
                    if malformed:
                        raise TypeError(f"Check returned {type(malformed[0]).__name__} instead of Violation")
                except Exception as e:
                    logger.error(
                        f"Check {type(rule).__name__}.{name} of rule {rule.id} failed: {e}",
                        exc_info=True,
                        extra={"rule_id": rule.id, "check": name, "dialect": context.dialect.value},
                    )
                    failures.append(RuleFailure(rule_id=rule.id, check=name, error=f"{type(e).__name__}: {e}"))
                    continue

                for violation in violations:
                    if violation.pointer is not None and context.is_ignored(violation.pointer, rule.id):
                        ignored += 1
                        continue
                    results.append(self._result(rule, violation))
                log_rule_operation(
                    logger,
                    f"Check {name} of rule {rule.id} returned {len(violations)} violations",
                    rule_id=rule.id,
                    check=name,
                    level=logging.DEBUG,
                )

        summary = {
            'total_violations': len(results),
            'failures': len(failures),
            'ignored': ignored,
        }
        for severity in Severity:
            summary[severity.value.lower()] = len([r for r in results if r.severity == severity])

        logger.info(
            f"Validated {context.dialect.value} document with {len(rules_checked)} rules: "
            f"{len(results)} violations, {ignored} ignored, {len(failures)} failed checks"
        )

        return ValidationReport(
            dialect=context.dialect,
            validation_time=datetime.now(timezone.utc),
            results=results,
            failures=failures,
            rules_checked=rules_checked,
            ignored_count=ignored,
            summary=summary,
        )

    @staticmethod
    def _result(rule: BaseRule, violation: Violation) -> RuleResult:
        return RuleResult(
            rule_id=rule.id,
            title=rule.title,
            severity=rule.severity,
            rule_set=rule.rule_set.id,
            description=violation.description,
            pointer=violation.pointer,
        )
