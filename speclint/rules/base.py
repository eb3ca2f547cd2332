"""
Rule metadata and the base class concrete rules derive from.

A rule is a class carrying one `RuleDetails` descriptor and one or more
methods marked with `@check`. Each check takes a `Context` and returns a list
of `Violation` objects. Rules hold no state between checks.
"""

from enum import Enum
from typing import TYPE_CHECKING, Callable, ClassVar, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from ..openapi.pointer import JsonPointer

if TYPE_CHECKING:
    from .context import Context

CHECK_MARKER = "__speclint_check__"


class Severity(str, Enum):
    """Severity tiers, most severe first."""
    MUST = "MUST"
    SHOULD = "SHOULD"
    MAY = "MAY"
    HINT = "HINT"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)

    def at_least(self, other: "Severity") -> bool:
        """True if this severity is as severe as ``other`` or more."""
        return self.rank <= Severity(other).rank


class RuleSet(BaseModel):
    """A named group of rules sharing ownership and a guideline document."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    url: Optional[str] = None


class RuleDetails(BaseModel):
    id: str
    title: str
    severity: Severity
    rule_set: RuleSet
    enabled: bool = True


class Violation(BaseModel):
    """One finding: a description and the location it applies to, if known."""
    model_config = ConfigDict(frozen=True)

    description: str
    pointer: Optional[JsonPointer] = None


CheckFunction = Callable[["Context"], List[Violation]]


def check(func: Callable) -> Callable:
    """Mark a rule method as a check."""
    setattr(func, CHECK_MARKER, True)
    return func


class BaseRule:
    """Base class for all rules."""

    details: ClassVar[RuleDetails]

    def __init__(self, rule: Optional[RuleDetails] = None):
        if rule is None:
            rule = type(self).details.model_copy()
        self.rule = rule

    @property
    def id(self) -> str:
        return self.rule.id

    @property
    def title(self) -> str:
        return self.rule.title

    @property
    def severity(self) -> Severity:
        return self.rule.severity

    @property
    def rule_set(self) -> RuleSet:
        return self.rule.rule_set

    @property
    def enabled(self) -> bool:
        return self.rule.enabled

    @classmethod
    def check_names(cls) -> List[str]:
        """Names of the check methods in definition order, base classes first."""
        names: List[str] = []
        for klass in reversed(cls.__mro__):
            for name, attribute in vars(klass).items():
                if getattr(attribute, CHECK_MARKER, False) and name not in names:
                    names.append(name)
        return names

    def checks(self) -> List[Tuple[str, CheckFunction]]:
        return [(name, getattr(self, name)) for name in self.check_names()]

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.rule.id}>"
