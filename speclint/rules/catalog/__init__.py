"""Built-in rules, in registration order."""

from typing import List, Type

from ..base import BaseRule
from .hygiene import NoProtocolInHostRule, NoUnusedDefinitionsRule
from .restful import ExtensibleEnumRule, SuccessResponseAsJsonObjectRule
from .rule_sets import RESTFUL, SPECLINT

CATALOG: List[Type[BaseRule]] = [
    ExtensibleEnumRule,
    SuccessResponseAsJsonObjectRule,
    NoProtocolInHostRule,
    NoUnusedDefinitionsRule,
]

__all__ = [
    "CATALOG",
    "RESTFUL",
    "SPECLINT",
    "ExtensibleEnumRule",
    "SuccessResponseAsJsonObjectRule",
    "NoProtocolInHostRule",
    "NoUnusedDefinitionsRule",
]
