"""
General specification hygiene rules.
"""

from typing import List, Set

from ...openapi.models import Parameter, Schema
from ...openapi.walker import path_item_schemas
from ..base import BaseRule, RuleDetails, Severity, Violation, check
from ..context import Context
from .rule_sets import SPECLINT


class NoProtocolInHostRule(BaseRule):
    details = RuleDetails(
        id="M008",
        title="Host should not contain protocol",
        severity=Severity.MUST,
        rule_set=SPECLINT,
    )

    description = "Information about protocol should be placed in schema. Current host value '%s' violates this rule"

    @check
    def validate(self, context: Context) -> List[Violation]:
        return [
            context.violation(self.description % server.url, server)
            for server in context.recorder.each(context.api, "servers")
            if "://" in server.url
        ]


class NoUnusedDefinitionsRule(BaseRule):
    """
    Component schemas and parameters that no path item uses.

    References are resolved before rules run, so usage is decided by node
    identity: a schema is used when it is reachable from a path item, a
    parameter when it appears in a path item's or an operation's parameter list.
    Component entries that only alias another entry (``A: {$ref: B}``) count as
    used together with the entry their usages resolved to.
    """

    details = RuleDetails(
        id="S005",
        title="Do not leave unused definitions",
        severity=Severity.SHOULD,
        rule_set=SPECLINT,
    )

    @check
    def validate(self, context: Context) -> List[Violation]:
        return self._unused_parameters(context) + self._unused_schemas(context)

    def _unused_parameters(self, context: Context) -> List[Violation]:
        used: Set[int] = set()
        for path_item in (context.unrecorded_api.paths or {}).values():
            used.update(parameter.node_id for parameter in path_item.parameters or [])
            for _, operation in path_item.operations():
                used.update(parameter.node_id for parameter in operation.parameters or [])
        _add_aliases(context, used)

        def report(name: str, parameter: Parameter) -> List[Violation]:
            if parameter.node_id in used:
                return []
            pointer = context.pointer_for_value(parameter)
            return context.violations(f"Unused parameter definition: {pointer}", pointer)

        return context.validate_parameters(report)

    def _unused_schemas(self, context: Context) -> List[Violation]:
        visited: Set[int] = set()
        used = {
            info.schema.node_id
            for path_item in (context.unrecorded_api.paths or {}).values()
            for info in path_item_schemas(path_item, visited)
        }
        _add_aliases(context, used)

        def report(name: str, schema: Schema) -> List[Violation]:
            if schema.node_id in used:
                return []
            pointer = context.pointer_for_value(schema)
            return context.violations(f"Unused schema definition: {pointer}", pointer)

        return context.validate_schemas(report)


def _add_aliases(context: Context, used: Set[int]) -> None:
    for node_id in list(used):
        used.update(context.aliases.get(node_id, ()))
