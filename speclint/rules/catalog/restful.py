"""Rules from the RESTful API guidelines."""

from typing import List

from ...openapi.walker import all_schemas, is_enum
from ..base import BaseRule, RuleDetails, Severity, Violation, check
from ..context import Context
from .rule_sets import RESTFUL


class ExtensibleEnumRule(BaseRule):
    """Enumerations should be open-ended (``x-extensible-enum``) rather than a closed ``enum``."""

    details = RuleDetails(
        id="107",
        title="Prefer Compatible Extensions",
        severity=Severity.SHOULD,
        rule_set=RESTFUL,
    )

    @check
    def validate(self, context: Context) -> List[Violation]:
        return [
            context.violation("Schema is not an extensible enum", info.schema)
            for info in all_schemas(context.unrecorded_api)
            if is_enum(info.schema)
        ]


class SuccessResponseAsJsonObjectRule(BaseRule):
    details = RuleDetails(
        id="110",
        title="Response As JSON Object",
        severity=Severity.MUST,
        rule_set=RESTFUL,
    )

    description = "Always return JSON objects as top-level data structures to support extensibility"

    @check
    def check_json_object_is_used_as_success_response_type(self, context: Context) -> List[Violation]:
        violations = []
        for path_item in context.recorder.each(context.api, "paths"):
            for _, operation in path_item.operations():
                for code, response in (operation.responses or {}).items():
                    if not _is_success(code):
                        continue
                    for media_type, content in (response.content or {}).items():
                        if "json" not in media_type or content.schema_ is None:
                            continue
                        if _is_object_or_untyped(content.schema_.type):
                            continue
                        violations.append(context.violation(self.description, content.schema_))
        return violations


def _is_success(code: str) -> bool:
    return code.isdigit() and 200 <= int(code) <= 299


def _is_object_or_untyped(schema_type) -> bool:
    if isinstance(schema_type, list):
        return not schema_type or "object" in schema_type
    return not schema_type or schema_type == "object"
