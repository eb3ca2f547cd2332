"""
Tests for the rule executor and validation reports.
"""

import logging
from textwrap import dedent

import pytest

from speclint.config import LinterSettings
from speclint.openapi.parser import Dialect
from speclint.rules.base import BaseRule, RuleDetails, RuleSet, Severity, Violation, check
from speclint.rules.executor import RuleExecutor
from speclint.rules.registry import RuleRegistry

TEST_RULES = RuleSet(id="test", title="Test rules")

DOCUMENT = """
    openapi: 3.0.0
    paths:
      /pets:
        x-speclint-ignore: [T001]
        get:
          responses:
            "200":
              description: ok
      /owners:
        get:
          responses:
            "200":
              description: ok
"""


class EveryOperationRule(BaseRule):
    details = RuleDetails(id="T001", title="Every operation", severity=Severity.MUST, rule_set=TEST_RULES)

    @check
    def operations(self, context):
        return context.validate_operations(lambda method, operation: [context.violation(f"{method} operation")])


class EveryPathRule(BaseRule):
    details = RuleDetails(id="T002", title="Every path", severity=Severity.SHOULD, rule_set=TEST_RULES)

    @check
    def paths(self, context):
        return context.validate_paths(lambda path, item: [context.violation(f"path {path}")])


class BrokenRule(BaseRule):
    details = RuleDetails(id="T003", title="Broken", severity=Severity.MUST, rule_set=TEST_RULES)

    @check
    def explodes(self, context):
        raise KeyError("missing")

    @check
    def still_runs(self, context):
        return [Violation(description="after failure")]


class HintRule(BaseRule):
    details = RuleDetails(id="T004", title="Hint", severity=Severity.HINT, rule_set=TEST_RULES)

    @check
    def root(self, context):
        return [context.violation("hint")]


class NoneRule(BaseRule):
    details = RuleDetails(id="T005", title="Nothing to report", severity=Severity.MUST, rule_set=TEST_RULES)

    @check
    def nothing(self, context):
        return [None]


class MalformedRule(BaseRule):
    details = RuleDetails(id="T006", title="Malformed", severity=Severity.MUST, rule_set=TEST_RULES)

    @check
    def strings(self, context):
        return ["not a violation"]


class TestRuleExecutor:
    """Test cases for RuleExecutor."""

    @pytest.fixture
    def registry(self):
        registry = RuleRegistry()
        registry.register_all([EveryOperationRule(), EveryPathRule(), BrokenRule(), HintRule()])
        return registry

    @pytest.fixture
    def executor(self, registry, settings):
        return RuleExecutor(registry, settings)

    @pytest.fixture
    def context(self, openapi_context):
        return openapi_context(DOCUMENT)

    def _located(self, report):
        return [(r.rule_id, r.description, str(r.pointer)) for r in report.results]

    def test_ignore_directive_only_drops_the_named_rule(self, executor, context):
        report = executor.validate_context(context)
        located = self._located(report)
        assert ("T001", "get operation", "/paths/~1pets/get") not in located
        assert ("T001", "get operation", "/paths/~1owners/get") in located
        assert ("T002", "path /pets", "/paths/~1pets") in located
        assert report.ignored_count == 1

    def test_failing_check_is_isolated(self, executor, context, caplog):
        with caplog.at_level(logging.ERROR):
            report = executor.validate_context(context)
        assert report.has_failures()
        assert [(f.rule_id, f.check) for f in report.failures] == [("T003", "explodes")]
        assert report.failures[0].error.startswith("KeyError")
        rule_ids = {result.rule_id for result in report.results}
        assert rule_ids == {"T001", "T002", "T003", "T004"}
        assert "Check BrokenRule.explodes of rule T003 failed" in caplog.text

    def test_unlocated_violation_is_kept(self, executor, context):
        report = executor.validate_context(context)
        unlocated = [r for r in report.results if r.rule_id == "T003"]
        assert unlocated[0].pointer is None

    def test_trace_does_not_leak_between_checks(self, executor, context):
        report = executor.validate_context(context)
        hint = [r for r in report.results if r.rule_id == "T004"][0]
        assert hint.pointer is None

    def test_results_are_deterministic(self, executor, openapi_context):
        first = executor.validate_context(openapi_context(DOCUMENT))
        second = executor.validate_context(openapi_context(DOCUMENT))
        assert first.violations() == second.violations()
        assert set(first.violations()) == set(second.violations())

    def test_report_summary(self, executor, context):
        report = executor.validate_context(context)
        assert report.rules_checked == ["T001", "T002", "T003", "T004"]
        assert report.summary["total_violations"] == len(report.results)
        assert report.summary["must"] == 2
        assert report.summary["should"] == 2
        assert report.summary["hint"] == 1
        assert report.summary["failures"] == 1
        assert len(report.results_by_severity(Severity.SHOULD)) == 2
        assert report.dialect == Dialect.OPENAPI

    def test_disabled_rule_in_registry(self, registry, settings, context):
        registry.disable_rule("T002")
        report = RuleExecutor(registry, settings).validate_context(context)
        assert "T002" not in report.rules_checked
        assert all(result.rule_id != "T002" for result in report.results)

    def test_disabled_rule_in_settings(self, registry, context):
        settings = LinterSettings(disabled_rules=["T001"])
        report = RuleExecutor(registry, settings).validate_context(context)
        assert "T001" not in report.rules_checked

    def test_minimum_severity(self, registry, context):
        settings = LinterSettings(min_severity="SHOULD")
        report = RuleExecutor(registry, settings).validate_context(context)
        assert report.rules_checked == ["T001", "T002", "T003"]

    def test_validate_text(self, executor):
        report = executor.validate(dedent(DOCUMENT))
        assert report is not None
        assert report.rules_checked == ["T001", "T002", "T003", "T004"]

    def test_unparsable_text(self, executor):
        assert executor.validate("openapi: [unclosed") is None


class TestCheckResults:
    """Test cases for checks that return something other than violations."""

    @pytest.fixture
    def executor(self, settings):
        registry = RuleRegistry()
        registry.register_all([NoneRule(), MalformedRule(), EveryPathRule()])
        return RuleExecutor(registry, settings)

    def test_none_entries_are_dropped(self, executor, openapi_context):
        report = executor.validate_context(openapi_context(DOCUMENT))
        assert all(result.rule_id != "T005" for result in report.results)
        assert "T005" not in {failure.rule_id for failure in report.failures}

    def test_non_violation_is_a_failure(self, executor, openapi_context, caplog):
        with caplog.at_level(logging.ERROR):
            report = executor.validate_context(openapi_context(DOCUMENT))
        assert [(f.rule_id, f.check) for f in report.failures] == [("T006", "strings")]
        assert report.failures[0].error.startswith("TypeError")
        assert {(r.rule_id, r.description) for r in report.results} == {
            ("T002", "path /pets"),
            ("T002", "path /owners"),
        }
        assert "Check MalformedRule.strings of rule T006 failed" in caplog.text


class TestSwaggerDirectives:
    """Test cases for ignore directives in Swagger documents."""

    def test_directive_on_the_paths_map(self, settings, swagger_context):
        registry = RuleRegistry()
        registry.register_all([EveryOperationRule(), EveryPathRule()])
        context = swagger_context("""
            swagger: "2.0"
            paths:
              x-speclint-ignore: [T002]
              /pets:
                get:
                  responses:
                    200:
                      description: ok
        """)
        report = RuleExecutor(registry, settings).validate_context(context)
        located = [(r.rule_id, str(r.pointer)) for r in report.results]
        assert located == [("T001", "/paths/~1pets/get")]
        assert report.ignored_count == 1


class TestBuiltInCatalog:
    """End-to-end validation with the built-in rules."""

    def test_openapi_document(self, settings):
        report = RuleExecutor(settings=settings).validate(dedent("""
            openapi: 3.0.0
            servers:
              - url: https://api.example.com
            paths:
              /pets:
                get:
                  parameters:
                    - name: kind
                      in: query
                      schema:
                        type: string
                        enum: [cat, dog]
                  responses:
                    "200":
                      description: ok
                      content:
                        application/json:
                          schema:
                            type: array
                            items:
                              $ref: '#/components/schemas/Pet'
            components:
              schemas:
                Pet:
                  type: object
                Unused:
                  type: object
                  x-speclint-ignore: S005
        """))
        located = {(r.rule_id, str(r.pointer)) for r in report.results}
        assert located == {
            ("107", "/paths/~1pets/get/parameters/0/schema"),
            ("110", "/paths/~1pets/get/responses/200/content/application~1json/schema"),
            ("M008", "/servers/0"),
        }
        assert report.ignored_count == 1
        assert not report.has_failures()

    def test_swagger_document(self, settings):
        report = RuleExecutor(settings=settings).validate(dedent("""
            swagger: "2.0"
            host: https://api.example.com
            paths:
              /pets:
                get:
                  responses:
                    200:
                      description: ok
                      schema:
                        $ref: '#/definitions/Pet'
            definitions:
              Pet:
                type: object
              Orphan:
                type: object
        """))
        assert report.dialect == Dialect.SWAGGER
        located = {(r.rule_id, str(r.pointer)) for r in report.results}
        assert located == {("M008", "/host"), ("S005", "/definitions/Orphan")}
