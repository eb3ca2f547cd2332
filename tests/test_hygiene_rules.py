"""
Tests for the specification hygiene rules.
"""

import pytest

from speclint.openapi.models import OpenAPI
from speclint.openapi.pointer import JsonPointer
from speclint.rules.base import Violation
from speclint.rules.catalog.hygiene import NoProtocolInHostRule, NoUnusedDefinitionsRule
from speclint.rules.context import Context


class TestNoProtocolInHostRule:
    """Test cases for rule M008."""

    @pytest.fixture
    def rule(self):
        return NoProtocolInHostRule()

    def test_empty_specification(self, rule):
        assert rule.validate(Context(OpenAPI())) == []

    def test_server_without_protocol(self, rule, openapi_context):
        context = openapi_context("""
            openapi: 3.0.0
            servers:
              - url: example.com
        """)
        assert rule.validate(context) == []

    @pytest.mark.parametrize("url", ["https://example.com", "http://example.com"])
    def test_server_with_protocol(self, rule, openapi_context, url):
        context = openapi_context(f"""
            openapi: 3.0.0
            servers:
              - url: {url}
        """)
        assert rule.validate(context) == [
            Violation(
                description=(
                    "Information about protocol should be placed in schema. "
                    f"Current host value '{url}' violates this rule"
                ),
                pointer=JsonPointer.compile("/servers/0"),
            )
        ]

    def test_only_offending_servers(self, rule, openapi_context):
        context = openapi_context("""
            openapi: 3.0.0
            servers:
              - url: /v1
              - url: https://example.com/v1
        """)
        assert [str(v.pointer) for v in rule.validate(context)] == ["/servers/1"]

    def test_swagger_host_without_protocol(self, rule, swagger_context):
        context = swagger_context("""
            swagger: "2.0"
            host: test.example.com
            schemes:
              - https
        """)
        assert rule.validate(context) == []

    def test_swagger_host_with_protocol(self, rule, swagger_context):
        context = swagger_context("""
            swagger: "2.0"
            host: https://test.example.com
        """)
        violations = rule.validate(context)
        assert len(violations) == 1
        assert str(violations[0].pointer) == "/host"
        assert "'https://test.example.com'" in violations[0].description


class TestNoUnusedDefinitionsRule:
    """Test cases for rule S005."""

    @pytest.fixture
    def rule(self):
        return NoUnusedDefinitionsRule()

    def test_all_definitions_used(self, rule, openapi_context):
        context = openapi_context("""
            openapi: 3.0.0
            paths:
              /pets:
                get:
                  parameters:
                    - $ref: '#/components/parameters/Limit'
                  responses:
                    "200":
                      description: ok
                      content:
                        application/json:
                          schema:
                            $ref: '#/components/schemas/Pet'
            components:
              schemas:
                Pet:
                  type: object
                  properties:
                    owner:
                      $ref: '#/components/schemas/Owner'
                Owner:
                  type: object
              parameters:
                Limit:
                  name: limit
                  in: query
        """)
        assert rule.validate(context) == []

    def test_one_of_two_schemas_unused(self, rule, openapi_context):
        context = openapi_context("""
            openapi: 3.0.0
            paths:
              /pets:
                get:
                  responses:
                    "200":
                      description: ok
                      content:
                        application/json:
                          schema:
                            $ref: '#/components/schemas/Pet'
            components:
              schemas:
                Pet:
                  type: object
                Unused:
                  type: object
        """)
        assert rule.validate(context) == [
            Violation(
                description="Unused schema definition: /components/schemas/Unused",
                pointer=JsonPointer.compile("/components/schemas/Unused"),
            )
        ]

    def test_unused_parameter(self, rule, openapi_context):
        context = openapi_context("""
            openapi: 3.0.0
            paths:
              /pets:
                parameters:
                  - $ref: '#/components/parameters/FlowId'
                get:
                  responses:
                    "204":
                      description: ok
            components:
              parameters:
                FlowId:
                  name: X-Flow-Id
                  in: header
                Limit:
                  name: limit
                  in: query
        """)
        assert rule.validate(context) == [
            Violation(
                description="Unused parameter definition: /components/parameters/Limit",
                pointer=JsonPointer.compile("/components/parameters/Limit"),
            )
        ]

    def test_alias_of_used_schema_is_used(self, rule, openapi_context):
        context = openapi_context("""
            openapi: 3.0.0
            paths:
              /pets:
                get:
                  responses:
                    "200":
                      description: ok
                      content:
                        application/json:
                          schema:
                            $ref: '#/components/schemas/A'
            components:
              schemas:
                A:
                  $ref: '#/components/schemas/B'
                B:
                  type: object
        """)
        assert rule.validate(context) == []

    def test_alias_of_used_parameter_is_used(self, rule, openapi_context):
        context = openapi_context("""
            openapi: 3.0.0
            paths:
              /pets:
                get:
                  parameters:
                    - $ref: '#/components/parameters/PageSize'
                  responses:
                    "204":
                      description: ok
            components:
              parameters:
                PageSize:
                  $ref: '#/components/parameters/Limit'
                Limit:
                  name: limit
                  in: query
        """)
        assert rule.validate(context) == []

    def test_swagger_pointers(self, rule, swagger_context):
        context = swagger_context("""
            swagger: "2.0"
            paths:
              /pets:
                get:
                  parameters:
                    - $ref: '#/parameters/Limit'
                  responses:
                    200:
                      description: ok
                      schema:
                        type: array
                        items:
                          $ref: '#/definitions/Pet'
            definitions:
              Pet:
                type: object
              PetName:
                type: string
            parameters:
              Limit:
                name: limit
                in: query
                type: integer
              FlowId:
                name: X-Flow-Id
                in: header
                type: string
        """)
        pointers = {str(v.pointer) for v in rule.validate(context)}
        assert pointers == {"/definitions/PetName", "/parameters/FlowId"}
