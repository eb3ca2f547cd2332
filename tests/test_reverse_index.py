"""
Tests for the reverse index and ignore directives.
"""

import logging
from textwrap import dedent

import pytest

from speclint.openapi.models import Schema
from speclint.openapi.parser import parse_openapi
from speclint.openapi.pointer import EMPTY, JsonPointer
from speclint.openapi.resolver import ReferenceResolver
from speclint.openapi.reverse_index import ReverseIndex, parse_directive

PETS = dedent("""
    openapi: 3.0.0
    info:
      title: Pets
      version: "1.0"
      x-meta:
        owners:
          - team: pets
            x-speclint-ignore: S005
    servers:
      - url: https://api.example.com
    paths:
      /pets/{id}:
        parameters:
          - $ref: '#/components/parameters/PetId'
        get:
          x-speclint-ignore: ["107", "110"]
          responses:
            200:
              description: ok
              content:
                application/json:
                  schema:
                    $ref: '#/components/schemas/Pet'
    components:
      schemas:
        Pet:
          type: object
          x-speclint-ignore: 110
          properties:
            name:
              type: string
            parent:
              $ref: '#/components/schemas/Pet'
      parameters:
        PetId:
          name: id
          in: path
          required: true
          schema:
            type: string
""")


class TestReverseIndex:
    """Test cases for ReverseIndex."""

    @pytest.fixture
    def api(self):
        api = parse_openapi(PETS)
        ReferenceResolver(api).resolve()
        return api

    @pytest.fixture
    def index(self, api):
        return ReverseIndex.build(api)

    def test_every_pointer_resolves_back_to_its_node(self, index):
        assert len(index) > 0
        for node, pointer in index.items():
            assert index.node_at(pointer) is node

    def test_root_and_component_pointers(self, api, index):
        pet = api.components.schemas["Pet"]
        assert index.pointer_for(api) == EMPTY
        assert str(index.pointer_for(pet)) == "/components/schemas/Pet"
        assert str(index.pointer_for(api.servers[0])) == "/servers/0"
        assert str(index.pointer_for(pet.properties["name"])) == "/components/schemas/Pet/properties/name"

    def test_shared_node_is_homed_at_its_definition(self, api, index):
        response = api.paths["/pets/{id}"].get.responses["200"]
        schema = response.content["application/json"].schema_
        assert schema is api.components.schemas["Pet"]
        assert str(index.pointer_for(schema)) == "/components/schemas/Pet"
        parameter = api.paths["/pets/{id}"].parameters[0]
        assert str(index.pointer_for(parameter)) == "/components/parameters/PetId"

    def test_cyclic_schema_is_indexed_once(self, api, index):
        pet = api.components.schemas["Pet"]
        assert pet.properties["parent"] is pet
        assert len([node for node, _ in index.items() if node is pet]) == 1

    def test_unindexed_node_has_no_pointer(self, index):
        orphan = Schema(type="string")
        assert index.pointer_for(orphan) is None
        assert orphan not in index
        assert index.pointer_for("not a node") is None

    def test_node_at_unknown_pointer(self, index):
        assert index.node_at(JsonPointer.compile("/paths/~1missing")) is None
        assert index.node_at(JsonPointer.compile("/servers/7")) is None

    def test_build_is_deterministic(self, api):
        first = {node.node_id: pointer for node, pointer in ReverseIndex.build(api).items()}
        second = {node.node_id: pointer for node, pointer in ReverseIndex.build(api).items()}
        assert first == second

    def test_structurally_equal_nodes_stay_distinct(self):
        api = parse_openapi(dedent("""
            openapi: 3.0.0
            components:
              schemas:
                A:
                  type: string
                B:
                  type: string
        """))
        index = ReverseIndex.build(api)
        assert str(index.pointer_for(api.components.schemas["A"])) == "/components/schemas/A"
        assert str(index.pointer_for(api.components.schemas["B"])) == "/components/schemas/B"


class TestIgnoreDirectives:
    """Test cases for ignore directive lookup."""

    @pytest.fixture
    def index(self):
        api = parse_openapi(PETS)
        ReferenceResolver(api).resolve()
        return ReverseIndex.build(api)

    def test_directive_applies_to_the_node_and_below(self, index):
        operation = JsonPointer.compile("/paths/~1pets~1{id}/get")
        assert index.is_ignored(operation, "107")
        assert index.is_ignored(operation.append("responses", "200"), "110")

    def test_directive_does_not_apply_to_ancestors_or_other_rules(self, index):
        operation = JsonPointer.compile("/paths/~1pets~1{id}/get")
        assert not index.is_ignored(operation.parent, "107")
        assert not index.is_ignored(operation, "M008")

    def test_scalar_directive_value(self, index):
        pet = JsonPointer.compile("/components/schemas/Pet")
        assert index.is_ignored(pet.append("properties", "name"), "110")
        assert not index.is_ignored(pet, "107")

    def test_directive_nested_in_extension_data(self, index):
        owner = JsonPointer.compile("/info/x-meta/owners/0")
        assert index.directives[owner] == {"S005"}
        assert index.is_ignored(owner.append("team"), "S005")

    def test_custom_extension_name(self):
        api = parse_openapi(dedent("""
            openapi: 3.0.0
            x-lint-skip: [M008]
            x-speclint-ignore: ["107"]
        """))
        index = ReverseIndex.build(api, ignore_extension="x-lint-skip")
        assert index.is_ignored(EMPTY, "M008")
        assert not index.is_ignored(EMPTY, "107")

    def test_directive_on_the_paths_map(self):
        api = parse_openapi(dedent("""
            openapi: 3.0.0
            paths:
              x-speclint-ignore: [M008]
              /foo:
                get:
                  responses:
                    x-speclint-ignore: "110"
                    "200":
                      description: ok
        """))
        index = ReverseIndex.build(api)
        paths = JsonPointer.compile("/paths")
        responses = JsonPointer.compile("/paths/~1foo/get/responses")
        assert index.directives[paths] == {"M008"}
        assert index.is_ignored(paths, "M008")
        assert index.is_ignored(JsonPointer.compile("/paths/~1foo/get"), "M008")
        assert not index.is_ignored(EMPTY, "M008")
        assert index.is_ignored(responses.append("200"), "110")
        assert not index.is_ignored(responses.parent, "110")

    def test_malformed_directive_is_skipped(self, caplog):
        api = parse_openapi(dedent("""
            openapi: 3.0.0
            x-speclint-ignore:
              rule: "107"
        """))
        with caplog.at_level(logging.WARNING):
            index = ReverseIndex.build(api)
        assert index.directives == {}
        assert "malformed" in caplog.text

    @pytest.mark.parametrize("value,expected", [
        ("107", {"107"}),
        (110, {"110"}),
        (["107", "M008"], {"107", "M008"}),
        ({"rule": "107"}, set()),
        (None, set()),
    ])
    def test_parse_directive(self, value, expected):
        assert parse_directive(value) == expected
