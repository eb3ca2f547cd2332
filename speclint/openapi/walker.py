"""
Enumeration of schemas and headers reachable from document nodes.

All walkers are generators: iterating again restarts the walk. A single
enumeration shares one set of visited node ids, so every distinct schema is
produced once, cycles introduced by resolved references terminate, and the
output follows declaration order.
"""

from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Set

from .models import (
    ApiResponse,
    Components,
    Header,
    MediaType,
    Node,
    OpenAPI,
    Operation,
    Parameter,
    PathItem,
    RequestBody,
    Schema,
)


@dataclass
class SchemaInfo:
    """A schema together with the node that holds it and its property name, if any."""
    schema: Schema
    parent: Any = None
    name: Optional[str] = None


@dataclass
class HeaderElement:
    name: str
    element: Node


def is_enum(schema: Schema) -> bool:
    """A non-empty ``enum`` means the schema is a closed, non-extensible enum."""
    return bool(schema.enum)


def walk_schema(
    schema: Optional[Schema],
    parent: Any = None,
    name: Optional[str] = None,
    include_self: bool = True,
    visited: Optional[Set[int]] = None,
) -> Iterator[SchemaInfo]:
    """Yield ``schema`` (optionally) and every schema nested below it."""
    if visited is None:
        visited = set()
    if not isinstance(schema, Schema) or schema.node_id in visited:
        return
    visited.add(schema.node_id)

    if include_self:
        yield SchemaInfo(schema, parent, name)

    yield from walk_schema(schema.items, schema, None, True, visited)
    for property_name, prop in (schema.properties or {}).items():
        yield from walk_schema(prop, schema, property_name, True, visited)
    yield from _additional_properties(schema, visited)
    for branches in (schema.all_of, schema.one_of, schema.any_of):
        for branch in branches or []:
            yield from walk_schema(branch, schema, None, True, visited)
    yield from walk_schema(schema.not_, schema, None, True, visited)


def _additional_properties(schema: Schema, visited: Set[int]) -> Iterator[SchemaInfo]:
    additional = schema.additional_properties
    if isinstance(additional, Schema):
        yield from walk_schema(additional, schema, None, True, visited)
    elif isinstance(additional, Mapping):
        # Map-shaped: property name -> schema
        for property_name, prop in additional.items():
            yield from walk_schema(prop, schema, str(property_name), True, visited)


def media_type_schemas(media_type: MediaType, visited: Optional[Set[int]] = None) -> Iterator[SchemaInfo]:
    if visited is None:
        visited = set()
    yield from walk_schema(media_type.schema_, media_type, None, True, visited)


def _content_schemas(content: Optional[Mapping[str, MediaType]], visited: Set[int]) -> Iterator[SchemaInfo]:
    for media_type in (content or {}).values():
        yield from media_type_schemas(media_type, visited)


def parameter_schemas(
    parameter: Parameter,
    name: Optional[str] = None,
    visited: Optional[Set[int]] = None,
) -> Iterator[SchemaInfo]:
    if visited is None:
        visited = set()
    yield from walk_schema(parameter.schema_, parameter, name, True, visited)
    yield from _content_schemas(parameter.content, visited)


def header_schemas(header: Header, name: Optional[str] = None, visited: Optional[Set[int]] = None) -> Iterator[SchemaInfo]:
    if visited is None:
        visited = set()
    yield from walk_schema(header.schema_, header, name, True, visited)
    yield from _content_schemas(header.content, visited)


def request_body_schemas(body: RequestBody, visited: Optional[Set[int]] = None) -> Iterator[SchemaInfo]:
    if visited is None:
        visited = set()
    yield from _content_schemas(body.content, visited)


def response_schemas(response: ApiResponse, visited: Optional[Set[int]] = None) -> Iterator[SchemaInfo]:
    if visited is None:
        visited = set()
    for header_name, header in (response.headers or {}).items():
        yield from header_schemas(header, header_name, visited)
    yield from _content_schemas(response.content, visited)


def operation_schemas(operation: Operation, visited: Optional[Set[int]] = None) -> Iterator[SchemaInfo]:
    """Schemas of an operation's parameters, request body and responses."""
    if visited is None:
        visited = set()
    for parameter in operation.parameters or []:
        yield from parameter_schemas(parameter, None, visited)
    if operation.request_body is not None:
        yield from request_body_schemas(operation.request_body, visited)
    for response in (operation.responses or {}).values():
        yield from response_schemas(response, visited)


def path_item_schemas(path_item: PathItem, visited: Optional[Set[int]] = None) -> Iterator[SchemaInfo]:
    if visited is None:
        visited = set()
    for parameter in path_item.parameters or []:
        yield from parameter_schemas(parameter, None, visited)
    for _, operation in path_item.operations():
        yield from operation_schemas(operation, visited)


def component_schemas(components: Components, visited: Optional[Set[int]] = None) -> Iterator[SchemaInfo]:
    if visited is None:
        visited = set()
    for name, schema in (components.schemas or {}).items():
        yield from walk_schema(schema, components, name, True, visited)
    for response in (components.responses or {}).values():
        yield from response_schemas(response, visited)
    for name, parameter in (components.parameters or {}).items():
        yield from parameter_schemas(parameter, name, visited)
    for body in (components.request_bodies or {}).values():
        yield from request_body_schemas(body, visited)
    for name, header in (components.headers or {}).items():
        yield from header_schemas(header, name, visited)


def all_schemas(api: OpenAPI) -> Iterator[SchemaInfo]:
    """Every schema of the document: component definitions first, then paths."""
    visited: Set[int] = set()
    if api.components is not None:
        yield from component_schemas(api.components, visited)
    for path_item in (api.paths or {}).values():
        yield from path_item_schemas(path_item, visited)


def all_headers(api: OpenAPI) -> Iterator[HeaderElement]:
    """Header parameters and response headers, each element once."""
    seen: Set[int] = set()

    def fresh(element: Node) -> bool:
        if element.node_id in seen:
            return False
        seen.add(element.node_id)
        return True

    def from_parameters(parameters: Any) -> Iterator[HeaderElement]:
        entries = parameters.items() if isinstance(parameters, Mapping) else ((None, p) for p in parameters or [])
        for key, parameter in entries:
            if parameter.in_ == "header" and fresh(parameter):
                yield HeaderElement(parameter.name or key or "", parameter)

    def from_responses(responses: Any) -> Iterator[HeaderElement]:
        for response in responses or []:
            for name, header in (response.headers or {}).items():
                if fresh(header):
                    yield HeaderElement(name, header)

    components = api.components
    if components is not None:
        yield from from_parameters(components.parameters or {})
        for name, header in (components.headers or {}).items():
            if fresh(header):
                yield HeaderElement(name, header)
        yield from from_responses((components.responses or {}).values())

    for path_item in (api.paths or {}).values():
        yield from from_parameters(path_item.parameters)
        for _, operation in path_item.operations():
            yield from from_parameters(operation.parameters)
            yield from from_responses((operation.responses or {}).values())
