"""
Reverse index from document nodes to their JSON pointers.

The index is built once per document by a depth-first walk. Child relations
come from an explicit traversal table keyed by node type, in a fixed order,
so the walk is deterministic for an unchanged document. Vendor extensions
are walked generically afterwards: they are not typed, but nodes and ignore
directives nested inside them still need a location.

After reference resolution a node can be reachable through several paths
(and through cycles). The first path the walk discovers wins and the node is
not descended again, so every node has exactly one *recorded* pointer even
though it may have several valid ones.
"""

import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set, Tuple, Type

from .legacy import (
    SwaggerDocument,
    SwaggerHeader,
    SwaggerItems,
    SwaggerOperation,
    SwaggerParameter,
    SwaggerPathItem,
    SwaggerResponse,
)
from .models import (
    HTTP_METHODS,
    ApiResponse,
    Components,
    Header,
    Info,
    MediaType,
    Node,
    OpenAPI,
    Operation,
    Parameter,
    PathItem,
    RequestBody,
    Schema,
    Server,
    Tag,
)
from .pointer import EMPTY, JsonPointer

logger = logging.getLogger(__name__)

DEFAULT_IGNORE_EXTENSION = "x-speclint-ignore"

# (attribute, serialized token) pairs
Relations = Tuple[Tuple[str, str], ...]


def _relations(node_type: Type[Node], *attributes: str) -> Relations:
    fields = node_type.model_fields
    return tuple((attribute, fields[attribute].alias or attribute) for attribute in attributes)


# Definitions come before usages so that a node shared through a resolved
# reference is located at its definition.
TRAVERSAL_TABLE: Dict[Type[Node], Relations] = {
    OpenAPI: _relations(OpenAPI, "info", "servers", "tags", "components", "paths"),
    Info: (),
    Server: (),
    Tag: (),
    Components: _relations(Components, "schemas", "responses", "parameters", "request_bodies", "headers"),
    PathItem: _relations(PathItem, *HTTP_METHODS, "servers", "parameters"),
    Operation: _relations(Operation, "parameters", "request_body", "responses"),
    Parameter: _relations(Parameter, "schema_", "content"),
    Header: _relations(Header, "schema_", "content"),
    RequestBody: _relations(RequestBody, "content"),
    ApiResponse: _relations(ApiResponse, "headers", "content"),
    MediaType: _relations(MediaType, "schema_"),
    Schema: _relations(
        Schema, "items", "properties", "additional_properties", "all_of", "one_of", "any_of", "not_"
    ),
    SwaggerDocument: _relations(SwaggerDocument, "info", "tags", "definitions", "parameters", "responses", "paths"),
    SwaggerPathItem: _relations(SwaggerPathItem, "get", "put", "post", "delete", "options", "head", "patch", "parameters"),
    SwaggerOperation: _relations(SwaggerOperation, "parameters", "responses"),
    SwaggerParameter: _relations(SwaggerParameter, "schema_", "items"),
    SwaggerResponse: _relations(SwaggerResponse, "schema_", "headers"),
    SwaggerHeader: _relations(SwaggerHeader, "items"),
    SwaggerItems: _relations(SwaggerItems, "items"),
}


def relations_for(node: Node) -> Relations:
    """Look up the child relations of a node, honouring subclasses."""
    for node_type in type(node).__mro__:
        relations = TRAVERSAL_TABLE.get(node_type)
        if relations is not None:
            return relations
    return ()


def child_for_token(value: Any, token: str) -> Any:
    """Step from ``value`` to its child named by a single pointer token."""
    if isinstance(value, Node):
        for attribute, relation_token in relations_for(value):
            if relation_token == token:
                return getattr(value, attribute)
        for name, field in type(value).model_fields.items():
            if (field.alias or name) == token:
                return getattr(value, name)
        return (value.model_extra or {}).get(token)
    if isinstance(value, Mapping):
        return value.get(token)
    if isinstance(value, list):
        if token.isdigit() and int(token) < len(value):
            return value[int(token)]
        return None
    return None


def parse_directive(value: Any) -> Set[str]:
    """Read the rule ids named by an ignore directive value."""
    if isinstance(value, (str, int)):
        return {str(value)}
    if isinstance(value, (list, tuple, set)):
        return {str(item) for item in value if isinstance(item, (str, int))}
    return set()


class ReverseIndex:
    """Identity-keyed map from document nodes to JSON pointers."""

    def __init__(self, root: Node, ignore_extension: str = DEFAULT_IGNORE_EXTENSION):
        self.root = root
        self.ignore_extension = ignore_extension
        self._pointers: Dict[int, JsonPointer] = {}
        self._nodes: Dict[int, Node] = {}
        self._directives: Dict[JsonPointer, Set[str]] = {}

    @classmethod
    def build(cls, root: Node, ignore_extension: str = DEFAULT_IGNORE_EXTENSION) -> "ReverseIndex":
        index = cls(root, ignore_extension)
        index._walk()
        logger.debug(
            f"Indexed {len(index._pointers)} nodes of {type(root).__name__}, "
            f"{len(index._directives)} ignore directives"
        )
        return index

    def pointer_for(self, node: Any) -> Optional[JsonPointer]:
        """Pointer recorded for ``node``, or ``None`` when it was never indexed."""
        if not isinstance(node, Node):
            return None
        return self._pointers.get(node.node_id)

    def node_at(self, pointer: JsonPointer) -> Any:
        """Resolve ``pointer`` against the indexed document."""
        value: Any = self.root
        for token in pointer.tokens:
            value = child_for_token(value, token)
            if value is None:
                return None
        return value

    def is_ignored(self, pointer: JsonPointer, rule_id: str) -> bool:
        """True if ``pointer`` or one of its ancestors ignores ``rule_id``."""
        return any(rule_id in self._directives.get(ancestor, ()) for ancestor in pointer.ancestors())

    @property
    def directives(self) -> Dict[JsonPointer, Set[str]]:
        return {pointer: set(rule_ids) for pointer, rule_ids in self._directives.items()}

    def items(self) -> Iterator[Tuple[Node, JsonPointer]]:
        for node_id, pointer in self._pointers.items():
            yield self._nodes[node_id], pointer

    def __contains__(self, node: object) -> bool:
        return isinstance(node, Node) and node.node_id in self._pointers

    def __len__(self) -> int:
        return len(self._pointers)

    def _walk(self) -> None:
        stack: List[Tuple[Any, JsonPointer]] = [(self.root, EMPTY)]
        raw_seen: Set[int] = set()

        while stack:
            value, pointer = stack.pop()
            if isinstance(value, Node):
                if value.node_id in self._pointers:
                    continue
                self._pointers[value.node_id] = pointer
                self._nodes[value.node_id] = value
                children = list(self._node_children(value, pointer))
            else:
                # Raw extension data; may itself be cyclic through YAML aliases
                if id(value) in raw_seen:
                    continue
                raw_seen.add(id(value))
                children = list(self._raw_children(value, pointer))
            stack.extend(reversed(children))

    def _node_children(self, node: Node, pointer: JsonPointer) -> Iterator[Tuple[Any, JsonPointer]]:
        for attribute, token in relations_for(node):
            yield from _expand(getattr(node, attribute), pointer.append(token))

        extensions = node.extensions
        if self.ignore_extension in extensions:
            self._add_directive(pointer, extensions[self.ignore_extension])
        for name, value in extensions.items():
            if name != self.ignore_extension and isinstance(value, (Node, Mapping, list)):
                yield value, pointer.append(name)
        for token, entries in node.map_extensions.items():
            yield entries, pointer.append(token)

    def _raw_children(self, value: Any, pointer: JsonPointer) -> Iterator[Tuple[Any, JsonPointer]]:
        if isinstance(value, Mapping):
            if self.ignore_extension in value:
                self._add_directive(pointer, value[self.ignore_extension])
            entries = [(key, item) for key, item in value.items() if key != self.ignore_extension]
        else:
            entries = list(enumerate(value))
        for key, item in entries:
            if isinstance(item, (Node, Mapping, list)):
                yield item, pointer.append(key)

    def _add_directive(self, pointer: JsonPointer, value: Any) -> None:
        rule_ids = parse_directive(value)
        if not rule_ids:
            logger.warning(f"Ignoring malformed {self.ignore_extension} at '{pointer}': {value!r}")
            return
        self._directives.setdefault(pointer, set()).update(rule_ids)


def _expand(value: Any, pointer: JsonPointer) -> Iterator[Tuple[Node, JsonPointer]]:
    """Yield the nodes held by a relation value: a node, a list or a mapping of nodes."""
    if isinstance(value, Node):
        yield value, pointer
    elif isinstance(value, Mapping):
        for key, item in value.items():
            if isinstance(item, Node):
                yield item, pointer.append(key)
    elif isinstance(value, list):
        for position, item in enumerate(value):
            if isinstance(item, Node):
                yield item, pointer.append(position)
