"""
Pydantic models for the canonical (OpenAPI v3) document tree.

Every model derives from `Node`. A node is identified by an arena index
assigned when it is constructed; equality and hashing use that index, so two
structurally identical schemas at different locations stay distinct. After
reference resolution the tree may contain cycles, which is why `repr()` of a
node never descends into its children.
"""

from __future__ import annotations

import itertools
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator
from pydantic.alias_generators import to_camel

_arena = itertools.count(1)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


def _is_extension(name: Any) -> bool:
    return isinstance(name, str) and name.startswith("x-")


class Node(BaseModel):
    """Base class of every addressable document node."""

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
        coerce_numbers_to_str=True,
    )

    _node_id: int = PrivateAttr(default_factory=lambda: next(_arena))

    # Serialized names of map-shaped fields (Paths, Responses) that may carry
    # their own x-* entries next to the typed ones
    extensible_maps: ClassVar[Tuple[str, ...]] = ()
    map_extensions: Dict[str, Dict[str, Any]] = Field(default_factory=dict, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _split_map_extensions(cls, data: Any) -> Any:
        if not cls.extensible_maps or not isinstance(data, dict):
            return data
        split: Dict[str, Dict[str, Any]] = {}
        for key in cls.extensible_maps:
            entries = data.get(key)
            if isinstance(entries, dict) and any(_is_extension(name) for name in entries):
                split[key] = {name: value for name, value in entries.items() if _is_extension(name)}
        if not split:
            return data
        data = dict(data)
        for key, extensions in split.items():
            data[key] = {name: value for name, value in data[key].items() if name not in extensions}
        data["mapExtensions"] = split
        return data

    @property
    def node_id(self) -> int:
        return self._node_id

    @property
    def extensions(self) -> Dict[str, Any]:
        """Vendor extensions (``x-*`` keys) declared on this node."""
        extra = self.model_extra or {}
        return {key: value for key, value in extra.items() if key.startswith("x-")}

    def set_extension(self, name: str, value: Any) -> None:
        if not name.startswith("x-"):
            raise ValueError(f"Vendor extension names must start with 'x-': {name}")
        self.set_extra(name, value)

    def set_extra(self, name: str, value: Any) -> None:
        """Store an undeclared document key on this node."""
        if self.__pydantic_extra__ is None:
            self.__pydantic_extra__ = {}
        self.__pydantic_extra__[name] = value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self._node_id == other._node_id

    def __hash__(self) -> int:
        return hash(self._node_id)

    def __repr__(self) -> str:
        label = getattr(self, "name", None) or getattr(self, "ref", None)
        suffix = f" {label!r}" if isinstance(label, str) and label else ""
        return f"<{type(self).__name__} #{self._node_id}{suffix}>"

    __str__ = __repr__


class Schema(Node):
    ref: Optional[str] = Field(default=None, alias="$ref")
    # Not part of the serialized document: back-filled from the components key.
    name: Optional[str] = Field(default=None, exclude=True)
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[Union[str, List[str]]] = None
    format: Optional[str] = None
    enum: Optional[List[Any]] = None
    default: Optional[Any] = None
    nullable: Optional[bool] = None
    read_only: Optional[bool] = None
    write_only: Optional[bool] = None
    required: Optional[List[str]] = None
    items: Optional[Schema] = None
    properties: Optional[Dict[str, Schema]] = None
    additional_properties: Optional[Union[bool, Schema, Dict[str, Schema]]] = Field(
        default=None, union_mode="left_to_right"
    )
    all_of: Optional[List[Schema]] = None
    one_of: Optional[List[Schema]] = None
    any_of: Optional[List[Schema]] = None
    not_: Optional[Schema] = Field(default=None, alias="not")

    @property
    def is_reference(self) -> bool:
        return bool(self.ref)


class MediaType(Node):
    schema_: Optional[Schema] = Field(default=None, alias="schema")


class Header(Node):
    ref: Optional[str] = Field(default=None, alias="$ref")
    description: Optional[str] = None
    required: Optional[bool] = None
    deprecated: Optional[bool] = None
    schema_: Optional[Schema] = Field(default=None, alias="schema")
    content: Optional[Dict[str, MediaType]] = None


class Parameter(Node):
    ref: Optional[str] = Field(default=None, alias="$ref")
    name: Optional[str] = None
    in_: Optional[str] = Field(default=None, alias="in")
    description: Optional[str] = None
    required: Optional[bool] = None
    deprecated: Optional[bool] = None
    allow_empty_value: Optional[bool] = None
    style: Optional[str] = None
    explode: Optional[bool] = None
    schema_: Optional[Schema] = Field(default=None, alias="schema")
    content: Optional[Dict[str, MediaType]] = None


class RequestBody(Node):
    ref: Optional[str] = Field(default=None, alias="$ref")
    description: Optional[str] = None
    required: Optional[bool] = None
    content: Optional[Dict[str, MediaType]] = None


class ApiResponse(Node):
    ref: Optional[str] = Field(default=None, alias="$ref")
    description: Optional[str] = None
    headers: Optional[Dict[str, Header]] = None
    content: Optional[Dict[str, MediaType]] = None


class Operation(Node):
    extensible_maps: ClassVar[Tuple[str, ...]] = ("responses",)

    tags: Optional[List[str]] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    operation_id: Optional[str] = None
    parameters: Optional[List[Parameter]] = None
    request_body: Optional[RequestBody] = None
    responses: Optional[Dict[str, ApiResponse]] = None
    deprecated: Optional[bool] = None


class Server(Node):
    url: str = ""
    description: Optional[str] = None


class PathItem(Node):
    ref: Optional[str] = Field(default=None, alias="$ref")
    summary: Optional[str] = None
    description: Optional[str] = None
    get: Optional[Operation] = None
    put: Optional[Operation] = None
    post: Optional[Operation] = None
    delete: Optional[Operation] = None
    options: Optional[Operation] = None
    head: Optional[Operation] = None
    patch: Optional[Operation] = None
    trace: Optional[Operation] = None
    servers: Optional[List[Server]] = None
    parameters: Optional[List[Parameter]] = None

    def operations(self) -> List[Tuple[str, Operation]]:
        """Declared operations as ``(method, operation)`` pairs in HTTP method order."""
        return [
            (method, getattr(self, method))
            for method in HTTP_METHODS
            if getattr(self, method) is not None
        ]


class Info(Node):
    title: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None


class Tag(Node):
    name: Optional[str] = None
    description: Optional[str] = None


class Components(Node):
    schemas: Optional[Dict[str, Schema]] = None
    responses: Optional[Dict[str, ApiResponse]] = None
    parameters: Optional[Dict[str, Parameter]] = None
    request_bodies: Optional[Dict[str, RequestBody]] = None
    headers: Optional[Dict[str, Header]] = None


class OpenAPI(Node):
    extensible_maps: ClassVar[Tuple[str, ...]] = ("paths",)

    openapi: Optional[str] = None
    info: Optional[Info] = None
    servers: Optional[List[Server]] = None
    tags: Optional[List[Tag]] = None
    paths: Optional[Dict[str, PathItem]] = None
    components: Optional[Components] = None


Schema.model_rebuild()
