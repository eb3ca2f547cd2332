"""
Pydantic models for the legacy (Swagger v2) document tree.

Only the parts the converter reads are typed; everything else is kept as
extra data on the owning node. `Info`, `Tag` and `Schema` are shared with the
canonical models since both dialects describe them the same way.
"""

from __future__ import annotations

from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import Field

from .models import Info, Node, Schema, Tag

SWAGGER_METHODS = ("get", "put", "post", "delete", "options", "head", "patch")


class SwaggerItems(Node):
    type: Optional[str] = None
    format: Optional[str] = None
    items: Optional[SwaggerItems] = None
    enum: Optional[List[Any]] = None
    default: Optional[Any] = None
    collection_format: Optional[str] = None


class SwaggerHeader(Node):
    description: Optional[str] = None
    type: Optional[str] = None
    format: Optional[str] = None
    items: Optional[SwaggerItems] = None
    enum: Optional[List[Any]] = None
    default: Optional[Any] = None


class SwaggerParameter(Node):
    ref: Optional[str] = Field(default=None, alias="$ref")
    name: Optional[str] = None
    in_: Optional[str] = Field(default=None, alias="in")
    description: Optional[str] = None
    required: Optional[bool] = None
    allow_empty_value: Optional[bool] = None
    # Only for in: body
    schema_: Optional[Schema] = Field(default=None, alias="schema")
    # Only for non-body parameters
    type: Optional[str] = None
    format: Optional[str] = None
    items: Optional[SwaggerItems] = None
    enum: Optional[List[Any]] = None
    default: Optional[Any] = None
    collection_format: Optional[str] = None


class SwaggerResponse(Node):
    ref: Optional[str] = Field(default=None, alias="$ref")
    description: Optional[str] = None
    schema_: Optional[Schema] = Field(default=None, alias="schema")
    headers: Optional[Dict[str, SwaggerHeader]] = None


class SwaggerOperation(Node):
    extensible_maps: ClassVar[Tuple[str, ...]] = ("responses",)

    tags: Optional[List[str]] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    operation_id: Optional[str] = None
    consumes: Optional[List[str]] = None
    produces: Optional[List[str]] = None
    parameters: Optional[List[SwaggerParameter]] = None
    responses: Optional[Dict[str, SwaggerResponse]] = None
    schemes: Optional[List[str]] = None
    deprecated: Optional[bool] = None


class SwaggerPathItem(Node):
    ref: Optional[str] = Field(default=None, alias="$ref")
    get: Optional[SwaggerOperation] = None
    put: Optional[SwaggerOperation] = None
    post: Optional[SwaggerOperation] = None
    delete: Optional[SwaggerOperation] = None
    options: Optional[SwaggerOperation] = None
    head: Optional[SwaggerOperation] = None
    patch: Optional[SwaggerOperation] = None
    parameters: Optional[List[SwaggerParameter]] = None

    def operations(self) -> List[Tuple[str, SwaggerOperation]]:
        return [
            (method, getattr(self, method))
            for method in SWAGGER_METHODS
            if getattr(self, method) is not None
        ]


class SwaggerDocument(Node):
    extensible_maps: ClassVar[Tuple[str, ...]] = ("paths",)

    swagger: Optional[str] = None
    info: Optional[Info] = None
    host: Optional[str] = None
    base_path: Optional[str] = None
    schemes: Optional[List[str]] = None
    consumes: Optional[List[str]] = None
    produces: Optional[List[str]] = None
    tags: Optional[List[Tag]] = None
    paths: Optional[Dict[str, SwaggerPathItem]] = None
    definitions: Optional[Dict[str, Schema]] = None
    parameters: Optional[Dict[str, SwaggerParameter]] = None
    responses: Optional[Dict[str, SwaggerResponse]] = None


SwaggerItems.model_rebuild()
