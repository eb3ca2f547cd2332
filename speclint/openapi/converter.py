"""
Conversion of legacy (Swagger v2) documents into the canonical OpenAPI v3 tree.

Rules only ever see the canonical tree, but violations on a legacy input
must point into the document the user actually wrote. The converter
therefore records a counterpart for every canonical node it creates: the
legacy node it was derived from, plus optional pointer tokens below that
node (e.g. the ``host`` field a server was built from). Nodes that have no
counterpart are located by rewriting their canonical pointer structurally
(see `to_legacy_pointer`).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

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
    Server,
)
from .pointer import JsonPointer

logger = logging.getLogger(__name__)

CANONICAL_VERSION = "3.0.0"
DEFAULT_MEDIA_TYPE = "application/json"
FORM_MEDIA_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

SCHEMA_SCALARS = (
    "name", "title", "description", "type", "format", "enum", "default",
    "nullable", "read_only", "write_only", "required",
)

# Canonical pointer prefixes and their legacy equivalents, most specific first.
POINTER_REWRITES: Tuple[Tuple[JsonPointer, JsonPointer], ...] = (
    (JsonPointer.of("components", "schemas"), JsonPointer.of("definitions")),
    (JsonPointer.of("components", "parameters"), JsonPointer.of("parameters")),
    (JsonPointer.of("components", "requestBodies"), JsonPointer.of("parameters")),
    (JsonPointer.of("components", "responses"), JsonPointer.of("responses")),
)

Counterpart = Tuple[Node, Tuple[str, ...]]


def to_legacy_pointer(pointer: Optional[JsonPointer]) -> Optional[JsonPointer]:
    """Rewrite a canonical component pointer into its legacy location."""
    if pointer is None:
        return None
    for canonical, legacy in POINTER_REWRITES:
        if canonical.is_prefix_of(pointer):
            return pointer.replace_prefix(canonical, legacy)
    return None


def _copy_map_extensions(source: Node) -> Dict[str, Dict[str, Any]]:
    return {key: dict(entries) for key, entries in source.map_extensions.items()}


@dataclass
class ConversionResult:
    """Outcome of converting one legacy document."""
    openapi: OpenAPI
    counterparts: Dict[int, Counterpart] = field(default_factory=dict)
    messages: List[str] = field(default_factory=list)


class SwaggerConverter:
    """Converts a `SwaggerDocument` into an `OpenAPI` tree."""

    def __init__(self):
        self._counterparts: Dict[int, Counterpart] = {}
        self._messages: List[str] = []
        self._schemas: Dict[int, Schema] = {}
        self._body_parameters: Set[str] = set()
        self._document: Optional[SwaggerDocument] = None

    def convert(self, document: SwaggerDocument) -> ConversionResult:
        """Convert ``document``; the legacy tree is left untouched."""
        self._counterparts = {}
        self._messages = []
        self._schemas = {}
        self._document = document
        self._body_parameters = {
            name for name, parameter in (document.parameters or {}).items()
            if parameter.in_ == "body"
        }

        api = OpenAPI(openapi=CANONICAL_VERSION, info=document.info, tags=document.tags)
        self._link(api, document)
        self._copy_extensions(document, api)
        api.map_extensions = _copy_map_extensions(document)

        api.servers = self._servers(document)
        api.components = self._components(document)
        if document.paths is not None:
            api.paths = {
                path: self._path_item(path, item)
                for path, item in document.paths.items()
            }

        for message in self._messages:
            logger.debug(f"Conversion message: {message}")

        return ConversionResult(openapi=api, counterparts=self._counterparts, messages=list(self._messages))

    def _link(self, node: Optional[Node], legacy: Node, *tokens: Any) -> None:
        if node is not None:
            self._counterparts[node.node_id] = (legacy, tuple(str(token) for token in tokens))

    @staticmethod
    def _copy_extensions(source: Node, target: Node) -> None:
        for name, value in source.extensions.items():
            target.set_extension(name, value)

    def _servers(self, document: SwaggerDocument) -> Optional[List[Server]]:
        host = document.host
        base_path = document.base_path or ""
        if not host and not base_path:
            return None
        if host and "://" in host:
            # Keep the offending value visible instead of hiding it behind "//"
            url = f"{host}{base_path}"
        elif host:
            url = f"//{host}{base_path}"
        else:
            url = base_path
        server = Server(url=url)
        self._link(server, document, "host" if host else "basePath")
        return [server]

    def _components(self, document: SwaggerDocument) -> Components:
        components = Components()
        self._link(components, document)
        consumes = document.consumes or [DEFAULT_MEDIA_TYPE]
        produces = document.produces or [DEFAULT_MEDIA_TYPE]

        if document.definitions is not None:
            components.schemas = {
                name: self._schema(schema) for name, schema in document.definitions.items()
            }

        for name, parameter in (document.parameters or {}).items():
            if parameter.in_ == "body":
                if components.request_bodies is None:
                    components.request_bodies = {}
                components.request_bodies[name] = self._request_body(parameter, consumes)
            elif parameter.in_ == "formData":
                self._messages.append(
                    f"Global formData parameter '{name}' is inlined into the request bodies that use it"
                )
            else:
                if components.parameters is None:
                    components.parameters = {}
                components.parameters[name] = self._parameter(parameter)

        if document.responses is not None:
            components.responses = {
                name: self._response(response, produces)
                for name, response in document.responses.items()
            }

        return components

    def _path_item(self, path: str, legacy: SwaggerPathItem) -> PathItem:
        item = PathItem(ref=legacy.ref)
        self._link(item, legacy)
        self._copy_extensions(legacy, item)
        if legacy.ref:
            self._messages.append(f"Path item $ref '{legacy.ref}' at '{path}' is kept as is")

        shared_inputs: List[SwaggerParameter] = []
        parameters: List[Parameter] = []
        for parameter in legacy.parameters or []:
            if self._is_body_input(parameter):
                shared_inputs.append(parameter)
            else:
                parameters.append(self._parameter_or_ref(parameter))
        if legacy.parameters is not None:
            item.parameters = parameters

        for method, operation in legacy.operations():
            setattr(item, method, self._operation(operation, shared_inputs))
        return item

    def _operation(self, legacy: SwaggerOperation, shared_inputs: List[SwaggerParameter]) -> Operation:
        operation = Operation(
            tags=legacy.tags,
            summary=legacy.summary,
            description=legacy.description,
            operation_id=legacy.operation_id,
            deprecated=legacy.deprecated,
        )
        self._link(operation, legacy)
        self._copy_extensions(legacy, operation)
        operation.map_extensions = _copy_map_extensions(legacy)

        document = self._document
        consumes = legacy.consumes or (document.consumes if document else None) or [DEFAULT_MEDIA_TYPE]
        produces = legacy.produces or (document.produces if document else None) or [DEFAULT_MEDIA_TYPE]

        parameters: List[Parameter] = []
        form_inputs: List[SwaggerParameter] = []
        for parameter in shared_inputs + list(legacy.parameters or []):
            resolved = self._global_form_parameter(parameter)
            if resolved is not None:
                form_inputs.append(resolved)
            elif parameter.ref and self._ref_name(parameter.ref) in self._body_parameters:
                body = RequestBody(ref=self.rewrite_ref(parameter.ref))
                self._link(body, parameter)
                operation.request_body = body
            elif parameter.in_ == "body":
                operation.request_body = self._request_body(parameter, consumes)
            elif parameter.in_ == "formData":
                form_inputs.append(parameter)
            else:
                parameters.append(self._parameter_or_ref(parameter))

        if form_inputs:
            operation.request_body = self._form_request_body(legacy, form_inputs, consumes)
        if legacy.parameters is not None or parameters:
            operation.parameters = parameters

        if legacy.responses is not None:
            operation.responses = {
                code: self._response(response, produces)
                for code, response in legacy.responses.items()
            }
        return operation

    def _is_body_input(self, parameter: SwaggerParameter) -> bool:
        if parameter.in_ in ("body", "formData"):
            return True
        if parameter.ref:
            name = self._ref_name(parameter.ref)
            return name in self._body_parameters or self._global_form_parameter(parameter) is not None
        return False

    def _global_form_parameter(self, parameter: SwaggerParameter) -> Optional[SwaggerParameter]:
        if not parameter.ref or self._document is None:
            return None
        target = (self._document.parameters or {}).get(self._ref_name(parameter.ref) or "")
        if target is not None and target.in_ == "formData":
            return target
        return None

    def _parameter_or_ref(self, legacy: SwaggerParameter) -> Parameter:
        if legacy.ref:
            parameter = Parameter(ref=self.rewrite_ref(legacy.ref))
            self._link(parameter, legacy)
            return parameter
        return self._parameter(legacy)

    def _parameter(self, legacy: SwaggerParameter) -> Parameter:
        parameter = Parameter(
            name=legacy.name,
            in_=legacy.in_,
            description=legacy.description,
            required=legacy.required,
            allow_empty_value=legacy.allow_empty_value,
            schema_=self._simple_schema(legacy),
        )
        self._apply_collection_format(parameter, legacy)
        self._link(parameter, legacy)
        self._copy_extensions(legacy, parameter)
        return parameter

    def _apply_collection_format(self, parameter: Parameter, legacy: SwaggerParameter) -> None:
        collection_format = legacy.collection_format
        if collection_format is None or collection_format == "csv":
            if collection_format == "csv" and legacy.in_ in ("query", "cookie"):
                parameter.explode = False
            return
        if collection_format == "multi":
            parameter.style = "form"
            parameter.explode = True
        elif collection_format == "ssv":
            parameter.style = "spaceDelimited"
        elif collection_format == "pipes":
            parameter.style = "pipeDelimited"
        else:
            self._messages.append(
                f"Unsupported collectionFormat '{collection_format}' on parameter '{legacy.name}'"
            )

    def _request_body(self, legacy: SwaggerParameter, consumes: List[str]) -> RequestBody:
        schema = self._schema(legacy.schema_)
        body = RequestBody(description=legacy.description, required=legacy.required)
        body.content = {}
        for media_type in consumes:
            content = MediaType(schema_=schema)
            self._link(content, legacy)
            body.content[media_type] = content
        self._link(body, legacy)
        self._copy_extensions(legacy, body)
        return body

    def _form_request_body(
        self,
        owner: SwaggerOperation,
        inputs: List[SwaggerParameter],
        consumes: List[str],
    ) -> RequestBody:
        schema = Schema(type="object", properties={})
        required = []
        for parameter in inputs:
            schema.properties[parameter.name or ""] = self._simple_schema(parameter)
            if parameter.required:
                required.append(parameter.name)
        if required:
            schema.required = required
        self._link(schema, owner, "parameters")

        media_types = [media_type for media_type in consumes if media_type in FORM_MEDIA_TYPES]
        body = RequestBody(content={
            media_type: MediaType(schema_=schema)
            for media_type in media_types or [FORM_MEDIA_TYPES[0]]
        })
        for content in body.content.values():
            self._link(content, owner, "parameters")
        self._link(body, owner, "parameters")
        return body

    def _response(self, legacy: SwaggerResponse, produces: List[str]) -> ApiResponse:
        if legacy.ref:
            response = ApiResponse(ref=self.rewrite_ref(legacy.ref))
            self._link(response, legacy)
            return response

        response = ApiResponse(description=legacy.description or "")
        if legacy.schema_ is not None:
            schema = self._schema(legacy.schema_)
            response.content = {}
            for media_type in produces:
                content = MediaType(schema_=schema)
                self._link(content, legacy)
                response.content[media_type] = content
        if legacy.headers is not None:
            response.headers = {
                name: self._header(header) for name, header in legacy.headers.items()
            }
        self._link(response, legacy)
        self._copy_extensions(legacy, response)
        return response

    def _header(self, legacy: SwaggerHeader) -> Header:
        header = Header(description=legacy.description, schema_=self._simple_schema(legacy))
        self._link(header, legacy)
        self._copy_extensions(legacy, header)
        return header

    def _simple_schema(self, legacy: Any) -> Schema:
        """Fold the inline type of a parameter, header or items object into a schema."""
        schema = Schema(
            type=legacy.type,
            format=legacy.format,
            enum=list(legacy.enum) if legacy.enum is not None else None,
            default=legacy.default,
            items=self._items(legacy.items),
        )
        self._link(schema, legacy)
        return schema

    def _items(self, legacy: Optional[SwaggerItems]) -> Optional[Schema]:
        if legacy is None:
            return None
        return self._simple_schema(legacy)

    def _schema(self, legacy: Optional[Schema]) -> Optional[Schema]:
        """Copy a legacy schema tree, rewriting references; each legacy schema maps to one copy."""
        if legacy is None:
            return None
        converted = self._schemas.get(legacy.node_id)
        if converted is not None:
            return converted

        scalars = {name: getattr(legacy, name) for name in SCHEMA_SCALARS}
        if scalars["enum"] is not None:
            scalars["enum"] = list(scalars["enum"])
        schema = Schema(ref=self.rewrite_ref(legacy.ref) if legacy.ref else None, **scalars)
        self._schemas[legacy.node_id] = schema
        self._link(schema, legacy)
        for name, value in (legacy.model_extra or {}).items():
            if name == "x-nullable" and schema.nullable is None:
                schema.nullable = bool(value)
            schema.set_extra(name, value)

        schema.items = self._schema(legacy.items)
        if legacy.properties is not None:
            schema.properties = {
                name: self._schema(prop) for name, prop in legacy.properties.items()
            }
        additional = legacy.additional_properties
        if isinstance(additional, Schema):
            schema.additional_properties = self._schema(additional)
        elif isinstance(additional, dict):
            schema.additional_properties = {
                name: self._schema(prop) for name, prop in additional.items()
            }
        else:
            schema.additional_properties = additional
        for combinator in ("all_of", "one_of", "any_of"):
            branches = getattr(legacy, combinator)
            if branches is not None:
                setattr(schema, combinator, [self._schema(branch) for branch in branches])
        schema.not_ = self._schema(legacy.not_)
        return schema

    def rewrite_ref(self, ref: str) -> str:
        """Rewrite a legacy local reference to its canonical target."""
        for legacy_prefix, canonical_prefix in (
            ("#/definitions/", "#/components/schemas/"),
            ("#/responses/", "#/components/responses/"),
        ):
            if ref.startswith(legacy_prefix):
                return canonical_prefix + ref[len(legacy_prefix):]
        if ref.startswith("#/parameters/"):
            name = ref[len("#/parameters/"):]
            if name in self._body_parameters:
                return "#/components/requestBodies/" + name
            return "#/components/parameters/" + name
        return ref

    @staticmethod
    def _ref_name(ref: str) -> Optional[str]:
        if ref.startswith("#/parameters/"):
            return ref[len("#/parameters/"):]
        return None
