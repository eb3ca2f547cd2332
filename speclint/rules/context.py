"""
The rule-facing view of one validated document.

A `Context` owns the canonical tree, its reverse index and the access
recorder. For legacy (Swagger v2) input it also keeps the original tree and
its index, so that violations point into the document the user wrote.
Contexts are built by the factory functions at the bottom of this module;
each returns ``None`` when the text cannot be parsed.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from ..config import LinterSettings, get_settings
from ..openapi.converter import Counterpart, SwaggerConverter, to_legacy_pointer
from ..openapi.legacy import SwaggerDocument
from ..openapi.models import Node, OpenAPI, Operation, Parameter, PathItem, Schema
from ..openapi.parser import Dialect, detect_dialect, load_document, parse_openapi, parse_swagger
from ..openapi.pointer import JsonPointer
from ..openapi.recorder import AccessRecorder
from ..openapi.resolver import ReferenceResolver, backfill_names
from ..openapi.reverse_index import DEFAULT_IGNORE_EXTENSION, ReverseIndex
from .base import Violation

logger = logging.getLogger(__name__)

SCHEMA_REF_PREFIX = "#/components/schemas/"

ViolationAction = Callable[..., Optional[Iterable[Optional[Violation]]]]


class Context:
    """Canonical document, reverse index and access trace for one validation."""

    def __init__(
        self,
        api: OpenAPI,
        legacy: Optional[SwaggerDocument] = None,
        counterparts: Optional[Dict[int, Counterpart]] = None,
        ignore_extension: str = DEFAULT_IGNORE_EXTENSION,
        aliases: Optional[Dict[int, Set[int]]] = None,
    ):
        self._api = api
        self.legacy = legacy
        self.counterparts: Dict[int, Counterpart] = counterparts or {}
        # Resolved component id -> ids of the alias entries its usages passed through
        self.aliases: Dict[int, Set[int]] = aliases or {}
        self.index = ReverseIndex.build(api, ignore_extension)
        self.legacy_index = ReverseIndex.build(legacy, ignore_extension) if legacy is not None else None
        self.recorder = AccessRecorder(self.index)

    @property
    def dialect(self) -> Dialect:
        return Dialect.SWAGGER if self.legacy is not None else Dialect.OPENAPI

    @property
    def api(self) -> OpenAPI:
        """The canonical tree; each access starts a fresh trace at the root."""
        return self.recorder.enter(self._api)

    @property
    def unrecorded_api(self) -> OpenAPI:
        """The canonical tree, without touching the access trace."""
        return self._api

    def validate_paths(
        self,
        action: Callable[[str, PathItem], Optional[Iterable[Optional[Violation]]]],
        path_filter: Optional[Callable[[str, PathItem], bool]] = None,
    ) -> List[Violation]:
        """Apply ``action`` to every path item accepted by ``path_filter``."""
        results: List[Violation] = []
        for path, path_item in self.recorder.items(self.api, "paths"):
            if path_filter is None or path_filter(path, path_item):
                results.extend(_flatten(action(path, path_item)))
        return results

    def validate_operations(
        self,
        action: Callable[[str, Operation], Optional[Iterable[Optional[Violation]]]],
        path_filter: Optional[Callable[[str, PathItem], bool]] = None,
        operation_filter: Optional[Callable[[str, Operation], bool]] = None,
    ) -> List[Violation]:
        """Apply ``action`` to every ``(method, operation)`` of the accepted paths."""

        def per_path(path: str, path_item: PathItem) -> List[Violation]:
            results: List[Violation] = []
            for method, operation in path_item.operations():
                self.recorder.visit(operation, path_item, method)
                if operation_filter is None or operation_filter(method, operation):
                    results.extend(_flatten(action(method, operation)))
            return results

        return self.validate_paths(per_path, path_filter)

    def validate_schemas(
        self,
        action: Callable[[str, Schema], Optional[Iterable[Optional[Violation]]]],
        schema_filter: Optional[Callable[[str, Schema], bool]] = None,
    ) -> List[Violation]:
        """Apply ``action`` to every component schema."""
        return self._validate_components("schemas", action, schema_filter)

    def validate_parameters(
        self,
        action: Callable[[str, Parameter], Optional[Iterable[Optional[Violation]]]],
        parameter_filter: Optional[Callable[[str, Parameter], bool]] = None,
    ) -> List[Violation]:
        """Apply ``action`` to every component parameter."""
        return self._validate_components("parameters", action, parameter_filter)

    def _validate_components(
        self,
        section: str,
        action: ViolationAction,
        entry_filter: Optional[Callable[[str, Any], bool]],
    ) -> List[Violation]:
        components = self.recorder.get(self.api, "components")
        if components is None:
            return []
        results: List[Violation] = []
        for name, entry in self.recorder.items(components, section):
            if entry_filter is None or entry_filter(name, entry):
                results.extend(_flatten(action(name, entry)))
        return results

    def violation(self, description: str, value: Any = None) -> Violation:
        """
        Create a violation located at ``value``.

        ``value`` may be a document node, a `JsonPointer` or ``None``. When no
        location can be derived from it, the violation is located wherever
        the rule last looked through `api`.
        """
        if isinstance(value, JsonPointer):
            pointer: Optional[JsonPointer] = value
        elif value is None:
            pointer = None
        else:
            pointer = self.pointer_for_value(value)
        if pointer is None:
            pointer = self.recorder.pointer
        return Violation(description=description, pointer=pointer)

    def violations(self, description: str, value: Any = None) -> List[Violation]:
        return [self.violation(description, value)]

    def is_ignored(self, pointer: JsonPointer, rule_id: str) -> bool:
        """Check whether ``rule_id`` is suppressed at ``pointer``."""
        index = self.legacy_index if self.legacy_index is not None else self.index
        return index.is_ignored(pointer, rule_id)

    def pointer_for_value(self, value: Any) -> Optional[JsonPointer]:
        """Locate ``value`` in the document the user wrote, or ``None``."""
        if self.legacy_index is None:
            return self.index.pointer_for(value)

        pointer = self.legacy_index.pointer_for(value)
        if pointer is not None:
            return pointer

        if isinstance(value, Node) and value.node_id in self.counterparts:
            legacy_node, suffix = self.counterparts[value.node_id]
            legacy_pointer = self.legacy_index.pointer_for(legacy_node)
            if legacy_pointer is not None:
                return legacy_pointer.append(*suffix)

        canonical = self.index.pointer_for(value)
        return to_legacy_pointer(canonical) or canonical

    def resolve_schema(self, ref: str) -> Optional[Schema]:
        """Look up a component schema by its ``$ref`` string."""
        if not ref.startswith(SCHEMA_REF_PREFIX):
            return None
        target = ReferenceResolver(self._api).lookup(ref)
        return target if isinstance(target, Schema) else None


def _flatten(violations: Optional[Iterable[Optional[Violation]]]) -> List[Violation]:
    return [violation for violation in violations or [] if violation is not None]


def _prepare(api: OpenAPI) -> Dict[int, Set[int]]:
    resolver = ReferenceResolver(api)
    try:
        resolver.resolve()
    except Exception as e:
        logger.warning(f"Failed to fully resolve references, continuing with a partial tree: {e}", exc_info=True)
    backfill_names(api)
    return resolver.aliases


def create_openapi_context(content: str, settings: Optional[LinterSettings] = None) -> Optional[Context]:
    """Build a context from OpenAPI v3 text."""
    settings = settings or get_settings()
    api = parse_openapi(content)
    if api is None:
        return None
    aliases = _prepare(api)
    return Context(api, ignore_extension=settings.ignore_extension, aliases=aliases)


def create_swagger_context(content: str, settings: Optional[LinterSettings] = None) -> Optional[Context]:
    """Build a context from Swagger v2 text, converting it to the canonical tree."""
    settings = settings or get_settings()
    document = parse_swagger(content)
    if document is None:
        return None

    try:
        conversion = SwaggerConverter().convert(document)
    except Exception as e:
        logger.warning(f"Failed to convert Swagger document: {e}", exc_info=True)
        return None

    if conversion.messages:
        logger.debug(f"Swagger conversion produced {len(conversion.messages)} messages")
    aliases = _prepare(conversion.openapi)
    return Context(
        conversion.openapi,
        legacy=document,
        counterparts=conversion.counterparts,
        ignore_extension=settings.ignore_extension,
        aliases=aliases,
    )


def create_context(
    content: str,
    dialect: Optional[Dialect] = None,
    settings: Optional[LinterSettings] = None,
) -> Optional[Context]:
    """Build a context, detecting the dialect from the document unless given."""
    if dialect is None:
        raw = load_document(content)
        if raw is None:
            return None
        dialect = detect_dialect(raw)
        if dialect is None:
            logger.info("Document declares neither 'openapi' nor 'swagger', it cannot be validated")
            return None

    factories: Dict[Dialect, Callable[..., Optional[Context]]] = {
        Dialect.OPENAPI: create_openapi_context,
        Dialect.SWAGGER: create_swagger_context,
    }
    return factories[Dialect(dialect)](content, settings)

