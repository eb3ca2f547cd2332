"""
Reference resolution for the canonical document tree.

Every local ``$ref`` found in a usage position is replaced by the component
node it targets, so rules see real objects and the same definition shares one
identity wherever it is used. Component map entries keep their own identity
even when they are themselves references. Resolving can make the tree cyclic;
the walk guards on visited node ids.

Dangling and external references are logged and left in place as terminal
nodes. Running the resolver again on a resolved tree changes nothing.

A usage that reaches its target through aliasing component entries
(``A: {$ref: B}``) loses the aliases from the tree; `aliases` keeps them,
keyed by the id of the final target.
"""

import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from .models import Components, Node, OpenAPI
from .reverse_index import relations_for

logger = logging.getLogger(__name__)

COMPONENTS_PREFIX = "#/components/"

# Serialized component section -> attribute of `Components`
COMPONENT_SECTIONS: Dict[str, str] = {
    "schemas": "schemas",
    "responses": "responses",
    "parameters": "parameters",
    "requestBodies": "request_bodies",
    "headers": "headers",
}


class ReferenceResolver:
    """Resolves local component references in place."""

    def __init__(self, api: OpenAPI):
        self.api = api
        self.resolved_count = 0
        self.unresolved: List[str] = []
        self.aliases: Dict[int, Set[int]] = {}

    def resolve(self) -> OpenAPI:
        """Replace references by their targets and return the same tree."""
        self.resolved_count = 0
        self.unresolved = []
        visited: Set[int] = set()
        stack: List[Node] = [self.api]

        while stack:
            node = stack.pop()
            if node.node_id in visited:
                continue
            visited.add(node.node_id)
            keep_entries = isinstance(node, Components)
            for attribute, _ in relations_for(node):
                stack.extend(self._resolve_relation(node, attribute, keep_entries))

        if self.resolved_count or self.unresolved:
            logger.debug(
                f"Resolved {self.resolved_count} references, {len(self.unresolved)} left unresolved"
            )
        return self.api

    def lookup(self, ref: str) -> Optional[Node]:
        """Find the component named by a local reference, or ``None``."""
        if not ref.startswith(COMPONENTS_PREFIX):
            return None
        parts = ref[len(COMPONENTS_PREFIX):].split("/")
        if len(parts) != 2 or self.api.components is None:
            return None
        section, name = parts
        attribute = COMPONENT_SECTIONS.get(section)
        if attribute is None:
            return None
        entries = getattr(self.api.components, attribute) or {}
        name = name.replace("~1", "/").replace("~0", "~")
        return entries.get(name)

    def _resolve_relation(self, owner: Node, attribute: str, keep_entries: bool) -> List[Node]:
        value = getattr(owner, attribute)
        children: List[Node] = []

        if isinstance(value, Node):
            target = value if keep_entries else self._target(value)
            if target is not value:
                setattr(owner, attribute, target)
            children.append(target)
        elif isinstance(value, dict):
            for key, item in list(value.items()):
                if isinstance(item, Node):
                    target = item if keep_entries else self._target(item)
                    if target is not item:
                        value[key] = target
                    children.append(target)
        elif isinstance(value, list):
            for position, item in enumerate(value):
                if isinstance(item, Node):
                    target = self._target(item)
                    if target is not item:
                        value[position] = target
                    children.append(target)
        return children

    def _target(self, node: Node) -> Node:
        ref = getattr(node, "ref", None)
        if not ref:
            return node

        seen: Set[str] = set()
        chain: List[Node] = []
        current: Any = node
        while getattr(current, "ref", None) and current.ref not in seen:
            seen.add(current.ref)
            target = self.lookup(current.ref)
            if target is None or not isinstance(target, type(node)):
                break
            chain.append(target)
            current = target

        if current is node:
            self._report_unresolved(ref)
            return node
        if len(chain) > 1:
            self.aliases.setdefault(current.node_id, set()).update(alias.node_id for alias in chain[:-1])
        self.resolved_count += 1
        return current

    def _report_unresolved(self, ref: str) -> None:
        if ref in self.unresolved:
            return
        self.unresolved.append(ref)
        if ref.startswith("#"):
            logger.warning(f"Unresolved reference '{ref}' is left in place")
        else:
            logger.warning(f"External reference '{ref}' is not followed")


def backfill_names(api: OpenAPI) -> int:
    """Name component schemas and parameters after their key when the name is blank."""
    components = api.components
    if components is None:
        return 0
    filled = 0
    sections: Tuple[Optional[Dict[str, Any]], ...] = (components.schemas, components.parameters)
    for entries in sections:
        for key, node in (entries or {}).items():
            if not (node.name or "").strip():
                node.name = key
                filled += 1
    return filled
