"""
Access recorder: remembers where a rule last looked in the document.

Rules are mostly written as filter/map pipelines over the tree. Instead of
threading a location through every step, a rule reads the tree through the
recorder's accessors and each accessor stores the pointer of whatever it
returned. A violation created without an explicit location then defaults to
the recorder's pointer.

The trace holds a single pointer, not a history. `each` and `items` are
generators and record each element as it is produced, so a lazy pipeline
sees the element it is currently processing. Materializing a collection
first (e.g. with ``list()``) leaves the pointer at its last element; rules
that touch several unrelated nodes before reporting must pass the node
explicitly.
"""

from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from .models import Node
from .pointer import EMPTY, JsonPointer
from .reverse_index import ReverseIndex


class AccessRecorder:
    """Tracks the most recently accessed location of one document."""

    def __init__(self, index: ReverseIndex, skip: Iterable[str] = ("extensions",)):
        self.index = index
        self.skip = frozenset(skip)
        self._pointer: Optional[JsonPointer] = None

    @property
    def pointer(self) -> Optional[JsonPointer]:
        """The most recently recorded pointer, ``None`` before any access."""
        return self._pointer

    def enter(self, root: Optional[Node] = None) -> Node:
        """Begin a fresh trace scope at the document root and return the root."""
        root = root if root is not None else self.index.root
        self._pointer = self.index.pointer_for(root) or EMPTY
        return root

    def reset(self) -> None:
        self._pointer = None

    def visit(self, value: Any, owner: Optional[Node] = None, token: Optional[str] = None) -> Any:
        """Record ``value`` as the current location and return it unchanged."""
        self._record(value, owner, token)
        return value

    def _record(self, value: Any, owner: Optional[Node], token: Optional[str]) -> Optional[JsonPointer]:
        """Locate ``value``; the trace moves only when a location is found."""
        pointer = self.index.pointer_for(value)
        if pointer is None and owner is not None and token is not None:
            owner_pointer = self.index.pointer_for(owner)
            if owner_pointer is not None:
                pointer = owner_pointer.append(token)
        if pointer is not None:
            self._pointer = pointer
        return pointer

    def get(self, owner: Node, attribute: str) -> Any:
        """Read ``owner.attribute`` and record its location."""
        value = getattr(owner, attribute)
        if attribute in self.skip:
            return value
        return self.visit(value, owner, _token(owner, attribute))

    def each(self, owner: Node, attribute: str) -> Iterator[Any]:
        """Lazily yield the elements of a list or the values of a mapping attribute."""
        for _, value in self._entries(owner, attribute):
            yield value

    def items(self, owner: Node, attribute: str) -> Iterator[Tuple[str, Any]]:
        """Lazily yield ``(key, value)`` pairs of a mapping attribute."""
        yield from self._entries(owner, attribute)

    def extensions(self, owner: Node) -> Dict[str, Any]:
        """Vendor extensions of ``owner``; reading them does not move the trace."""
        return owner.extensions

    def _entries(self, owner: Node, attribute: str) -> Iterator[Tuple[Any, Any]]:
        container = getattr(owner, attribute)
        container_pointer = self._record(container, owner, _token(owner, attribute))
        if container is None:
            return
        if isinstance(container, Mapping):
            entries: Iterable[Tuple[Any, Any]] = container.items()
        else:
            entries = enumerate(container)
        for key, value in entries:
            pointer = self.index.pointer_for(value)
            if pointer is None and container_pointer is not None:
                pointer = container_pointer.append(key)
            if pointer is not None:
                self._pointer = pointer
            yield key, value


def _token(owner: Node, attribute: str) -> str:
    field = type(owner).model_fields.get(attribute)
    if field is None:
        return attribute
    return field.alias or attribute
