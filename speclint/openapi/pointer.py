"""
JSON pointers (RFC 6901) used to locate nodes inside a serialized document.

A pointer is an immutable sequence of string tokens. Integer tokens (list
indexes) are stored as their decimal string so that a pointer built while
walking a document compares equal to the same pointer compiled from text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Tuple, Union

from pydantic_core import core_schema

from ..errors import PointerSyntaxError

Token = Union[str, int]


def escape_token(token: Token) -> str:
    """Escape a single token for its textual form."""
    return str(token).replace("~", "~0").replace("/", "~1")


def unescape_token(token: str) -> str:
    """Reverse `escape_token`."""
    return token.replace("~1", "/").replace("~0", "~")


@dataclass(frozen=True)
class JsonPointer:
    tokens: Tuple[str, ...] = ()

    @classmethod
    def compile(cls, text: str) -> "JsonPointer":
        """Parse the textual form, e.g. ``/paths/~1pets/get``."""
        if text == "":
            return EMPTY
        if text.startswith("#"):
            text = text[1:]
            if text == "":
                return EMPTY
        if not text.startswith("/"):
            raise PointerSyntaxError(f"JSON pointer must start with '/': {text!r}")
        bad = next(_invalid_escapes(text), None)
        if bad is not None:
            raise PointerSyntaxError(f"Invalid escape '~{bad}' in JSON pointer {text!r}")
        return cls(tuple(unescape_token(raw) for raw in text[1:].split("/")))

    @classmethod
    def of(cls, *tokens: Token) -> "JsonPointer":
        return cls(tuple(str(token) for token in tokens))

    def append(self, *tokens: Token) -> "JsonPointer":
        return JsonPointer(self.tokens + tuple(str(token) for token in tokens))

    @property
    def parent(self) -> "JsonPointer":
        return JsonPointer(self.tokens[:-1])

    @property
    def last(self) -> str | None:
        return self.tokens[-1] if self.tokens else None

    def is_prefix_of(self, other: "JsonPointer") -> bool:
        """True if ``other`` is this pointer or lies below it."""
        return other.tokens[:len(self.tokens)] == self.tokens

    def ancestors(self) -> Iterable["JsonPointer"]:
        """Yield this pointer and every ancestor up to the root, nearest first."""
        for end in range(len(self.tokens), -1, -1):
            yield JsonPointer(self.tokens[:end])

    def replace_prefix(self, old: "JsonPointer", new: "JsonPointer") -> "JsonPointer":
        if not old.is_prefix_of(self):
            return self
        return JsonPointer(new.tokens + self.tokens[len(old.tokens):])

    def __len__(self) -> int:
        return len(self.tokens)

    def __str__(self) -> str:
        return "".join("/" + escape_token(token) for token in self.tokens)

    def __repr__(self) -> str:
        return f"JsonPointer({str(self)!r})"

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._coerce,
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )

    @classmethod
    def _coerce(cls, value: Any) -> "JsonPointer":
        if isinstance(value, JsonPointer):
            return value
        if isinstance(value, str):
            return cls.compile(value)
        raise ValueError(f"Cannot interpret {type(value).__name__} as a JSON pointer")


def _invalid_escapes(text: str) -> Iterable[str]:
    for index, char in enumerate(text):
        if char == "~":
            follower = text[index + 1:index + 2]
            if follower not in ("0", "1"):
                yield follower


EMPTY = JsonPointer()
