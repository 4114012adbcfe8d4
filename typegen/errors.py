"""
Typed error classes for the generator pipeline.

Every stage raises a subclass of `TypegenError` so that callers processing
many documents can isolate failures per document while still catching one
base type. All of them are terminal for the document being processed: the
pipeline is deterministic, so retrying an identical input fails identically.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

__all__ = [
    "TypegenError",
    "MalformedInputError",
    "AmbiguousSourceError",
    "UnsupportedTypeError",
    "DuplicateSpecialMemberError",
    "DuplicateSignatureError",
]


class TypegenError(Exception):
    """Base class for all generator errors."""


@dataclass(slots=True)
class MalformedInputError(TypegenError):
    """
    Raised when the input document is not parseable JSON or does not have a
    recognised ABI shape.

    Fields:
      - message: what was wrong with the document
      - diagnostic: the original JSON parser message, if parsing failed
      - line / column: parser position (1-based), if parsing failed
    """

    message: str
    diagnostic: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    def __str__(self) -> str:
        if self.diagnostic is None:
            return f"MalformedInputError: {self.message}"
        pos = f" (line {self.line}, column {self.column})" if self.line is not None else ""
        return f"MalformedInputError: {self.message}: {self.diagnostic}{pos}"


@dataclass(slots=True)
class AmbiguousSourceError(TypegenError):
    """Raised when a multi-contract document has no deterministic single-contract selection."""

    message: str
    candidates: Tuple[str, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        if not self.candidates:
            return f"AmbiguousSourceError: {self.message}"
        return f"AmbiguousSourceError: {self.message} [candidates: {', '.join(self.candidates)}]"


@dataclass(slots=True)
class UnsupportedTypeError(TypegenError):
    """Raised when a type descriptor has no mapping in the target type system."""

    descriptor: str
    entry: Optional[str] = None
    reason: Optional[str] = None

    def __str__(self) -> str:
        where = f" in {self.entry}" if self.entry else ""
        why = f" ({self.reason})" if self.reason else ""
        return f"UnsupportedTypeError: unsupported type {self.descriptor!r}{where}{why}"


@dataclass(slots=True)
class DuplicateSpecialMemberError(TypegenError):
    """Raised on a second constructor, fallback or receive entry."""

    kind: str

    def __str__(self) -> str:
        return f"DuplicateSpecialMemberError: more than one {self.kind} entry"


@dataclass(slots=True)
class DuplicateSignatureError(TypegenError):
    """Raised when two entries of one overload group share an input signature."""

    name: str
    signature: str
    kind: str = "function"

    def __str__(self) -> str:
        return f"DuplicateSignatureError: {self.kind} {self.signature} is declared more than once"
