from __future__ import annotations

"""
Parsed ABI entries
==================

Frozen dataclasses for one interface document as the Interface Extractor
reads it. Nothing here is interpreted yet: mutability is kept exactly as the
document states it (modern `stateMutability`, legacy `constant`/`payable`)
and type descriptors are raw strings. The Member Classifier resolves both.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class EntryKind(str, Enum):
    CONSTRUCTOR = "constructor"
    FUNCTION = "function"
    EVENT = "event"
    FALLBACK = "fallback"
    RECEIVE = "receive"


class Mutability(str, Enum):
    PURE = "pure"
    VIEW = "view"
    NONPAYABLE = "nonpayable"
    PAYABLE = "payable"

    @property
    def is_read_only(self) -> bool:
        return self in (Mutability.PURE, Mutability.VIEW)


@dataclass(frozen=True)
class Parameter:
    """
    One function/event argument or return value.

    `name` may be empty (unnamed returns, positional event fields).
    `components` holds the fields of a `tuple` descriptor in declaration order.
    """

    name: str
    type: str
    indexed: bool = False
    components: Tuple["Parameter", ...] = field(default_factory=tuple)
    internal_type: Optional[str] = None


@dataclass(frozen=True)
class InterfaceEntry:
    kind: EntryKind
    name: Optional[str] = None
    inputs: Tuple[Parameter, ...] = field(default_factory=tuple)
    outputs: Tuple[Parameter, ...] = field(default_factory=tuple)
    state_mutability: Optional[str] = None
    constant: Optional[bool] = None  # legacy
    payable: Optional[bool] = None  # legacy
    anonymous: bool = False

    @property
    def label(self) -> str:
        """Short human label used in error messages, e.g. `function transfer`."""
        if self.name:
            return f"{self.kind.value} {self.name}"
        return self.kind.value


__all__ = ["EntryKind", "Mutability", "Parameter", "InterfaceEntry"]
