from __future__ import annotations

"""
Member Classifier
=================

Partitions parsed entries into the constructor, function overload groups,
event overload groups, and the fallback/receive members, resolving every
parameter's type on the way:

- at most one constructor, fallback and receive (`DuplicateSpecialMemberError`);
  a missing constructor is signalled by `ClassifiedAbi.implicit_constructor`;
- functions and events are grouped by name in first-occurrence order, and an
  input signature repeated inside one group is a `DuplicateSignatureError`;
- function mutability comes from ``stateMutability`` when present, otherwise
  from the legacy ``constant``/``payable`` flags (see `_legacy_mutability`).
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..errors import DuplicateSignatureError, DuplicateSpecialMemberError, UnsupportedTypeError
from ..logging import get_logger
from .model import EntryKind, InterfaceEntry, Mutability, Parameter
from .types import Opaque, TypeNode, canonical_signature, parse_parameter_type

log = get_logger(__name__)


@dataclass(frozen=True)
class TypedParameter:
    name: str
    type: TypeNode
    indexed: bool = False


@dataclass(frozen=True)
class Member:
    """One entry with fully parsed parameter types and a settled mutability."""

    entry: InterfaceEntry
    inputs: Tuple[TypedParameter, ...]
    outputs: Tuple[TypedParameter, ...]
    mutability: Mutability
    signature: str  # canonical, e.g. "transfer(address,uint256)"

    @property
    def name(self) -> Optional[str]:
        return self.entry.name


@dataclass(frozen=True)
class OverloadGroup:
    name: str
    kind: EntryKind
    members: Tuple[Member, ...]

    @property
    def is_plain(self) -> bool:
        return len(self.members) == 1


@dataclass(frozen=True)
class ClassifiedAbi:
    constructor: Optional[Member] = None
    functions: Tuple[OverloadGroup, ...] = field(default_factory=tuple)
    events: Tuple[OverloadGroup, ...] = field(default_factory=tuple)
    fallback: Optional[Member] = None
    receive: Optional[Member] = None

    @property
    def implicit_constructor(self) -> bool:
        """True when no constructor entry exists and a no-argument one is implied."""
        return self.constructor is None

    @property
    def is_empty(self) -> bool:
        return not (self.constructor or self.functions or self.events or self.fallback or self.receive)


def classify(entries: Iterable[InterfaceEntry], *, allow_unknown_types: bool = False) -> ClassifiedAbi:
    """
    Classify and group `entries`.

    Args:
        entries: output of the Interface Extractor, in document order.
        allow_unknown_types: turn unsupported parameter descriptors into
            `Opaque` nodes instead of failing. Off by default.

    Raises:
        UnsupportedTypeError, DuplicateSpecialMemberError, DuplicateSignatureError
    """
    specials: Dict[EntryKind, Member] = {}
    buckets: Dict[Tuple[EntryKind, str], List[Member]] = {}
    seen_signatures: Set[Tuple[EntryKind, str]] = set()

    for entry in entries:
        member = _build_member(entry, allow_unknown_types=allow_unknown_types)

        if entry.kind in (EntryKind.CONSTRUCTOR, EntryKind.FALLBACK, EntryKind.RECEIVE):
            if entry.kind in specials:
                raise DuplicateSpecialMemberError(entry.kind.value)
            specials[entry.kind] = member
            continue

        key = (entry.kind, member.signature)
        if key in seen_signatures:
            raise DuplicateSignatureError(member.name or "", member.signature, kind=entry.kind.value)
        seen_signatures.add(key)
        # dicts keep insertion order, so groups come out in first-occurrence order
        buckets.setdefault((entry.kind, member.name or ""), []).append(member)

    functions = tuple(
        OverloadGroup(name, kind, tuple(ms)) for (kind, name), ms in buckets.items() if kind is EntryKind.FUNCTION
    )
    events = tuple(
        OverloadGroup(name, kind, tuple(ms)) for (kind, name), ms in buckets.items() if kind is EntryKind.EVENT
    )

    abi = ClassifiedAbi(
        constructor=specials.get(EntryKind.CONSTRUCTOR),
        functions=functions,
        events=events,
        fallback=specials.get(EntryKind.FALLBACK),
        receive=specials.get(EntryKind.RECEIVE),
    )
    log.debug(
        "classified %d function group(s), %d event group(s), implicit constructor: %s",
        len(functions),
        len(events),
        abi.implicit_constructor,
    )
    return abi


def _build_member(entry: InterfaceEntry, *, allow_unknown_types: bool) -> Member:
    inputs = tuple(_typed(p, entry, allow_unknown_types) for p in entry.inputs)
    outputs = tuple(_typed(p, entry, allow_unknown_types) for p in entry.outputs)
    sig_name = entry.name or entry.kind.value
    return Member(
        entry=entry,
        inputs=inputs,
        outputs=outputs,
        mutability=resolve_mutability(entry),
        signature=canonical_signature(sig_name, (p.type for p in inputs)),
    )


def _typed(param: Parameter, entry: InterfaceEntry, allow_unknown_types: bool) -> TypedParameter:
    try:
        node = parse_parameter_type(param, entry=entry.label)
    except UnsupportedTypeError:
        if not allow_unknown_types:
            raise
        log.debug("rendering unsupported type %r in %s as opaque", param.type, entry.label)
        node = Opaque(param.type)
    return TypedParameter(name=param.name, type=node, indexed=param.indexed)


def resolve_mutability(entry: InterfaceEntry) -> Mutability:
    """Settle the mutability of one entry."""
    if entry.kind is EntryKind.RECEIVE:
        return Mutability.PAYABLE
    if entry.kind is EntryKind.EVENT:
        return Mutability.VIEW

    if entry.state_mutability is not None:
        mut = Mutability(entry.state_mutability)
        if entry.kind is not EntryKind.FUNCTION and mut.is_read_only:
            # constructors and fallbacks can only be (non)payable
            return Mutability.NONPAYABLE
        return mut
    return _legacy_mutability(entry)


# Legacy compatibility: documents from before `stateMutability` existed only
# carry `constant` and `payable`. `constant: true` means view, `payable: true`
# means payable, anything else is nonpayable. Delete this helper (and its call
# above) to stop accepting such documents.
def _legacy_mutability(entry: InterfaceEntry) -> Mutability:
    if entry.constant is True and entry.kind is EntryKind.FUNCTION:
        return Mutability.VIEW
    if entry.payable is True:
        return Mutability.PAYABLE
    return Mutability.NONPAYABLE


__all__ = [
    "TypedParameter",
    "Member",
    "OverloadGroup",
    "ClassifiedAbi",
    "classify",
    "resolve_mutability",
]
