"""
ABI model, extraction, type grammar and classification.

Public surface:
- Model: ``InterfaceEntry``, ``Parameter``, ``EntryKind``, ``Mutability``.
- Extractor: ``extract_abi``.
- Type grammar & resolver: ``parse_type``, ``resolve_type``, ``canonical_type``.
- Classifier: ``classify`` -> ``ClassifiedAbi`` of ``OverloadGroup``s.
"""

from .classify import ClassifiedAbi, Member, OverloadGroup, TypedParameter, classify, resolve_mutability
from .extract import extract_abi
from .model import EntryKind, InterfaceEntry, Mutability, Parameter
from .types import (
    Direction,
    Opaque,
    ResolvedType,
    RuntimeKind,
    Scalar,
    ScalarKind,
    Sequence,
    Struct,
    StructField,
    TypeNode,
    canonical_type,
    parse_type,
    resolve_type,
)

__all__ = [
    # model
    "EntryKind",
    "Mutability",
    "Parameter",
    "InterfaceEntry",
    # extractor
    "extract_abi",
    # types
    "ScalarKind",
    "Scalar",
    "Sequence",
    "StructField",
    "Struct",
    "Opaque",
    "TypeNode",
    "Direction",
    "RuntimeKind",
    "ResolvedType",
    "parse_type",
    "resolve_type",
    "canonical_type",
    # classifier
    "TypedParameter",
    "Member",
    "OverloadGroup",
    "ClassifiedAbi",
    "classify",
    "resolve_mutability",
]
