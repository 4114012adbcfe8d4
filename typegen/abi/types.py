from __future__ import annotations

"""
Type grammar & Type Resolver
============================

Two steps, both pure functions:

- `parse_type` turns a raw descriptor (``"uint256"``, ``"bytes32[3][]"``,
  ``"tuple[]"`` + components) into a `TypeNode`, a closed variant set:

    Scalar(kind, size)        elementary types
    Sequence(inner, length)   ``T[]`` (length None) and ``T[k]``
    Struct(fields, name)      ``tuple`` with ordered, possibly unnamed fields
    Opaque(descriptor)        only produced when the caller opts into
                              rendering unsupported descriptors as ``any``

- `resolve_type` maps a `TypeNode` to a TypeScript type expression plus a
  runtime-kind tag. Input and output positions differ only for wide integers:
  inputs accept ``BigNumber | number | string``, outputs are ``BigNumber``.

Integers of up to 48 bits fit a JS number exactly and resolve to ``number``.
"""

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

from ..errors import UnsupportedTypeError
from .model import Parameter

MAX_NATIVE_INT_BITS = 48
DEFAULT_FIXED_ARRAY_TUPLE_LIMIT = 32
# A fixed array renders as a tuple only while the elements it spells out,
# counting nested tuple expansions, stay within this many.
MAX_TUPLE_ELEMENTS = 1024
# Nesting bounds for one parameter: tuple levels and array suffixes per level.
MAX_TUPLE_DEPTH = 32
MAX_ARRAY_DIMENSIONS = 8

_ARRAY_SUFFIX_RE = re.compile(r"\[(\d*)\]$")
_INT_RE = re.compile(r"^(u?int)(\d*)$")
_FIXED_BYTES_RE = re.compile(r"^bytes(\d+)$")
_TS_IDENT_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


# -----------------
# Type nodes
# -----------------


class ScalarKind(str, Enum):
    BOOL = "bool"
    ADDRESS = "address"
    STRING = "string"
    BYTES = "bytes"
    FIXED_BYTES = "fixed_bytes"
    UINT = "uint"
    INT = "int"


@dataclass(frozen=True)
class Scalar:
    kind: ScalarKind
    # bit width for UINT/INT, byte length for FIXED_BYTES
    size: Optional[int] = None


@dataclass(frozen=True)
class Sequence:
    inner: "TypeNode"
    length: Optional[int] = None  # None => dynamic


@dataclass(frozen=True)
class StructField:
    name: str
    type: "TypeNode"


@dataclass(frozen=True)
class Struct:
    fields: Tuple[StructField, ...] = field(default_factory=tuple)
    # derived from the compiler's internalType, metadata only
    name: Optional[str] = None


@dataclass(frozen=True)
class Opaque:
    descriptor: str


TypeNode = Union[Scalar, Sequence, Struct, Opaque]


class Direction(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


class RuntimeKind(str, Enum):
    BOOLEAN = "boolean"
    NUMBER = "number"
    BIG_NUMBER = "big_number"
    STRING = "string"
    ADDRESS = "address"
    BYTES = "bytes"
    SEQUENCE = "sequence"
    STRUCT = "struct"
    OPAQUE = "opaque"


@dataclass(frozen=True)
class ResolvedType:
    expr: str
    runtime_kind: RuntimeKind
    uses_big_number: bool = False
    # top-level union; must be parenthesized before appending `[]`
    is_union: bool = False
    # element expressions spelled out by fixed-array tuple expansion
    weight: int = 1


# -----------------
# Parsing
# -----------------


def parse_type(
    descriptor: str,
    components: Iterable[Parameter] = (),
    *,
    entry: Optional[str] = None,
    internal_type: Optional[str] = None,
) -> TypeNode:
    """
    Parse one raw descriptor (with the component parameters of a tuple, if any).

    Raises:
        UnsupportedTypeError: the descriptor is not part of the supported grammar,
            or nests deeper than MAX_TUPLE_DEPTH / MAX_ARRAY_DIMENSIONS.
    """
    return _parse(descriptor, tuple(components), entry=entry, internal_type=internal_type, depth=0)


def parse_parameter_type(param: Parameter, *, entry: Optional[str] = None) -> TypeNode:
    return parse_type(param.type, param.components, entry=entry, internal_type=param.internal_type)


def _parse(
    descriptor: str,
    components: Tuple[Parameter, ...],
    *,
    entry: Optional[str],
    internal_type: Optional[str],
    depth: int,
) -> TypeNode:
    s = (descriptor or "").strip()
    dims: List[Optional[int]] = []
    m = _ARRAY_SUFFIX_RE.search(s)
    while m:
        if m.group(1) == "":
            dims.append(None)
        else:
            length = int(m.group(1))
            if length == 0:
                raise UnsupportedTypeError(descriptor, entry, "fixed-length arrays need a length >= 1")
            dims.append(length)
        s = s[: m.start()]
        m = _ARRAY_SUFFIX_RE.search(s)
    if len(dims) > MAX_ARRAY_DIMENSIONS:
        raise UnsupportedTypeError(descriptor, entry, f"more than {MAX_ARRAY_DIMENSIONS} array dimensions")

    node = _parse_base(s, components, descriptor=descriptor, entry=entry, internal_type=internal_type, depth=depth)
    # suffixes were collected right-to-left; the leftmost one binds tightest
    for length in reversed(dims):
        node = Sequence(node, length)
    return node


def _parse_base(
    s: str,
    components: Tuple[Parameter, ...],
    *,
    descriptor: str,
    entry: Optional[str],
    internal_type: Optional[str],
    depth: int,
) -> TypeNode:
    if s == "tuple":
        if depth >= MAX_TUPLE_DEPTH:
            raise UnsupportedTypeError(descriptor, entry, f"tuples nested more than {MAX_TUPLE_DEPTH} levels deep")
        return Struct(
            fields=tuple(
                StructField(c.name, _parse(c.type, c.components, entry=entry, internal_type=c.internal_type, depth=depth + 1))
                for c in components
            ),
            name=_struct_name(internal_type),
        )
    if s == "bool":
        return Scalar(ScalarKind.BOOL)
    if s == "address":
        return Scalar(ScalarKind.ADDRESS)
    if s == "string":
        return Scalar(ScalarKind.STRING)
    if s == "bytes":
        return Scalar(ScalarKind.BYTES)

    bm = _FIXED_BYTES_RE.match(s)
    if bm:
        n = int(bm.group(1))
        if not 1 <= n <= 32:
            raise UnsupportedTypeError(descriptor, entry, "bytesN requires 1 <= N <= 32")
        return Scalar(ScalarKind.FIXED_BYTES, n)

    im = _INT_RE.match(s)
    if im:
        kind = ScalarKind.UINT if im.group(1) == "uint" else ScalarKind.INT
        # bare `uint` / `int` are aliases of the 256-bit forms
        bits = int(im.group(2)) if im.group(2) else 256
        if bits % 8 != 0 or not 8 <= bits <= 256:
            raise UnsupportedTypeError(descriptor, entry, "integer width must be a multiple of 8 in 8..256")
        return Scalar(kind, bits)

    raise UnsupportedTypeError(descriptor, entry)


def _struct_name(internal_type: Optional[str]) -> Optional[str]:
    # "struct Pool.Key[]" -> "Key"
    if not internal_type or not internal_type.startswith("struct "):
        return None
    name = internal_type[len("struct ") :]
    while _ARRAY_SUFFIX_RE.search(name):
        name = _ARRAY_SUFFIX_RE.sub("", name)
    return name.rsplit(".", 1)[-1] or None


# -----------------
# Canonical form
# -----------------


def canonical_type(node: TypeNode) -> str:
    """Canonical signature fragment, e.g. ``uint256``, ``(address,uint256)[]``."""
    if isinstance(node, Scalar):
        if node.kind in (ScalarKind.UINT, ScalarKind.INT):
            return f"{node.kind.value}{node.size}"
        if node.kind is ScalarKind.FIXED_BYTES:
            return f"bytes{node.size}"
        return node.kind.value
    if isinstance(node, Sequence):
        suffix = f"[{node.length}]" if node.length is not None else "[]"
        return f"{canonical_type(node.inner)}{suffix}"
    if isinstance(node, Struct):
        return "(" + ",".join(canonical_type(f.type) for f in node.fields) + ")"
    if isinstance(node, Opaque):
        return node.descriptor
    raise TypeError(f"not a type node: {node!r}")


def canonical_signature(name: str, types: Iterable[TypeNode]) -> str:
    return f"{name}(" + ",".join(canonical_type(t) for t in types) + ")"


# -----------------
# Resolution
# -----------------


def resolve_type(
    node: TypeNode,
    direction: Direction = Direction.OUTPUT,
    *,
    fixed_array_tuple_limit: int = DEFAULT_FIXED_ARRAY_TUPLE_LIMIT,
    opaque_as: Optional[str] = None,
    entry: Optional[str] = None,
) -> ResolvedType:
    """
    Resolve `node` to a TypeScript type expression.

    `opaque_as` is the expression used for `Opaque` nodes; without it an
    `Opaque` node raises UnsupportedTypeError.
    """
    if isinstance(node, Scalar):
        return _resolve_scalar(node, direction)

    if isinstance(node, Sequence):
        inner = resolve_type(
            node.inner,
            direction,
            fixed_array_tuple_limit=fixed_array_tuple_limit,
            opaque_as=opaque_as,
            entry=entry,
        )
        if (
            node.length is not None
            and node.length <= fixed_array_tuple_limit
            and node.length * inner.weight <= MAX_TUPLE_ELEMENTS
        ):
            expr = "[" + ", ".join([inner.expr] * node.length) + "]"
            weight = node.length * inner.weight
        else:
            # dynamic, over the length limit, or over the element budget
            elem = f"({inner.expr})" if inner.is_union else inner.expr
            expr = f"{elem}[]"
            if node.length is not None:
                expr += f" /* length {node.length} */"
            weight = inner.weight
        return ResolvedType(expr, RuntimeKind.SEQUENCE, uses_big_number=inner.uses_big_number, weight=weight)

    if isinstance(node, Struct):
        resolved = [
            resolve_type(
                f.type,
                direction,
                fixed_array_tuple_limit=fixed_array_tuple_limit,
                opaque_as=opaque_as,
                entry=entry,
            )
            for f in node.fields
        ]
        big = any(r.uses_big_number for r in resolved)
        weight = max(1, sum(r.weight for r in resolved))
        names = [f.name for f in node.fields]
        if names and all(names) and len(set(names)) == len(names):
            body = "; ".join(f"{_property_name(n)}: {r.expr}" for n, r in zip(names, resolved))
            return ResolvedType("{ " + body + " }", RuntimeKind.STRUCT, uses_big_number=big, weight=weight)
        # positional when any field is unnamed
        return ResolvedType(
            "[" + ", ".join(r.expr for r in resolved) + "]", RuntimeKind.STRUCT, uses_big_number=big, weight=weight
        )

    if isinstance(node, Opaque):
        if opaque_as is None:
            raise UnsupportedTypeError(node.descriptor, entry)
        return ResolvedType(opaque_as, RuntimeKind.OPAQUE)

    raise TypeError(f"not a type node: {node!r}")


def _resolve_scalar(node: Scalar, direction: Direction) -> ResolvedType:
    kind = node.kind
    if kind is ScalarKind.BOOL:
        return ResolvedType("boolean", RuntimeKind.BOOLEAN)
    if kind is ScalarKind.ADDRESS:
        return ResolvedType("string", RuntimeKind.ADDRESS)
    if kind is ScalarKind.STRING:
        return ResolvedType("string", RuntimeKind.STRING)
    if kind in (ScalarKind.BYTES, ScalarKind.FIXED_BYTES):
        # hex-encoded, 0x-prefixed
        return ResolvedType("string", RuntimeKind.BYTES)
    if kind in (ScalarKind.UINT, ScalarKind.INT):
        if (node.size or 256) <= MAX_NATIVE_INT_BITS:
            return ResolvedType("number", RuntimeKind.NUMBER)
        if direction is Direction.INPUT:
            return ResolvedType("BigNumber | number | string", RuntimeKind.BIG_NUMBER, uses_big_number=True, is_union=True)
        return ResolvedType("BigNumber", RuntimeKind.BIG_NUMBER, uses_big_number=True)
    raise TypeError(f"unhandled scalar kind: {kind!r}")


def _property_name(name: str) -> str:
    return name if _TS_IDENT_RE.match(name) else json.dumps(name)


__all__ = [
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
    "parse_parameter_type",
    "canonical_type",
    "canonical_signature",
    "resolve_type",
    "MAX_NATIVE_INT_BITS",
    "DEFAULT_FIXED_ARRAY_TUPLE_LIMIT",
    "MAX_TUPLE_ELEMENTS",
    "MAX_TUPLE_DEPTH",
    "MAX_ARRAY_DIMENSIONS",
]
