"""
Source Synthesizer (TypeScript)
===============================

Renders a `ClassifiedAbi` into one TypeScript module:

    /* banner */
    import { BigNumber } from "bignumber.js";           (only when needed)
    import { ContractHandle, ... } from "<runtime path>";

    export type <C>ConstructorArgs = [...];             constructor block
    export type <C>DeployOptions = TxOptions;
    export interface <C><Event>Event { ... }            one per event member
    export interface <C><Event>EventFilter { ... }

    export class <C> extends ContractHandle {
      constructor(address, provider)
      static deploy(...)                                constructor block
      name(...) / nameStatic(...)                       one set per function member
      <Event>Event(filter)                              one per event member
      fallback(...) / receive(...)
    }

Every member delegates to the runtime shim (`call`, `callStatic`,
`transact`, `event`, `sendRaw`, `deployContract`); no encoding happens here.

Naming. Members keep their sanitized ABI names. Overloaded members get
``_<mangled input types>`` appended. All identifiers of one scope go through
a `NameScope`, which appends ``_`` on collisions with reserved words or
earlier identifiers. ABI-derived member names are claimed before derived
ones (``Static``/``Event`` suffixes, ``fallback``, ``receive``), so an ABI
name keeps its spelling whenever possible.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..abi.classify import ClassifiedAbi, Member, OverloadGroup, TypedParameter
from ..abi.model import Mutability
from ..abi.types import (
    DEFAULT_FIXED_ARRAY_TUPLE_LIMIT,
    Direction,
    ResolvedType,
    RuntimeKind,
    Scalar,
    ScalarKind,
    TypeNode,
    canonical_type,
    resolve_type,
)
from ..logging import get_logger
from ..version import __version__
from .names import NameScope, ident, overload_suffix, pascal

log = get_logger(__name__)

INDENT = "  "

# Members the runtime base class defines on every instance.
_HANDLE_MEMBERS = ("address", "provider", "call", "callStatic", "transact", "event", "sendRaw")

# Runtime import order in the preamble.
_RUNTIME_NAMES = (
    "CallOptions",
    "ContractHandle",
    "DeferredEvent",
    "PayableTxOptions",
    "Provider",
    "TransactionHandle",
    "TxOptions",
)

_TOPIC_HASH = ResolvedType("string", RuntimeKind.BYTES)


@dataclass(frozen=True)
class SynthesisOptions:
    fixed_array_tuple_limit: int = DEFAULT_FIXED_ARRAY_TUPLE_LIMIT
    # "error": unsupported descriptors must not reach the synthesizer
    # "any":   opaque descriptors render as `any`
    unknown_types: str = "error"

    def __post_init__(self) -> None:
        if self.unknown_types not in ("error", "any"):
            raise ValueError(f"unknown_types must be 'error' or 'any', got {self.unknown_types!r}")


@dataclass(frozen=True)
class DeclarationBlock:
    """
    One constructor, function group, event group, fallback or receive.

    `declarations` is top-level text, `body` is text inside the contract class.
    `exports` lists the top-level names declared, `members` the class members.
    """

    kind: str
    name: str
    declarations: str = ""
    body: str = ""
    exports: Tuple[str, ...] = ()
    members: Tuple[str, ...] = ()


@dataclass(frozen=True)
class GeneratedModule:
    class_name: str
    preamble: str
    blocks: Tuple[DeclarationBlock, ...] = field(default_factory=tuple)

    @property
    def exported_names(self) -> Tuple[str, ...]:
        names: List[str] = []
        for b in self.blocks:
            names.extend(b.exports)
        names.append(self.class_name)
        return tuple(names)

    @property
    def text(self) -> str:
        parts = [self.preamble]
        decls = [b.declarations for b in self.blocks if b.declarations]
        if decls:
            parts.append("\n".join(decls))

        body = [
            f"{INDENT}public constructor(address: string, provider: Provider) {{\n"
            f"{INDENT * 2}super(address, provider);\n"
            f"{INDENT}}}\n"
        ]
        body.extend(b.body for b in self.blocks if b.body)
        parts.append(f"export class {self.class_name} extends ContractHandle {{\n" + "\n".join(body) + "}\n")
        return "\n".join(parts)

    def __str__(self) -> str:
        return self.text


def synthesize(
    abi: ClassifiedAbi,
    *,
    contract_name: str,
    runtime_path: str,
    options: Optional[SynthesisOptions] = None,
) -> GeneratedModule:
    """
    Render `abi` as a TypeScript module.

    Args:
        abi: output of the Member Classifier.
        contract_name: display name; the class name is its PascalCase form.
        runtime_path: module specifier of the runtime shim, used verbatim.
        options: type-rendering knobs.
    """
    return _Synthesizer(abi, contract_name, runtime_path, options or SynthesisOptions()).run()


# ----------------------------
# Implementation
# ----------------------------


@dataclass
class _Names:
    """Identifiers for one member, settled before any text is rendered."""

    primary: str = ""
    static: str = ""
    log_type: str = ""
    filter_type: str = ""


class _Synthesizer:
    def __init__(self, abi: ClassifiedAbi, contract_name: str, runtime_path: str, options: SynthesisOptions):
        self.abi = abi
        self.runtime_path = runtime_path
        self.options = options
        self.used_runtime: Set[str] = {"ContractHandle", "Provider"}
        self.uses_big_number = False

        self.module_scope = NameScope()
        self.class_name = self.module_scope.claim(pascal(contract_name))
        self.names: Dict[Tuple[str, int, int], _Names] = {}
        self.fallback_name = ""
        self.receive_name = ""
        self.ctor_args_type = ""
        self.ctor_options_type = ""

    # -- naming ---------------------------------------------------------------

    def _plan_names(self) -> None:
        cls = self.class_name
        if not self.abi.is_empty:
            self.ctor_args_type = self.module_scope.claim(f"{cls}ConstructorArgs")
            self.ctor_options_type = self.module_scope.claim(f"{cls}DeployOptions")

        members = NameScope(_HANDLE_MEMBERS)

        # ABI-derived primary names first
        for gi, group in enumerate(self.abi.functions):
            for mi, member in enumerate(group.members):
                self.names[("fn", gi, mi)] = _Names(primary=members.claim(_member_ident(group, member)))

        for gi, group in enumerate(self.abi.functions):
            for mi, member in enumerate(group.members):
                if not member.mutability.is_read_only:
                    n = self.names[("fn", gi, mi)]
                    n.static = members.claim(f"{n.primary}Static")

        for gi, group in enumerate(self.abi.events):
            for mi, member in enumerate(group.members):
                base = _member_ident(group, member)
                type_base = cls + pascal(group.name, fallback="Anonymous")
                if not group.is_plain:
                    type_base += "_" + _suffix(member)
                self.names[("ev", gi, mi)] = _Names(
                    primary=members.claim(f"{base}Event"),
                    log_type=self.module_scope.claim(f"{type_base}Event"),
                    filter_type=self.module_scope.claim(f"{type_base}EventFilter"),
                )

        if self.abi.fallback is not None:
            self.fallback_name = members.claim("fallback")
        if self.abi.receive is not None:
            self.receive_name = members.claim("receive")

    # -- types ------------------------------------------------------------------

    def _resolve(self, node: TypeNode, direction: Direction, entry: str) -> ResolvedType:
        rt = resolve_type(
            node,
            direction,
            fixed_array_tuple_limit=self.options.fixed_array_tuple_limit,
            opaque_as="any" if self.options.unknown_types == "any" else None,
            entry=entry,
        )
        if rt.uses_big_number:
            self.uses_big_number = True
        return rt

    def _params(
        self, params: Sequence[TypedParameter], entry: str, reserved: Sequence[str] = ()
    ) -> List[Tuple[str, ResolvedType]]:
        scope = NameScope(reserved)
        out = []
        for i, p in enumerate(params):
            out.append((scope.claim(ident(p.name, fallback=f"arg{i}")), self._resolve(p.type, Direction.INPUT, entry)))
        return out

    def _returns(self, member: Member, entry: str) -> str:
        outs = [self._resolve(p.type, Direction.OUTPUT, entry).expr for p in member.outputs]
        if not outs:
            return "void"
        if len(outs) == 1:
            return outs[0]
        return "[" + ", ".join(outs) + "]"

    def _tx_options(self, member: Member) -> str:
        name = "PayableTxOptions" if member.mutability is Mutability.PAYABLE else "TxOptions"
        self.used_runtime.add(name)
        return name

    # -- blocks -----------------------------------------------------------------

    def run(self) -> GeneratedModule:
        self._plan_names()
        blocks: List[DeclarationBlock] = []

        if not self.abi.is_empty:
            blocks.append(self._constructor_block())
        for gi, group in enumerate(self.abi.functions):
            blocks.append(self._function_block(gi, group))
        for gi, group in enumerate(self.abi.events):
            blocks.append(self._event_block(gi, group))
        if self.abi.fallback is not None:
            blocks.append(self._fallback_block(self.abi.fallback))
        if self.abi.receive is not None:
            blocks.append(self._receive_block())

        module = GeneratedModule(class_name=self.class_name, preamble=self._preamble(), blocks=tuple(blocks))
        log.debug("synthesized %s with %d block(s)", self.class_name, len(blocks))
        return module

    def _preamble(self) -> str:
        lines = [
            f"/* Generated by abi-typegen {__version__}. Do not edit by hand. */",
            "/* tslint:disable */",
            "/* eslint-disable */",
        ]
        if self.uses_big_number:
            lines.append('import { BigNumber } from "bignumber.js";')
        names = [n for n in _RUNTIME_NAMES if n in self.used_runtime]
        lines.append("import {")
        lines.extend(f"{INDENT}{n}," for n in names)
        lines.append(f"}} from {json.dumps(self.runtime_path)};")
        return "\n".join(lines) + "\n"

    def _constructor_block(self) -> DeclarationBlock:
        ctor = self.abi.constructor
        self.used_runtime.add("TransactionHandle")
        if ctor is None:
            params: List[Tuple[str, ResolvedType]] = []
            signature = "constructor()"
            opts = "TxOptions"
            self.used_runtime.add(opts)
        else:
            params = self._params(ctor.inputs, "constructor")
            signature = ctor.signature
            opts = self._tx_options(ctor)

        elems = ", ".join(f"{n}: {t.expr}" for n, t in params)
        decls = (
            f"export type {self.ctor_args_type} = [{elems}];\n"
            f"export type {self.ctor_options_type} = {opts};\n"
        )
        body = (
            f"{INDENT}public static deploy(\n"
            f"{INDENT * 2}provider: Provider,\n"
            f"{INDENT * 2}bytecode: string,\n"
            f"{INDENT * 2}args: {self.ctor_args_type},\n"
            f"{INDENT * 2}options?: {self.ctor_options_type},\n"
            f"{INDENT}): Promise<TransactionHandle> {{\n"
            f"{INDENT * 2}return ContractHandle.deployContract(provider, bytecode, {json.dumps(signature)}, args, options);\n"
            f"{INDENT}}}\n"
        )
        return DeclarationBlock(
            kind="constructor",
            name="constructor",
            declarations=decls,
            body=body,
            exports=(self.ctor_args_type, self.ctor_options_type),
            members=("deploy",),
        )

    def _function_block(self, gi: int, group: OverloadGroup) -> DeclarationBlock:
        chunks: List[str] = []
        members: List[str] = []
        for mi, member in enumerate(group.members):
            names = self.names[("fn", gi, mi)]
            entry = member.entry.label
            params = self._params(member.inputs, entry, reserved=("options",))
            ret = self._returns(member, entry)
            args = "[" + ", ".join(n for n, _ in params) + "]"
            sig = json.dumps(member.signature)
            doc = f"{INDENT}/** {member.signature} {member.mutability.value} */\n"

            if member.mutability.is_read_only:
                self.used_runtime.add("CallOptions")
                head = _method_head(names.primary, params, "options?: CallOptions", f"Promise<{ret}>")
                chunks.append(doc + head + _method_tail(f"this.call<{ret}>({sig}, {args}, options)"))
                members.append(names.primary)
                continue

            self.used_runtime.add("TransactionHandle")
            opts = self._tx_options(member)
            head = _method_head(names.primary, params, f"options?: {opts}", "Promise<TransactionHandle>")
            chunks.append(doc + head + _method_tail(f"this.transact({sig}, {args}, options)"))
            head = _method_head(names.static, params, f"options?: {opts}", f"Promise<{ret}>")
            chunks.append(head + _method_tail(f"this.callStatic<{ret}>({sig}, {args}, options)"))
            members.extend((names.primary, names.static))

        return DeclarationBlock(kind="function", name=group.name, body="\n".join(chunks), members=tuple(members))

    def _event_block(self, gi: int, group: OverloadGroup) -> DeclarationBlock:
        self.used_runtime.add("DeferredEvent")
        decls: List[str] = []
        chunks: List[str] = []
        exports: List[str] = []
        members: List[str] = []
        for mi, member in enumerate(group.members):
            names = self.names[("ev", gi, mi)]
            entry = member.entry.label
            log_fields: List[str] = []
            filter_fields: List[str] = []
            keys: Set[str] = set()
            for i, p in enumerate(member.inputs):
                key = _property_key(p.name or f"arg{i}", keys)
                if p.indexed and _is_hashed_topic(p.type):
                    # indexed reference types are only available as their topic hash
                    log_t = filter_t = _TOPIC_HASH
                else:
                    log_t = self._resolve(p.type, Direction.OUTPUT, entry)
                    filter_t = self._resolve(p.type, Direction.INPUT, entry) if p.indexed else log_t
                log_fields.append(f"{INDENT}{key}: {log_t.expr};\n")
                if p.indexed:
                    elem = f"({filter_t.expr})" if filter_t.is_union else filter_t.expr
                    filter_fields.append(f"{INDENT}{key}?: {filter_t.expr} | {elem}[] | null;\n")

            decls.append(f"export interface {names.log_type} {{\n" + "".join(log_fields) + "}\n")
            decls.append(f"export interface {names.filter_type} {{\n" + "".join(filter_fields) + "}\n")
            exports.extend((names.log_type, names.filter_type))

            call_args = f"{json.dumps(member.signature)}, filter"
            if member.entry.anonymous:
                call_args += ", true"
            doc = f"{INDENT}/** event {member.signature}{' anonymous' if member.entry.anonymous else ''} */\n"
            head = (
                f"{INDENT}public {names.primary}(filter: {names.filter_type} = {{}}): "
                f"DeferredEvent<{names.log_type}> {{\n"
            )
            chunks.append(doc + head + _method_tail(f"this.event<{names.log_type}>({call_args})"))
            members.append(names.primary)

        return DeclarationBlock(
            kind="event",
            name=group.name,
            declarations="\n".join(decls),
            body="\n".join(chunks),
            exports=tuple(exports),
            members=tuple(members),
        )

    def _fallback_block(self, member: Member) -> DeclarationBlock:
        self.used_runtime.add("TransactionHandle")
        opts = self._tx_options(member)
        head = _method_head(self.fallback_name, [], f"data: string, options?: {opts}", "Promise<TransactionHandle>")
        body = f"{INDENT}/** fallback {member.mutability.value} */\n" + head + _method_tail("this.sendRaw(data, options)")
        return DeclarationBlock(kind="fallback", name="fallback", body=body, members=(self.fallback_name,))

    def _receive_block(self) -> DeclarationBlock:
        self.used_runtime.update(("TransactionHandle", "PayableTxOptions"))
        head = _method_head(self.receive_name, [], "options: PayableTxOptions", "Promise<TransactionHandle>")
        body = f"{INDENT}/** receive payable */\n" + head + _method_tail('this.sendRaw("0x", options)')
        return DeclarationBlock(kind="receive", name="receive", body=body, members=(self.receive_name,))


# ----------------------------
# Helpers
# ----------------------------


def _suffix(member: Member) -> str:
    return overload_suffix([canonical_type(p.type) for p in member.inputs])


def _member_ident(group: OverloadGroup, member: Member) -> str:
    base = ident(group.name, fallback="member")
    if group.is_plain:
        return base
    return f"{base}_{_suffix(member)}"


def _method_head(name: str, params: Sequence[Tuple[str, ResolvedType]], extra: str, returns: str) -> str:
    parts = [f"{n}: {t.expr}" for n, t in params]
    if extra:
        parts.append(extra)
    return f"{INDENT}public {name}({', '.join(parts)}): {returns} {{\n"


def _method_tail(expr: str) -> str:
    return f"{INDENT * 2}return {expr};\n{INDENT}}}\n"


def _property_key(name: str, taken: Set[str]) -> str:
    key = name
    while key in taken:
        key += "_"
    taken.add(key)
    return _quote_property(key)


def _quote_property(name: str) -> str:
    return name if ident(name) == name else json.dumps(name)


def _is_hashed_topic(node: TypeNode) -> bool:
    if isinstance(node, Scalar):
        return node.kind in (ScalarKind.STRING, ScalarKind.BYTES)
    return True


__all__ = ["SynthesisOptions", "DeclarationBlock", "GeneratedModule", "synthesize"]
