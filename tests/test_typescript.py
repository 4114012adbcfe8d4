"""
Source Synthesizer tests.

The generated text is checked structurally (member names, signatures, types
in the right places) rather than against golden files, so formatting tweaks
do not churn the suite.
"""

from __future__ import annotations

import re

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from typegen.codegen.typescript import SynthesisOptions
from typegen.errors import DuplicateSignatureError, UnsupportedTypeError

from .abi_fixtures import ERC20_ABI, event, fn, gen

WIDE_IN = "BigNumber | number | string"


def _imports(text: str) -> list[str]:
    m = re.search(r"import \{\n(.*?)\} from", text, re.S)
    assert m, text
    return [line.strip().rstrip(",") for line in m.group(1).splitlines() if line.strip()]


def _balanced(text: str) -> bool:
    pairs = {")": "(", "]": "[", "}": "{"}
    stack = []
    for ch in re.sub(r"/\*.*?\*/", "", text, flags=re.S):
        if ch in "([{":
            stack.append(ch)
        elif ch in pairs:
            if not stack or stack.pop() != pairs[ch]:
                return False
    return not stack


# -- module layout ------------------------------------------------------------


def test_erc20_module():
    module = gen(ERC20_ABI)
    text = module.text

    assert module.class_name == "Token"
    assert text.startswith("/* Generated by abi-typegen")
    assert 'import { BigNumber } from "bignumber.js";' in text
    assert '} from "./typegen-runtime";' in text
    assert _imports(text) == [
        "CallOptions",
        "ContractHandle",
        "DeferredEvent",
        "Provider",
        "TransactionHandle",
        "TxOptions",
    ]
    assert "export class Token extends ContractHandle {" in text
    assert "public constructor(address: string, provider: Provider) {" in text
    assert _balanced(text)

    assert [b.kind for b in module.blocks] == ["constructor", "function", "function", "event"]
    assert module.exported_names == (
        "TokenConstructorArgs",
        "TokenDeployOptions",
        "TokenTransferEvent",
        "TokenTransferEventFilter",
        "Token",
    )


def test_constructor_block():
    text = gen(ERC20_ABI).text
    assert f"export type TokenConstructorArgs = [name_: string, supply: {WIDE_IN}];" in text
    assert "export type TokenDeployOptions = TxOptions;" in text
    assert "public static deploy(" in text
    assert "args: TokenConstructorArgs," in text
    assert 'return ContractHandle.deployContract(provider, bytecode, "constructor(string,uint256)", args, options);' in text


def test_implicit_constructor_takes_no_arguments():
    module = gen([fn("ping", mutability="pure")])
    assert "export type TokenConstructorArgs = [];" in module.text
    assert '"constructor()"' in module.text
    assert module.blocks[0].kind == "constructor"


def test_payable_constructor_uses_payable_options():
    doc = [{"type": "constructor", "inputs": [], "stateMutability": "payable"}]
    text = gen(doc).text
    assert "export type TokenDeployOptions = PayableTxOptions;" in text
    assert "PayableTxOptions" in _imports(text)


def test_view_function():
    text = gen(ERC20_ABI).text
    assert "public balanceOf(owner: string, options?: CallOptions): Promise<BigNumber> {" in text
    assert 'return this.call<BigNumber>("balanceOf(address)", [owner], options);' in text


def test_mutating_function_has_transaction_and_static_forms():
    module = gen(ERC20_ABI)
    text = module.text
    assert (
        f"public transfer(to: string, value: {WIDE_IN}, options?: TxOptions): Promise<TransactionHandle> {{" in text
    )
    assert 'return this.transact("transfer(address,uint256)", [to, value], options);' in text
    assert f"public transferStatic(to: string, value: {WIDE_IN}, options?: TxOptions): Promise<boolean> {{" in text
    assert 'return this.callStatic<boolean>("transfer(address,uint256)", [to, value], options);' in text
    assert module.blocks[2].members == ("transfer", "transferStatic")


def test_payable_function_options():
    text = gen([fn("deposit", mutability="payable")]).text
    assert "public deposit(options?: PayableTxOptions): Promise<TransactionHandle> {" in text
    assert "public depositStatic(options?: PayableTxOptions): Promise<void> {" in text


def test_return_shapes():
    doc = [
        fn("none", mutability="view"),
        fn("pair", outputs=[("uint8",), ("address",)], mutability="view"),
        fn("list", outputs=[("uint256[]",)], mutability="pure"),
    ]
    text = gen(doc).text
    assert "public none(options?: CallOptions): Promise<void> {" in text
    assert "public pair(options?: CallOptions): Promise<[number, string]> {" in text
    assert "public list(options?: CallOptions): Promise<BigNumber[]> {" in text


def test_tuple_parameters_render_as_objects():
    param = {
        "name": "order",
        "type": "tuple",
        "components": [{"name": "maker", "type": "address"}, {"name": "amount", "type": "uint256"}],
    }
    text = gen([fn("fill", [param], mutability="nonpayable")]).text
    assert f"public fill(order: {{ maker: string; amount: {WIDE_IN} }}, options?: TxOptions)" in text


def test_unnamed_and_colliding_parameters():
    doc = [fn("f", [("uint8",), ("uint8", "options"), ("uint8", "x"), ("uint8", "x")], mutability="view")]
    text = gen(doc).text
    assert "public f(arg0: number, options_: number, x: number, x_: number, options?: CallOptions)" in text
    assert "[arg0, options_, x, x_]" in text


def test_no_big_number_import_when_unused():
    text = gen([fn("flag", outputs=[("bool",)], mutability="view")]).text
    assert "bignumber.js" not in text
    assert "BigNumber" not in text


# -- overloads and names ------------------------------------------------------


def test_overloads_get_type_suffixes():
    doc = [
        fn("transfer", [("address", "to"), ("uint256", "value")]),
        fn("transfer", [("address", "to"), ("uint256", "value"), ("bytes", "data")]),
        fn("transfer", [], mutability="view"),
    ]
    module = gen(doc)
    block = module.blocks[1]
    assert block.members == (
        "transfer_address_uint256",
        "transfer_address_uint256Static",
        "transfer_address_uint256_bytes",
        "transfer_address_uint256_bytesStatic",
        "transfer_void",
    )
    assert 'this.transact("transfer(address,uint256,bytes)", [to, value, data], options)' in module.text


def test_reserved_and_handle_member_names_are_suffixed():
    doc = [fn("delete"), fn("call", mutability="view"), fn("address", mutability="view")]
    members = [m for b in gen(doc).blocks for m in b.members]
    assert members == ["deploy", "delete_", "delete_Static", "call_", "address_"]


def test_abi_names_win_over_derived_names():
    doc = [fn("foo"), fn("fooStatic", mutability="view"), fn("TransferEvent", mutability="view"), event("Transfer")]
    members = [m for b in gen(doc).blocks for m in b.members]
    assert members == ["deploy", "foo", "fooStatic_", "fooStatic", "TransferEvent", "TransferEvent_"]


def test_class_name_is_pascal_cased_and_reserved_safe():
    assert gen([], name="erc20-token").class_name == "Erc20Token"
    assert gen([], name="Provider").class_name == "Provider_"


_TYPES = st.sampled_from(["address", "bool", "uint8", "uint256", "bytes", "bytes32", "string", "int24[]", "uint8[2]"])


@settings(max_examples=60, deadline=None)
@given(st.lists(st.lists(_TYPES, max_size=3), min_size=1, max_size=6, unique_by=tuple))
def test_overloaded_member_names_are_unique(type_lists):
    doc = [fn("f", [(t, f"a{i}") for i, t in enumerate(types)], mutability="view") for types in type_lists]
    module = gen(doc)
    members = [m for b in module.blocks for m in b.members]
    assert len(members) == len(set(members))
    assert len(module.blocks[1].members) == len(type_lists)


# -- events -------------------------------------------------------------------


def test_event_interfaces_and_member():
    text = gen(ERC20_ABI).text
    assert (
        "export interface TokenTransferEvent {\n"
        "  from: string;\n"
        "  to: string;\n"
        "  value: BigNumber;\n"
        "}\n"
    ) in text
    assert (
        "export interface TokenTransferEventFilter {\n"
        "  from?: string | string[] | null;\n"
        "  to?: string | string[] | null;\n"
        "}\n"
    ) in text
    assert (
        "public TransferEvent(filter: TokenTransferEventFilter = {}): DeferredEvent<TokenTransferEvent> {" in text
    )
    assert 'return this.event<TokenTransferEvent>("Transfer(address,address,uint256)", filter);' in text


def test_indexed_wide_integer_filter_is_parenthesised():
    text = gen([event("Deposit", [("uint256", "amount", True)])]).text
    assert f"  amount?: {WIDE_IN} | ({WIDE_IN})[] | null;\n" in text
    assert "  amount: BigNumber;\n" in text


def test_indexed_reference_types_are_topic_hashes():
    param = {"name": "pair", "type": "tuple", "indexed": True, "components": [{"name": "a", "type": "uint256"}]}
    text = gen([event("Logged", [("string", "tag", True), param, ("uint256[]", "ids", True)])]).text
    assert "  tag: string;\n  pair: string;\n  ids: string;\n" in text
    assert "  ids?: string | string[] | null;\n" in text
    assert "bignumber.js" not in text


def test_anonymous_event_and_unnamed_fields():
    text = gen([event("Ping", [("uint8",), ("uint8",)], anonymous=True)]).text
    assert "  arg0: number;\n  arg1: number;\n" in text
    assert 'return this.event<TokenPingEvent>("Ping(uint8,uint8)", filter, true);' in text


def test_overloaded_events():
    doc = [event("Log", [("uint8", "a")]), event("Log", [("string", "s")])]
    module = gen(doc)
    assert module.blocks[1].members == ("Log_uint8Event", "Log_stringEvent")
    assert module.blocks[1].exports == (
        "TokenLog_uint8Event",
        "TokenLog_uint8EventFilter",
        "TokenLog_stringEvent",
        "TokenLog_stringEventFilter",
    )


# -- fallback / receive -------------------------------------------------------


def test_fallback_and_receive():
    doc = [{"type": "fallback", "stateMutability": "nonpayable"}, {"type": "receive", "stateMutability": "payable"}]
    module = gen(doc)
    text = module.text
    assert [b.kind for b in module.blocks] == ["constructor", "fallback", "receive"]
    assert "public fallback(data: string, options?: TxOptions): Promise<TransactionHandle> {" in text
    assert "return this.sendRaw(data, options);" in text
    assert "public receive(options: PayableTxOptions): Promise<TransactionHandle> {" in text
    assert 'return this.sendRaw("0x", options);' in text


def test_payable_fallback_and_name_clash():
    doc = [fn("fallback", mutability="view"), {"type": "fallback", "payable": True}]
    module = gen(doc)
    assert module.blocks[-1].members == ("fallback_",)
    assert "public fallback_(data: string, options?: PayableTxOptions)" in module.text


# -- edge cases ---------------------------------------------------------------


def test_empty_abi_gives_an_empty_class_shell():
    module = gen([])
    assert module.blocks == ()
    assert module.exported_names == ("Token",)
    assert _imports(module.text) == ["ContractHandle", "Provider"]
    assert "export class Token extends ContractHandle {" in module.text
    assert "deploy" not in module.text


def test_unsupported_types_fail_unless_rendered_as_any():
    doc = [fn("f", [("fixed128x18", "x")], mutability="view")]
    with pytest.raises(UnsupportedTypeError):
        gen(doc)
    text = gen(doc, options=SynthesisOptions(unknown_types="any")).text
    assert "public f(x: any, options?: CallOptions)" in text
    assert '"f(fixed128x18)"' in text


def test_long_fixed_arrays_follow_options():
    doc = [fn("f", [("uint8[4]", "xs")], mutability="view")]
    assert "xs: [number, number, number, number]" in gen(doc).text
    assert "xs: number[] /* length 4 */" in gen(doc, options=SynthesisOptions(fixed_array_tuple_limit=2)).text


def test_invalid_synthesis_options():
    with pytest.raises(ValueError):
        SynthesisOptions(unknown_types="ignore")


def test_duplicate_signature_produces_no_module():
    with pytest.raises(DuplicateSignatureError):
        gen([fn("f", [("uint", "a")]), fn("f", [("uint256", "b")])])


# -- determinism --------------------------------------------------------------

_PARAM_TYPES = st.sampled_from(["address", "bool", "uint8", "uint256", "int64", "bytes", "string", "bytes4", "uint16[3]"])
_FN = st.builds(
    lambda name, types, outs, mut: fn(name, [(t, f"p{i}") for i, t in enumerate(types)], [(t,) for t in outs], mut),
    st.sampled_from(["a", "b", "transfer", "delete", "call"]),
    st.lists(_PARAM_TYPES, max_size=3),
    st.lists(_PARAM_TYPES, max_size=2),
    st.sampled_from(["pure", "view", "nonpayable", "payable"]),
)
_EV = st.builds(
    lambda name, types, flags: event(name, [(t, f"e{i}", f) for i, (t, f) in enumerate(zip(types, flags))]),
    st.sampled_from(["Transfer", "Approval", "a"]),
    st.lists(_PARAM_TYPES, max_size=3),
    st.lists(st.booleans(), min_size=3, max_size=3),
)


@settings(max_examples=60, deadline=None)
@given(st.lists(st.one_of(_FN, _EV), max_size=8))
def test_generation_is_deterministic(doc):
    try:
        first = gen(doc).text
    except DuplicateSignatureError:
        assume(False)
    assert gen(doc).text == first
    assert _balanced(first)
