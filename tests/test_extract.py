"""
Interface Extractor tests: document shapes, contract selection, legacy
entries, schema validation and JSON diagnostics.
"""

from __future__ import annotations

import json

import pytest

from typegen.abi.extract import extract_abi, parse_parameter, select_entries
from typegen.abi.model import EntryKind
from typegen.abi.types import MAX_TUPLE_DEPTH
from typegen.errors import AmbiguousSourceError, MalformedInputError

from .abi_fixtures import ERC20_ABI, event, fn

OTHER_ABI = [fn("ping", [], [], "pure")]


def _names(entries):
    return [e.name for e in entries]


# -- shapes -------------------------------------------------------------------


def test_bare_array():
    entries = extract_abi(json.dumps(ERC20_ABI))
    assert [e.kind for e in entries] == [
        EntryKind.CONSTRUCTOR,
        EntryKind.FUNCTION,
        EntryKind.FUNCTION,
        EntryKind.EVENT,
    ]
    assert _names(entries) == [None, "balanceOf", "transfer", "Transfer"]


def test_artifact_with_abi_key():
    doc = {"contractName": "Token", "abi": ERC20_ABI, "bytecode": "0x00"}
    assert extract_abi(json.dumps(doc)) == extract_abi(json.dumps(ERC20_ABI))


def test_bytes_input_is_decoded():
    assert extract_abi(json.dumps(ERC20_ABI).encode("utf-8")) == extract_abi(json.dumps(ERC20_ABI))


def test_contract_map_first_policy_takes_first_key():
    doc = {"Token": {"abi": ERC20_ABI}, "Other": {"abi": OTHER_ABI}}
    assert _names(extract_abi(json.dumps(doc))) == [None, "balanceOf", "transfer", "Transfer"]


def test_contract_map_strict_policy_refuses_differing_contracts():
    doc = {"Token": {"abi": ERC20_ABI}, "Other": {"abi": OTHER_ABI}}
    with pytest.raises(AmbiguousSourceError) as ei:
        extract_abi(json.dumps(doc), selection="strict")
    assert ei.value.candidates == ("Token", "Other")


def test_contract_map_strict_policy_accepts_identical_contracts():
    doc = {"A": {"abi": OTHER_ABI}, "B": {"abi": OTHER_ABI}}
    assert _names(extract_abi(json.dumps(doc), selection="strict")) == ["ping"]


def test_contract_map_single_entry_is_fine_under_strict():
    doc = {"Only": {"abi": OTHER_ABI}}
    assert _names(extract_abi(json.dumps(doc), selection="strict")) == ["ping"]


def test_explicit_contract_by_suffix_and_combined_json_wrapper():
    doc = {
        "contracts": {
            "src/Token.sol:Token": {"abi": json.dumps(ERC20_ABI)},
            "src/Other.sol:Other": {"abi": json.dumps(OTHER_ABI)},
        },
        "version": "0.8.24",
    }
    assert _names(extract_abi(json.dumps(doc), contract="Other")) == ["ping"]
    assert _names(extract_abi(json.dumps(doc), contract="src/Token.sol:Token"))[1:3] == ["balanceOf", "transfer"]


def test_explicit_contract_missing():
    doc = {"Token": {"abi": ERC20_ABI}}
    with pytest.raises(AmbiguousSourceError):
        extract_abi(json.dumps(doc), contract="Nope")


def test_unknown_selection_policy():
    with pytest.raises(ValueError):
        select_entries([], selection="last")


@pytest.mark.parametrize(
    "doc",
    [
        {"foo": 1},
        {"Token": {"bytecode": "0x"}},
        42,
        "[]",
        {"abi": {"not": "a list"}},
    ],
)
def test_unrecognised_shapes(doc):
    with pytest.raises(MalformedInputError):
        extract_abi(json.dumps(doc))


# -- entries ------------------------------------------------------------------


def test_empty_abi_gives_no_entries():
    assert extract_abi("[]") == ()
    assert extract_abi('{"abi": []}') == ()


def test_missing_type_defaults_to_function():
    (entry,) = extract_abi(json.dumps([{"name": "f", "constant": True, "inputs": [], "outputs": []}]))
    assert entry.kind is EntryKind.FUNCTION
    assert entry.constant is True
    assert entry.state_mutability is None


def test_error_entries_are_skipped():
    doc = [{"type": "error", "name": "Unauthorized", "inputs": []}, fn("f")]
    assert _names(extract_abi(json.dumps(doc))) == ["f"]


def test_unknown_entry_type():
    with pytest.raises(MalformedInputError) as ei:
        extract_abi(json.dumps([{"type": "modifier", "name": "onlyOwner"}]))
    assert "modifier" in str(ei.value)


def test_function_without_name():
    with pytest.raises(MalformedInputError):
        extract_abi(json.dumps([{"type": "function", "inputs": []}]))


def test_schema_violation_reports_location():
    doc = [fn("f", inputs=[{"name": "x"}])]
    with pytest.raises(MalformedInputError) as ei:
        extract_abi(json.dumps(doc))
    assert "inputs/0" in ei.value.message
    assert ei.value.diagnostic


def test_invalid_state_mutability():
    with pytest.raises(MalformedInputError):
        extract_abi(json.dumps([fn("f", mutability="constant")]))


def test_non_object_entry():
    with pytest.raises(MalformedInputError):
        extract_abi("[1]")


def test_event_parameters_keep_indexed_and_anonymous():
    doc = [event("Ping", [("address", "who", True), ("uint256", "n", False)], anonymous=True)]
    (entry,) = extract_abi(json.dumps(doc))
    assert entry.anonymous is True
    assert [p.indexed for p in entry.inputs] == [True, False]


def test_indexed_flag_is_ignored_outside_events():
    p = parse_parameter({"name": "x", "type": "uint8", "indexed": True})
    assert p.indexed is False


def test_tuple_components_and_internal_type():
    raw = {
        "name": "key",
        "type": "tuple[]",
        "internalType": "struct Pool.Key[]",
        "components": [{"name": "a", "type": "address"}, {"name": "b", "type": " uint24 "}],
    }
    p = parse_parameter(raw)
    assert p.type == "tuple[]"
    assert p.internal_type == "struct Pool.Key[]"
    assert [(c.name, c.type) for c in p.components] == [("a", "address"), ("b", "uint24")]


# -- diagnostics --------------------------------------------------------------


def test_invalid_json_carries_parser_position():
    with pytest.raises(MalformedInputError) as ei:
        extract_abi('[\n  {"type": "function",\n  ')
    err = ei.value
    assert err.diagnostic
    assert err.line is not None and err.line >= 2
    assert err.column is not None
    assert f"line {err.line}" in str(err)


def test_invalid_utf8():
    with pytest.raises(MalformedInputError):
        extract_abi(b"\xff\xfe[]")


def test_string_encoded_abi_must_be_json():
    with pytest.raises(MalformedInputError):
        extract_abi(json.dumps({"Token": {"abi": "[{"}}))


# -- nesting limits -----------------------------------------------------------


def _nested_tuple(depth: int) -> dict:
    param: dict = {"name": "leaf", "type": "uint8"}
    for level in range(depth):
        param = {"name": f"t{level}", "type": "tuple", "components": [param]}
    return param


def test_tuple_nesting_at_the_limit_is_accepted():
    (entry,) = extract_abi(json.dumps([fn("deep", [_nested_tuple(MAX_TUPLE_DEPTH)])]))
    assert entry.inputs[0].type == "tuple"


@pytest.mark.parametrize("depth", [MAX_TUPLE_DEPTH + 1, 200])
def test_tuple_nesting_past_the_limit_is_a_typed_error(depth):
    with pytest.raises(MalformedInputError) as ei:
        extract_abi(json.dumps([fn("deep", outputs=[_nested_tuple(depth)])]))
    assert "deep" in ei.value.message
    assert f"{depth} levels" in ei.value.message


def test_deeply_nested_json_is_a_typed_error():
    with pytest.raises(MalformedInputError):
        extract_abi("[" * 100_000 + "]" * 100_000)
