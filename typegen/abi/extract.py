from __future__ import annotations

"""
Interface Extractor
===================

Turns an arbitrarily-shaped JSON document into an ordered tuple of
`InterfaceEntry`. Three document shapes are accepted transparently:

1. a bare JSON array of entries,
2. an object with an ``abi`` array (build artifacts),
3. an object whose values are objects each carrying ``abi`` (combined
   compiler output covering many contracts). ``solc --combined-json``
   wraps that map under a ``contracts`` key and may store ``abi`` as a
   JSON-encoded string; both variations are handled.

For shape 3 exactly one contract is selected: an explicit ``contract``
name wins; otherwise the ``selection`` policy decides ("first" takes the
first key in document order, "strict" refuses documents that hold several
contracts with differing entries).

Each entry is checked against ``schemas/abi_entry.schema.json`` with
jsonschema before it is converted. Tuple nesting deeper than
``MAX_TUPLE_DEPTH`` is refused first.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import jsonschema
from jsonschema.exceptions import best_match

from ..errors import AmbiguousSourceError, MalformedInputError
from ..logging import get_logger
from .model import EntryKind, InterfaceEntry, Parameter
from .types import MAX_TUPLE_DEPTH

log = get_logger(__name__)

_SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "abi_entry.schema.json"

# Entry kinds that are valid ABI but carry nothing to generate.
_SKIPPED_KINDS = frozenset({"error"})


# ----------------------------
# Public API
# ----------------------------


def extract_abi(
    text: Union[str, bytes],
    *,
    selection: str = "first",
    contract: Optional[str] = None,
) -> Tuple[InterfaceEntry, ...]:
    """
    Parse `text` into interface entries.

    Args:
        text: the raw document (UTF-8).
        selection: "first" or "strict"; how to pick one contract from a
            multi-contract document when `contract` is not given.
        contract: explicit contract name to select from a multi-contract document.

    Returns:
        Entries in document order. An empty tuple when the document holds none.

    Raises:
        MalformedInputError: not JSON, unknown shape, or a structurally invalid entry.
        AmbiguousSourceError: no deterministic single-contract selection.
    """
    doc = _load_json(text)
    raw_entries = select_entries(doc, selection=selection, contract=contract)

    validator = _validator()
    entries: List[InterfaceEntry] = []
    for i, raw in enumerate(raw_entries):
        if not isinstance(raw, dict):
            raise MalformedInputError(f"ABI entry #{i} must be an object, got {type(raw).__name__}")
        # checked before the recursive schema validator sees the entry
        depth = _tuple_depth(raw)
        if depth > MAX_TUPLE_DEPTH:
            label = raw.get("name") or raw.get("type") or "function"
            raise MalformedInputError(
                f"ABI entry #{i} ({label}) nests tuples {depth} levels deep",
                diagnostic=f"at most {MAX_TUPLE_DEPTH} levels are supported",
            )
        err = best_match(validator.iter_errors(raw))
        if err is not None:
            path = "/".join(str(p) for p in err.absolute_path)
            where = f" at {path}" if path else ""
            raise MalformedInputError(f"ABI entry #{i} is malformed{where}", diagnostic=err.message)
        entry = parse_entry(raw, index=i)
        if entry is not None:
            entries.append(entry)

    log.debug("extracted %d ABI entries", len(entries))
    return tuple(entries)


def select_entries(
    doc: Any,
    *,
    selection: str = "first",
    contract: Optional[str] = None,
) -> List[Any]:
    """Return the raw entry list of `doc`, choosing one contract when several are present."""
    if selection not in ("first", "strict"):
        raise ValueError(f"unknown selection policy: {selection!r}")
    if isinstance(doc, list):
        return doc
    if not isinstance(doc, dict):
        raise MalformedInputError(f"ABI document must be an array or an object, got {type(doc).__name__}")

    if "abi" in doc:
        return _abi_field(doc["abi"], owner="document")

    contracts: Mapping[str, Any] = doc
    if isinstance(doc.get("contracts"), dict):
        contracts = doc["contracts"]

    candidates = [(str(k), v) for k, v in contracts.items() if isinstance(v, dict) and "abi" in v]
    if not candidates:
        raise MalformedInputError("Not a valid ABI: expected an array, an object with 'abi', or a map of contracts")

    names = tuple(k for k, _ in candidates)
    if contract is not None:
        candidates = _match_contract(candidates, contract)
        if not candidates:
            raise AmbiguousSourceError(f"contract {contract!r} not found in document", candidates=names)

    picked_name, picked = candidates[0]
    picked_abi = _abi_field(picked["abi"], owner=picked_name)

    if len(candidates) > 1 and selection == "strict":
        for name, other in candidates[1:]:
            if _abi_field(other["abi"], owner=name) != picked_abi:
                raise AmbiguousSourceError(
                    "document holds several contracts with differing entries",
                    candidates=tuple(k for k, _ in candidates),
                )

    log.debug("selected contract %s out of %d", picked_name, len(names))
    return picked_abi


# ----------------------------
# Entries
# ----------------------------


def parse_entry(raw: Mapping[str, Any], *, index: int = 0) -> Optional[InterfaceEntry]:
    """Convert one schema-valid raw entry. Returns None for kinds that are skipped."""
    kind_raw = raw.get("type")
    if kind_raw is None:
        kind = _legacy_missing_type_kind()
    elif kind_raw in _SKIPPED_KINDS:
        log.debug("skipping %s entry %s", kind_raw, raw.get("name", f"#{index}"))
        return None
    else:
        try:
            kind = EntryKind(kind_raw)
        except ValueError:
            raise MalformedInputError(f"ABI entry #{index} has unknown type {kind_raw!r}") from None

    name: Optional[str] = None
    if kind in (EntryKind.FUNCTION, EntryKind.EVENT):
        name = raw.get("name")
        if not name:
            raise MalformedInputError(f"ABI entry #{index} ({kind.value}) is missing a name")

    outputs: Tuple[Parameter, ...] = ()
    if kind is EntryKind.FUNCTION:
        outputs = tuple(parse_parameter(p) for p in raw.get("outputs") or ())

    return InterfaceEntry(
        kind=kind,
        name=name,
        inputs=tuple(parse_parameter(p, allow_indexed=kind is EntryKind.EVENT) for p in raw.get("inputs") or ()),
        outputs=outputs,
        state_mutability=raw.get("stateMutability"),
        constant=raw.get("constant"),
        payable=raw.get("payable"),
        anonymous=bool(raw.get("anonymous", False)) if kind is EntryKind.EVENT else False,
    )


def parse_parameter(raw: Mapping[str, Any], *, allow_indexed: bool = False) -> Parameter:
    return Parameter(
        name=str(raw.get("name") or ""),
        type=str(raw["type"]).strip(),
        indexed=bool(raw.get("indexed", False)) if allow_indexed else False,
        components=tuple(parse_parameter(c) for c in raw.get("components") or ()),
        internal_type=raw.get("internalType"),
    )


# Legacy compatibility: early compilers omitted "type" on function entries
# (and only on those). Dropping support means deleting this helper and its call.
def _legacy_missing_type_kind() -> EntryKind:
    return EntryKind.FUNCTION


# ----------------------------
# Helpers
# ----------------------------


def _load_json(text: Union[str, bytes]) -> Any:
    if isinstance(text, (bytes, bytearray)):
        try:
            text = bytes(text).decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedInputError("ABI document is not valid UTF-8", diagnostic=str(e)) from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedInputError("ABI document is not valid JSON", diagnostic=e.msg, line=e.lineno, column=e.colno) from e
    except RecursionError as e:
        raise MalformedInputError("ABI document is nested too deeply", diagnostic=str(e)) from None


def _abi_field(value: Any, *, owner: str) -> List[Any]:
    # solc --combined-json stores the ABI as a JSON-encoded string
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise MalformedInputError(
                f"'abi' of {owner} is a string but not valid JSON", diagnostic=e.msg, line=e.lineno, column=e.colno
            ) from e
    if not isinstance(value, list):
        raise MalformedInputError(f"'abi' of {owner} must be an array, got {type(value).__name__}")
    return value


def _tuple_depth(raw: Mapping[str, Any]) -> int:
    """Deepest `components` nesting below the entry's inputs and outputs (0 = no tuples)."""
    deepest = 0
    stack: List[Tuple[Any, int]] = []
    for key in ("inputs", "outputs"):
        params = raw.get(key)
        if isinstance(params, list):
            stack.extend((p, 1) for p in params)
    while stack:
        param, level = stack.pop()
        if not isinstance(param, dict):
            continue
        comps = param.get("components")
        if isinstance(comps, list) and comps:
            deepest = max(deepest, level)
            stack.extend((c, level + 1) for c in comps)
    return deepest


def _match_contract(candidates: Sequence[Tuple[str, Any]], contract: str) -> List[Tuple[str, Any]]:
    exact = [(k, v) for k, v in candidates if k == contract]
    if exact:
        return exact
    # combined output keys look like "path/to/File.sol:Name"
    return [(k, v) for k, v in candidates if k.rsplit(":", 1)[-1] == contract]


@lru_cache(maxsize=1)
def _validator() -> Any:
    with _SCHEMA_PATH.open("r", encoding="utf-8") as f:
        schema: Dict[str, Any] = json.load(f)
    cls = jsonschema.validators.validator_for(schema)
    cls.check_schema(schema)
    return cls(schema)


__all__ = ["extract_abi", "select_entries", "parse_entry", "parse_parameter"]
