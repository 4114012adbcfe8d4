"""
Identifier rules for generated TypeScript.

- `ident` keeps an ABI name verbatim apart from replacing characters that are
  not valid in an identifier with ``_`` and prefixing a leading digit with ``_``.
- `pascal` derives type names (``erc20-token`` -> ``Erc20Token``).
- `NameScope` hands out identifiers within one scope (module, class, method,
  interface). A name that is a reserved word or was already handed out gets
  ``_`` appended until it is free. Scopes are filled in a fixed order, so the
  outcome only depends on the input.
- `overload_suffix` maps a canonical input-type list to an identifier suffix.
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence, Set

# Reserved words (including strict-mode ones), names with special meaning in
# a class body or module, and the runtime names imported into every module.
# fmt: off
TS_RESERVED = frozenset(
    {
        "break", "case", "catch", "class", "const", "continue", "debugger", "default", "delete", "do",
        "else", "enum", "export", "extends", "false", "finally", "for", "function", "if", "import", "in",
        "instanceof", "new", "null", "return", "super", "switch", "this", "throw", "true", "try", "typeof",
        "var", "void", "while", "with", "implements", "interface", "let", "package", "private",
        "protected", "public", "static", "yield", "await", "arguments", "eval", "constructor",
        "prototype", "undefined",
        # names imported into every generated module
        "BigNumber", "CallOptions", "ContractHandle", "DeferredEvent", "PayableTxOptions", "Provider",
        "TransactionHandle", "TxOptions",
    }
)
# fmt: on

_NON_IDENT_CHAR = re.compile(r"[^A-Za-z0-9_$]")
_WORD_SPLIT = re.compile(r"[^A-Za-z0-9]+")

# canonical signature characters -> identifier-safe replacements
_SIGNATURE_MANGLE = str.maketrans({"(": "T", ")": "E", ",": "_", "[": "A", "]": None})


def ident(name: str, fallback: str = "arg") -> str:
    s = _NON_IDENT_CHAR.sub("_", (name or "").strip())
    if not s:
        s = fallback
    if s[0].isdigit():
        s = "_" + s
    return s


def pascal(name: str, fallback: str = "Contract") -> str:
    parts = [p for p in _WORD_SPLIT.split(name or "") if p]
    s = "".join(p[:1].upper() + p[1:] for p in parts)
    if not s:
        s = fallback
    if s[0].isdigit():
        s = "_" + s
    return s


def overload_suffix(input_types: Sequence[str]) -> str:
    """
    ``["address", "uint256"]`` -> ``address_uint256``; ``["(uint8,bool)[]"]`` -> ``Tuint8_boolEA``.

    Distinct canonical type lists give distinct suffixes, so a group whose
    signatures are unique gets unique member names.
    """
    if not input_types:
        return "void"
    return ident(",".join(input_types).translate(_SIGNATURE_MANGLE))


class NameScope:
    """Allocates collision-free identifiers within one generated scope."""

    def __init__(self, reserved: Iterable[str] = ()) -> None:
        self._taken: Set[str] = set(reserved)

    def claim(self, name: str) -> str:
        candidate = name
        while candidate in TS_RESERVED or candidate in self._taken:
            candidate += "_"
        self._taken.add(candidate)
        return candidate

    def __contains__(self, name: object) -> bool:
        return name in self._taken


__all__ = ["TS_RESERVED", "ident", "pascal", "overload_suffix", "NameScope"]
