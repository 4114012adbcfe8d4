"""
The generator pipeline: Interface Extractor -> Member Classifier (Type
Resolver per parameter) -> Source Synthesizer.

A single forward pass over immutable values with no I/O and no state kept
between calls, so documents can be processed concurrently without any
coordination. Failures surface as `TypegenError` subclasses; no partial
module is ever returned.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

from .abi.classify import classify
from .abi.extract import extract_abi
from .abi.model import InterfaceEntry
from .codegen.typescript import GeneratedModule, SynthesisOptions, synthesize
from .logging import get_logger

log = get_logger(__name__)


def generate_source(
    text: Union[str, bytes],
    *,
    contract_name: str,
    runtime_path: str,
    options: Optional[SynthesisOptions] = None,
    selection: str = "first",
    contract: Optional[str] = None,
) -> GeneratedModule:
    """
    Generate the TypeScript module for one interface document.

    Args:
        text: raw document (bare array, ``{"abi": [...]}`` or a contract map).
        contract_name: display name of the contract; becomes the class name.
        runtime_path: module specifier of the runtime shim, relative to the output.
        options: type-rendering knobs (fixed array limit, unknown type policy).
        selection / contract: single-contract selection for multi-contract documents.
    """
    entries = extract_abi(text, selection=selection, contract=contract)
    return generate_from_entries(entries, contract_name=contract_name, runtime_path=runtime_path, options=options)


def generate_from_entries(
    entries: Iterable[InterfaceEntry],
    *,
    contract_name: str,
    runtime_path: str,
    options: Optional[SynthesisOptions] = None,
) -> GeneratedModule:
    options = options or SynthesisOptions()
    abi = classify(entries, allow_unknown_types=options.unknown_types == "any")
    module = synthesize(abi, contract_name=contract_name, runtime_path=runtime_path, options=options)
    log.debug("generated %s (%d exported names)", module.class_name, len(module.exported_names))
    return module


__all__ = ["generate_source", "generate_from_entries"]
