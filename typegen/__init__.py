"""
abi-typegen
===========

Generate typed TypeScript contract wrappers from contract ABIs.

    from typegen import generate_source

    module = generate_source(abi_json, contract_name="Token", runtime_path="./typegen-runtime")
    print(module.text)

The pipeline is pure: extraction (`extract_abi`), classification
(`classify`) and synthesis (`synthesize`) can also be called one by one.
"""

from .abi import ClassifiedAbi, InterfaceEntry, OverloadGroup, Parameter, classify, extract_abi
from .codegen import GeneratedModule, SynthesisOptions, synthesize
from .errors import (
    AmbiguousSourceError,
    DuplicateSignatureError,
    DuplicateSpecialMemberError,
    MalformedInputError,
    TypegenError,
    UnsupportedTypeError,
)
from .pipeline import generate_from_entries, generate_source
from .version import __version__

__all__ = [
    "__version__",
    # pipeline
    "generate_source",
    "generate_from_entries",
    "extract_abi",
    "classify",
    "synthesize",
    # model
    "InterfaceEntry",
    "Parameter",
    "ClassifiedAbi",
    "OverloadGroup",
    "GeneratedModule",
    "SynthesisOptions",
    # errors
    "TypegenError",
    "MalformedInputError",
    "AmbiguousSourceError",
    "UnsupportedTypeError",
    "DuplicateSpecialMemberError",
    "DuplicateSignatureError",
]
