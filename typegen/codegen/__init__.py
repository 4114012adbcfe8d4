"""
Code generation backends.

- ``typescript``: the Source Synthesizer (`synthesize` -> `GeneratedModule`).
- ``names``: identifier normalization and collision handling.
- ``exports``: barrel module over several generated modules.
"""

from .exports import BarrelEntry, module_specifier, render_barrel
from .names import NameScope, ident, overload_suffix, pascal
from .typescript import DeclarationBlock, GeneratedModule, SynthesisOptions, synthesize

__all__ = [
    "SynthesisOptions",
    "DeclarationBlock",
    "GeneratedModule",
    "synthesize",
    "NameScope",
    "ident",
    "pascal",
    "overload_suffix",
    "BarrelEntry",
    "module_specifier",
    "render_barrel",
]
