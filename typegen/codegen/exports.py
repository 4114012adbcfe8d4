"""
Barrel-export aggregator.

Collects the top-level names of every generated module and renders one
module re-exporting them, so application code can import all contracts from
a single path.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Set, Tuple

from ..version import __version__

_TS_SUFFIXES = (".d.ts", ".ts", ".tsx")


@dataclass(frozen=True)
class BarrelEntry:
    module: str  # module specifier relative to the barrel, e.g. "./Token"
    names: Tuple[str, ...]


def module_specifier(from_dir: Path | str, target: Path | str) -> str:
    """Relative module specifier from `from_dir` to the TypeScript file `target`."""
    rel = Path(os.path.relpath(Path(target), Path(from_dir))).as_posix()
    for suffix in _TS_SUFFIXES:
        if rel.endswith(suffix):
            rel = rel[: -len(suffix)]
            break
    if not rel.startswith("."):
        rel = "./" + rel
    return rel


def render_barrel(entries: Iterable[BarrelEntry]) -> str:
    """
    One `export { ... } from "..."` line per module, in the given order.
    A module listed more than once is exported once, from its first entry.
    """
    lines: List[str] = [f"/* Generated by abi-typegen {__version__}. Do not edit by hand. */"]
    seen: Set[str] = set()
    for e in entries:
        if not e.names or e.module in seen:
            continue
        seen.add(e.module)
        lines.append(f"export {{ {', '.join(e.names)} }} from {json.dumps(e.module)};")
    return "\n".join(lines) + "\n"


__all__ = ["BarrelEntry", "module_specifier", "render_barrel"]
