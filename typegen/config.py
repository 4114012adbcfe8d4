"""
Generator configuration: output file names, multi-contract selection policy,
type-rendering knobs and logging defaults.

- Loads sane defaults and supports overrides via environment variables (TYPEGEN_*).
- `synthesis_options()` projects the fields the Source Synthesizer consumes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from .codegen.typescript import SynthesisOptions

SELECTION_POLICIES = ("first", "strict")
UNKNOWN_TYPE_POLICIES = ("error", "any")
LOG_FORMATS = ("text", "json")


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None and v != "" else default


def _ensure_choice(label: str, value: str, allowed: tuple[str, ...]) -> str:
    v = str(value).strip().lower()
    if v not in allowed:
        raise ValueError(f"{label} must be one of {allowed}, got: {value!r}")
    return v


@dataclass(slots=True)
class TypegenConfig:
    # Output layout
    runtime_filename: str = "typegen-runtime.ts"
    barrel_filename: str = "contracts.ts"
    # Input handling
    selection: str = "first"
    # Type rendering
    fixed_array_tuple_limit: int = 32
    unknown_types: str = "error"
    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    def __post_init__(self) -> None:
        self.selection = _ensure_choice("selection", self.selection, SELECTION_POLICIES)
        self.unknown_types = _ensure_choice("unknown_types", self.unknown_types, UNKNOWN_TYPE_POLICIES)
        self.log_format = _ensure_choice("log_format", self.log_format, LOG_FORMATS)
        if int(self.fixed_array_tuple_limit) < 0:
            raise ValueError("fixed_array_tuple_limit must be >= 0")
        self.fixed_array_tuple_limit = int(self.fixed_array_tuple_limit)

    @classmethod
    def from_env(cls, prefix: str = "TYPEGEN_") -> "TypegenConfig":
        """
        Create config from environment variables:

        TYPEGEN_RUNTIME_FILENAME      (str)
        TYPEGEN_BARREL_FILENAME       (str)
        TYPEGEN_SELECTION             (first|strict)
        TYPEGEN_FIXED_ARRAY_LIMIT     (int)
        TYPEGEN_UNKNOWN_TYPES         (error|any)
        TYPEGEN_LOG_LEVEL             (DEBUG|INFO|...)
        TYPEGEN_LOG_FORMAT            (text|json)
        """
        d = cls()
        return cls(
            runtime_filename=_env(f"{prefix}RUNTIME_FILENAME", d.runtime_filename) or d.runtime_filename,
            barrel_filename=_env(f"{prefix}BARREL_FILENAME", d.barrel_filename) or d.barrel_filename,
            selection=_env(f"{prefix}SELECTION", d.selection) or d.selection,
            fixed_array_tuple_limit=int(_env(f"{prefix}FIXED_ARRAY_LIMIT", str(d.fixed_array_tuple_limit)) or 0),
            unknown_types=_env(f"{prefix}UNKNOWN_TYPES", d.unknown_types) or d.unknown_types,
            log_level=_env(f"{prefix}LOG_LEVEL", d.log_level) or d.log_level,
            log_format=_env(f"{prefix}LOG_FORMAT", d.log_format) or d.log_format,
        )

    @classmethod
    def with_overrides(cls, base: Optional["TypegenConfig"] = None, **overrides: Any) -> "TypegenConfig":
        """
        Build from an existing config plus keyword overrides.
        Unknown keys and None values are ignored.
        """
        base = base or cls.from_env()
        data = base.to_dict()
        data.update({k: v for k, v in overrides.items() if k in data and v is not None})
        return cls(**data)

    def synthesis_options(self) -> SynthesisOptions:
        return SynthesisOptions(
            fixed_array_tuple_limit=self.fixed_array_tuple_limit,
            unknown_types=self.unknown_types,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


__all__ = ["TypegenConfig", "SELECTION_POLICIES", "UNKNOWN_TYPE_POLICIES", "LOG_FORMATS"]
