"""
Version helpers for abi-typegen.

The version string is embedded in the banner of every generated module so a
regenerated file can be traced back to the generator that produced it.
"""

from __future__ import annotations

# Bump this when publishing
__version__ = "0.1.0"


def version() -> str:
    """Human-friendly version string, e.g. 'abi-typegen 0.1.0'."""
    return f"abi-typegen {__version__}"


__all__ = ["__version__", "version"]
