"""
typegen.cli
===========

`typegen`: generate typed TypeScript wrappers for every ABI matching a glob.

Examples
--------
    $ typegen generate "build/contracts/*.json" --out-dir src/contracts
    $ typegen generate "out/**/*.abi" --force --selection strict
    $ typegen version

For each input ``<dir>/<Name>.<ext...>`` the wrapper is written to
``<out-dir or dir>/<Name>.ts``. The runtime shim is copied once into the
output directory (or the directory of the first match) and a barrel module
re-exporting every contract is written next to it.

Configuration
-------------
- Selection policy : `--selection` or env `TYPEGEN_SELECTION` (first|strict)
- Unknown types    : `--allow-unknown-types` or env `TYPEGEN_UNKNOWN_TYPES=any`
- Log level/format : `--log-level` / `--log-format` or env `TYPEGEN_LOG_LEVEL` / `TYPEGEN_LOG_FORMAT`

A failing document is reported and skipped; the exit code is 1 if any failed.
Two inputs mapping to the same output file count as a failure of the later one.
"""

from __future__ import annotations

import glob as _glob
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import typer

from . import logging as tlog
from .abi.extract import extract_abi
from .codegen.exports import BarrelEntry, module_specifier, render_barrel
from .config import TypegenConfig
from .errors import TypegenError
from .pipeline import generate_from_entries
from .version import version as version_string

RUNTIME_SHIM = Path(__file__).resolve().parent / "runtime" / "typegen-runtime.ts"

log = tlog.get_logger(__name__)

app = typer.Typer(
    name="typegen",
    help="Generate typed TypeScript contract wrappers from ABI files.",
    no_args_is_help=True,
    add_completion=False,
)

__all__ = ["app", "main", "discover", "output_stem", "process_file"]


@dataclass
class FileOutcome:
    source: Path
    output: Path
    written: bool
    entry: Optional[BarrelEntry] = None


def discover(pattern: str) -> List[Path]:
    """Absolute, sorted matches of `pattern`, ignoring anything under node_modules."""
    matches = {
        Path(p).resolve()
        for p in _glob.glob(pattern, recursive=True)
        if "node_modules" not in Path(p).parts and Path(p).is_file()
    }
    return sorted(matches)


def output_stem(path: Path) -> str:
    """File name up to the first dot: ``Token.abi.json`` -> ``Token``."""
    return path.name.split(".", 1)[0] or path.name


def copy_runtime(target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(RUNTIME_SHIM, target)


def process_file(
    source: Path,
    *,
    cfg: TypegenConfig,
    runtime_file: Path,
    barrel_dir: Path,
    out_dir: Optional[Path] = None,
    force: bool = False,
    contract: Optional[str] = None,
) -> FileOutcome:
    """Generate the wrapper for one ABI file. Raises TypegenError on a bad document."""
    stem = output_stem(source)
    target_dir = out_dir or source.parent
    output = target_dir / f"{stem}.ts"

    entries = extract_abi(source.read_bytes(), selection=cfg.selection, contract=contract)
    if not entries:
        typer.secho("ABI is empty, skipping", fg=typer.colors.YELLOW)
        log.warning("ABI is empty, skipping")
        return FileOutcome(source=source, output=output, written=False)

    module = generate_from_entries(
        entries,
        contract_name=stem,
        runtime_path=module_specifier(target_dir, runtime_file),
        options=cfg.synthesis_options(),
    )
    entry = BarrelEntry(module=module_specifier(barrel_dir, output), names=module.exported_names)

    if output.exists() and not force:
        typer.secho("File exists, skipping", fg=typer.colors.RED)
        log.info("output exists, not overwriting")
        return FileOutcome(source=source, output=output, written=False, entry=entry)

    target_dir.mkdir(parents=True, exist_ok=True)
    output.write_text(module.text, encoding="utf-8")
    log.debug("wrote %s", output)
    return FileOutcome(source=source, output=output, written=True, entry=entry)


@app.command("generate")
def generate(
    pattern: str = typer.Argument(..., help="Glob matching ABI files, e.g. 'build/**/*.json'."),
    out_dir: Optional[Path] = typer.Option(None, "--out-dir", "-o", help="Write all wrappers into this directory."),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing output files."),
    selection: Optional[str] = typer.Option(
        None, "--selection", help="Multi-contract documents: 'first' or 'strict'.", envvar="TYPEGEN_SELECTION"
    ),
    contract: Optional[str] = typer.Option(
        None, "--contract", help="Pick this contract out of multi-contract documents."
    ),
    allow_unknown_types: bool = typer.Option(
        False, "--allow-unknown-types", help="Render unsupported ABI types as 'any' instead of failing."
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR."),
    log_format: Optional[str] = typer.Option(None, "--log-format", help="'text' or 'json'."),
) -> None:
    """Generate typed wrappers for every ABI file matching PATTERN."""
    try:
        cfg = TypegenConfig.with_overrides(
            TypegenConfig.from_env(),
            selection=selection,
            unknown_types="any" if allow_unknown_types else None,
            log_level=log_level,
            log_format=log_format,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    tlog.configure(json=cfg.log_format == "json", level=cfg.log_level)

    matches = discover(pattern)
    if not matches:
        typer.secho(f"Found {len(matches)} ABIs.", fg=typer.colors.RED)
        raise typer.Exit(0)
    typer.secho(f"Found {len(matches)} ABIs.", fg=typer.colors.GREEN)
    typer.echo("Generating typings...")

    out_root = out_dir.resolve() if out_dir else matches[0].parent
    runtime_file = out_root / cfg.runtime_filename
    copy_runtime(runtime_file)
    typer.secho(f"{cfg.runtime_filename} => {runtime_file}", fg=typer.colors.BLUE)

    barrel: List[BarrelEntry] = []
    claimed: Dict[Path, Path] = {}
    failures = 0
    for source in matches:
        with tlog.scope(source=source):
            target = (out_root if out_dir else source.parent) / f"{output_stem(source)}.ts"
            typer.secho(f"{source} => {target}", fg=typer.colors.BLUE)
            if target in claimed:
                failures += 1
                log.error("output %s already written for %s", target, claimed[target])
                typer.secho(
                    f"Error occurred: {target} is already the output of {claimed[target]}", fg=typer.colors.RED, err=True
                )
                continue
            claimed[target] = source
            try:
                outcome = process_file(
                    source,
                    cfg=cfg,
                    runtime_file=runtime_file,
                    barrel_dir=out_root,
                    out_dir=out_root if out_dir else None,
                    force=force,
                    contract=contract,
                )
            except TypegenError as e:
                failures += 1
                log.error("generation failed: %s", e)
                typer.secho(f"Error occurred: {e}", fg=typer.colors.RED, err=True)
                continue
            if outcome.entry is not None:
                barrel.append(outcome.entry)

    barrel_file = out_root / cfg.barrel_filename
    barrel_file.write_text(render_barrel(barrel), encoding="utf-8")
    typer.secho(f"exports => {barrel_file}", fg=typer.colors.BLUE)

    if failures:
        typer.secho(f"{failures} of {len(matches)} ABIs failed.", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


@app.command("version")
def version() -> None:
    """Print the generator version."""
    typer.echo(version_string())


def main() -> None:  # pragma: no cover - console entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
