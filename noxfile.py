"""
Nox sessions for abi-typegen.

Sessions:
  - lint : ruff + black + mypy over the package and tests
  - unit : the pytest suite (hypothesis property tests included)

Pass extra args to pytest like:
  nox -s unit -- -k "overload" -vv
"""

from __future__ import annotations

from pathlib import Path

import nox

nox.options.reuse_venv = True
nox.options.stop_on_first_error = False

REPO_ROOT = Path(__file__).resolve().parent
PY_PATHS = ["typegen", "tests", "noxfile.py"]

TEST_PYTHONS = ["3.10", "3.11", "3.12"]


@nox.session(name="lint", python="3.11")
def lint(session: nox.Session) -> None:
    """Static analysis: ruff, black (check), mypy."""
    session.run("python", "-m", "pip", "install", "--upgrade", "pip", silent=True)
    session.install("-e", f"{REPO_ROOT}[dev]")
    session.run("ruff", "check", *PY_PATHS)
    session.run("black", "--check", *PY_PATHS)
    session.run("mypy", "--pretty", "--show-error-codes", "--ignore-missing-imports", "typegen")


@nox.session(name="unit", python=TEST_PYTHONS)
def unit(session: nox.Session) -> None:
    session.env.setdefault("PYTHONUNBUFFERED", "1")
    session.install("-e", f"{REPO_ROOT}[test]")
    session.run("pytest", "-q", *session.posargs)
