"""Automation sessions for the proposal table compiler."""
from __future__ import annotations

import pathlib

import nox

PYTHON_VERSION = "3.11"
SRC_DIR = "src"
TESTS_DIR = "tests"
PACKAGE_DIR = pathlib.Path(SRC_DIR, "proposal_tables")
SAMPLE_LABELS = ("Weekly", "Bi-Weekly", "Quarterly", "one time")

nox.options.sessions = ("lint", "typecheck", "tests", "doctests")


def install_project(session: nox.Session, *extras: str) -> None:
    target = f".[{','.join(extras)}]" if extras else "."
    session.install("-e", target)


@nox.session(python=PYTHON_VERSION)
def lint(session: nox.Session) -> None:
    """Run Ruff over the package and its tests."""
    session.install("ruff")
    session.run("ruff", "check", SRC_DIR, TESTS_DIR)


@nox.session(python=PYTHON_VERSION)
def typecheck(session: nox.Session) -> None:
    """Run Pyright and Mypy; pandas needs its stub package for both."""
    install_project(session)
    session.install("pyright", "mypy", "pandas-stubs")
    session.run("pyright")
    session.run("mypy", SRC_DIR)


@nox.session(python=PYTHON_VERSION)
def tests(session: nox.Session) -> None:
    """Run the pytest suite under coverage, measuring the package only."""
    install_project(session, "test")
    session.run("coverage", "run", "--source", str(PACKAGE_DIR), "-m", "pytest", *session.posargs)
    session.run("coverage", "report", "--show-missing")


@nox.session(python=PYTHON_VERSION)
def doctests(session: nox.Session) -> None:
    """Run module doctests and smoke the CLI's frequency command."""
    install_project(session, "test")
    session.run("pytest", "--doctest-modules", str(PACKAGE_DIR), "-p", "no:cacheprovider")
    session.run("python", "-m", "proposal_tables", "frequency", *SAMPLE_LABELS)
