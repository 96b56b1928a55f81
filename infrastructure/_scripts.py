"""Runnable scripts for common dev tasks. Use: pip install -e '.[dev]', then infra-<script-name>."""

import subprocess
import sys

SOURCES = ["infrastructure", "tests"]


def _run(args: list[str]) -> None:
    """Run a command; exit with its code."""
    sys.exit(subprocess.run(args).returncode)


def lint() -> None:
    """Run ruff check on the infrastructure package and tests."""
    _run([sys.executable, "-m", "ruff", "check", *SOURCES])


def lint_fix() -> None:
    _run([sys.executable, "-m", "ruff", "check", "--fix", *SOURCES])


def format() -> None:
    """Run ruff format."""
    _run([sys.executable, "-m", "ruff", "format", *SOURCES])


def type_check() -> None:
    _run([sys.executable, "-m", "pyright", "infrastructure"])


def test() -> None:
    """Run pytest with coverage of the infrastructure package."""
    _run(
        [
            sys.executable,
            "-m",
            "pytest",
            "tests/",
            "--cov=infrastructure",
            "--cov-report=term-missing",
        ]
    )
