"""Subprocess and CI log helpers.

Everything the updater does to a repository goes through ``git`` or ``gh``
here, which is also the seam the tests patch. The output helpers shape the
Actions log: one ruled header per phase, ``::warning::`` annotations, and a
single ``ERROR:`` line before a non-zero exit.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path


def git(*args: str, cwd: str | Path | None = None, check: bool = True) -> str:
    """Run git and return its stripped stdout.

    Args:
        *args: git arguments, e.g. ``"ls-remote", "--tags", url``.
        cwd: Working directory; submodule commands run inside the submodule.
        check: Raise on a non-zero exit. Lookups whose failure just means
               "nothing there" (``describe`` without tags, ``ls-remote`` of
               a missing branch) pass False and test for empty output.
    """
    result = subprocess.run(
        ["git", *args], capture_output=True, text=True, check=check, cwd=cwd
    )
    return result.stdout.strip()


def gh(*args: str, check: bool = True) -> str:
    """Run the GitHub CLI (``gh pr list/create/edit``) and return stdout."""
    result = subprocess.run(["gh", *args], capture_output=True, text=True, check=check)
    return result.stdout.strip()


def run(
    *args: str, cwd: str | Path | None = None, check: bool = True
) -> subprocess.CompletedProcess[bytes]:
    """Run a command with its output going straight to the log.

    Used for the integration test suite, whose verbose output is the point.
    """
    return subprocess.run(args, check=check, cwd=cwd)


def capture(*args: str, cwd: str | Path | None = None) -> str:
    """Run a dependency script verb and return its stripped stdout."""
    result = subprocess.run(args, capture_output=True, text=True, check=True, cwd=cwd)
    return result.stdout.strip()


def step(msg: str) -> None:
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def warning(msg: str) -> None:
    """Emit a GitHub Actions warning annotation."""
    print(f"::warning::{msg}")


def fatal(msg: str) -> None:
    """Report an updater error on stderr and exit with status 1."""
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)
