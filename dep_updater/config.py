"""Configuration loading.

Dependencies can be declared once in the repository's pyproject.toml instead
of being passed on every invocation:

    [[tool.dep-updater.dependencies]]
    path = "modules/native-sdk"
    name = "Native SDK"
    pattern = "^v?[0-9.]+$"
    pr-strategy = "update"

Uses tomlkit so the same reader works for any TOML the project already has.
"""

from __future__ import annotations

import os
from pathlib import Path

import tomlkit
from pydantic import ValidationError

from .models import DependencyConfig
from .shell import fatal


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file."""
    return tomlkit.parse(path.read_text())


def get_dependency_configs(doc: tomlkit.TOMLDocument) -> list[DependencyConfig]:
    """Extract dependency settings from [[tool.dep-updater.dependencies]].

    Raises:
        SystemExit: If no dependencies are configured, or one is invalid.
    """
    entries = doc.get("tool", {}).get("dep-updater", {}).get("dependencies")
    if not entries:
        fatal("No [[tool.dep-updater.dependencies]] defined in pyproject.toml")

    configs: list[DependencyConfig] = []
    for i, entry in enumerate(entries):
        try:
            configs.append(DependencyConfig.model_validate(entry.unwrap()))
        except ValidationError as exc:
            fatal(f"Invalid dependency #{i + 1} in pyproject.toml:\n{exc}")
    return configs


def load_dependency_configs(root: Path | None = None) -> list[DependencyConfig]:
    """Read the configured dependencies from ``root``/pyproject.toml."""
    pyproject = (root or Path.cwd()) / "pyproject.toml"
    if not pyproject.exists():
        fatal(f"No pyproject.toml found in {pyproject.parent}")
    return get_dependency_configs(load_pyproject(pyproject))


def github_output_path() -> str | None:
    """Path of the GitHub Actions step output file, when running in CI."""
    return os.environ.get("GITHUB_OUTPUT") or None


def github_repository() -> str | None:
    """The "owner/repo" slug of the repository being updated, in CI."""
    return os.environ.get("GITHUB_REPOSITORY") or None
