"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
import tomlkit

from dep_updater.models import (
    DependencyConfig,
    DependencyKind,
    DependencyTarget,
    UpdateOutcome,
    UpdateReport,
)


@pytest.fixture
def sample_config() -> DependencyConfig:
    """Config for a submodule dependency with default settings."""
    return DependencyConfig(path="modules/foo", name="Foo")


@pytest.fixture
def sample_target() -> DependencyTarget:
    return DependencyTarget(
        path="modules/foo",
        kind=DependencyKind.SUBMODULE,
        current_tag="v1.2.0",
        url="https://github.com/example/foo",
    )


@pytest.fixture
def changed_report(sample_target: DependencyTarget) -> UpdateReport:
    """A report for a dependency with a newer version available."""
    return UpdateReport(
        target=sample_target,
        outcome=UpdateOutcome(original_tag="v1.2.0", latest_tag="v1.3.0"),
    )


@pytest.fixture
def tmp_properties(tmp_path: Path) -> Path:
    """Create a temporary .properties dependency file."""
    content = """\
# Pinned by the dependency updater
version = 2.0.0
repo=https://github.com/example/cli.git
other=value
"""
    path = tmp_path / "cli.properties"
    path.write_text(content)
    return path


@pytest.fixture
def sample_toml_doc() -> tomlkit.TOMLDocument:
    """Create a sample TOML document with configured dependencies."""
    content = """\
[project]
name = "my-package"
version = "2.0.0"

[[tool.dep-updater.dependencies]]
path = "modules/native"
name = "Native SDK"
pattern = "^v?[0-9.]+$"
pr-strategy = "update"

[[tool.dep-updater.dependencies]]
path = "scripts/update-cli.sh"
name = "CLI"
changelog-entry = false
changelog-section = "Tools"
ordering = "lexical"
"""
    return tomlkit.parse(content)
