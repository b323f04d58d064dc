"""CLI entry point for dep-updater."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from dep_updater.config import load_dependency_configs
from dep_updater.errors import UpdaterError
from dep_updater.models import DependencyConfig, Ordering, PrStrategy
from dep_updater.pipeline import resolve_target, run_update
from dep_updater.shell import run
from dep_updater.versions import nice_tag

TEMPLATES_DIR = Path(__file__).parent / "templates"


def dependency_options(func):
    """Options shared by the commands that act on a single dependency."""
    options = [
        click.option(
            "--path",
            required=True,
            help="Submodule, .properties file or script pinning the dependency.",
        ),
        click.option(
            "--name", required=True, help="Name used in the PR title and changelog."
        ),
        click.option("--pattern", default="", help="Regex that eligible tags must match."),
        click.option(
            "--ordering",
            type=click.Choice([o.value for o in Ordering]),
            default=Ordering.SEMVER.value,
            show_default=True,
            help="How tags are ordered when picking the latest.",
        ),
        click.option(
            "--changelog-entry/--no-changelog-entry",
            default=True,
            show_default=True,
            help="Add a changelog entry for the update.",
        ),
        click.option(
            "--changelog-section",
            default="Dependencies",
            show_default=True,
            help="Changelog section to add the entry to.",
        ),
        click.option(
            "--pr-strategy",
            type=click.Choice([s.value for s in PrStrategy]),
            default=PrStrategy.CREATE.value,
            show_default=True,
            help="Open a PR per version, or keep updating a single one.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.version_option(package_name="dep-updater")
def cli() -> None:
    """Bump pinned dependencies to their latest tag and open a PR."""


@cli.command()
@click.option(
    "--workflow-dir",
    type=click.Path(),
    default=".github/workflows",
    show_default=True,
    help="Directory to write the workflow file.",
)
def init(workflow_dir: str) -> None:
    """Scaffold the reusable GitHub Actions updater workflow into your repo."""
    root = Path.cwd()

    if not (root / ".git").exists():
        raise click.ClickException("Not a git repository. Run from the repo root.")

    dest_dir = root / workflow_dir
    dest_dir.mkdir(parents=True, exist_ok=True)
    dest = dest_dir / "updater.yml"
    dest.write_text((TEMPLATES_DIR / "updater.yml").read_text())

    click.echo(f"✓ Wrote workflow to {dest.relative_to(root)}")
    click.echo()
    click.echo("Next steps:")
    click.echo("  1. Commit and push the workflow file")
    click.echo("  2. Call it from a scheduled workflow, e.g.:")
    click.echo("       uses: ./.github/workflows/updater.yml")
    click.echo("       with: { path: modules/foo, name: Foo }")


@cli.command()
@dependency_options
def resolve(**kwargs) -> None:
    """Show the current and latest version of a dependency."""
    try:
        target, outcome = resolve_target(DependencyConfig(**kwargs))
    except UpdaterError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo()
    click.echo(f"originalTag={outcome.original_tag}")
    click.echo(f"latestTag={outcome.latest_tag}")
    click.echo(f"latestTagNice={nice_tag(outcome.latest_tag)}")
    click.echo(f"url={target.url}")
    click.echo(f"changed={'true' if outcome.changed else 'false'}")


@cli.command("run")
@dependency_options
@click.option("--dry-run", is_flag=True, help="Plan only; don't commit or push.")
def run_command(dry_run: bool, **kwargs) -> None:
    """Update one dependency (usually called from CI)."""
    try:
        run_update(DependencyConfig(**kwargs), dry_run=dry_run)
    except UpdaterError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command("run-all")
@click.option("--dry-run", is_flag=True, help="Plan only; don't commit or push.")
def run_all(dry_run: bool) -> None:
    """Update every dependency configured in pyproject.toml."""
    failed: list[str] = []
    for config in load_dependency_configs():
        try:
            run_update(config, dry_run=dry_run)
        except UpdaterError as exc:
            click.echo(f"ERROR: {config.path}: {exc}", err=True)
            failed.append(config.path)
    if failed:
        raise click.ClickException(f"Failed to update: {', '.join(failed)}")


@cli.command("integration-test")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
def integration_test(path: str) -> None:
    """Run all tests in PATH with detailed output."""
    result = run(sys.executable, "-m", "pytest", "-v", path, check=False)
    sys.exit(result.returncode)
