"""Helpers for script-based GitHub Actions workflow steps."""

from __future__ import annotations

import argparse
import sys

from dep_updater.config import github_output_path
from dep_updater.errors import UpdaterError
from dep_updater.models import DependencyConfig, Ordering, PrStrategy, UpdateReport
from dep_updater.pipeline import plan_update, resolve_target, run_update, step_outputs
from dep_updater.shell import fatal


def _write_outputs(output_path: str | None, report: UpdateReport) -> None:
    outputs = step_outputs(report)
    if not output_path:
        for name, value in outputs.items():
            print(f"{name}={value}")
        return
    with open(output_path, "a") as fh:
        for name, value in outputs.items():
            fh.write(f"{name}={value}\n")


def target(config: DependencyConfig, github_output: str | None) -> None:
    """Resolve the latest version and emit step outputs."""
    dep_target, outcome = resolve_target(config)
    _write_outputs(github_output, UpdateReport(target=dep_target, outcome=outcome))


def plan(config: DependencyConfig, github_output: str | None) -> None:
    """Resolve and decide, without touching any branch."""
    dep_target, outcome = resolve_target(config)
    report = UpdateReport(target=dep_target, outcome=outcome)
    if outcome.changed:
        report = plan_update(config, report)
    _write_outputs(github_output, report)


def update(config: DependencyConfig, github_output: str | None) -> None:
    """Run the full update and emit step outputs."""
    _write_outputs(github_output, run_update(config))


STEPS = {"target": target, "plan": plan, "update": update}


def main(argv: list[str] | None = None) -> None:
    """Run a workflow step command."""
    args = argv if argv is not None else sys.argv[1:]
    parser = argparse.ArgumentParser(prog="python -m dep_updater.workflow_steps")
    parser.add_argument("command", choices=sorted(STEPS))
    parser.add_argument(
        "--path", required=True, help="Submodule, .properties file or script to update."
    )
    parser.add_argument(
        "--name", required=True, help="Name used in the PR title and changelog entry."
    )
    parser.add_argument(
        "--pattern", default="", help="Regex that eligible tags must match."
    )
    parser.add_argument(
        "--ordering",
        choices=[o.value for o in Ordering],
        default=Ordering.SEMVER.value,
        help="How tags are ordered. (default: %(default)s)",
    )
    parser.add_argument(
        "--changelog-entry",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Add a changelog entry for the update.",
    )
    parser.add_argument(
        "--changelog-section",
        default="Dependencies",
        help="Changelog section for the entry. (default: %(default)s)",
    )
    parser.add_argument(
        "--pr-strategy",
        choices=[s.value for s in PrStrategy],
        default=PrStrategy.CREATE.value,
        help="Open a PR per version, or keep updating one. (default: %(default)s)",
    )
    parser.add_argument(
        "--github-output",
        default=github_output_path(),
        help="Path to GitHub step output file. (default: $GITHUB_OUTPUT)",
    )

    parsed = parser.parse_args(args)
    config = DependencyConfig(
        path=parsed.path,
        name=parsed.name,
        pattern=parsed.pattern,
        ordering=parsed.ordering,
        changelog_entry=parsed.changelog_entry,
        changelog_section=parsed.changelog_section,
        pr_strategy=parsed.pr_strategy,
    )
    try:
        STEPS[parsed.command](config, parsed.github_output)
    except UpdaterError as exc:
        fatal(str(exc))


if __name__ == "__main__":
    main()
