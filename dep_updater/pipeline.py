"""Update pipeline: resolve → gate → branch → update → PR → changelog.

This module orchestrates one dependency update:
1. Read the current pin and list the tags published upstream
2. Pick the latest matching tag (versions.resolve)
3. Work out the update branch and whether someone edited it by hand
4. Look up an existing PR for that branch
5. Decide on a plan (gate.decide)
6. Carry it out: commit the bump, open or refresh the PR, add the
   changelog entry

A new PR is created before the changelog entry is written so the entry can
link to it; the entry is then folded into the same single commit.
"""

from __future__ import annotations

from pathlib import Path

from . import branching, changelog, dependency, prs
from .gate import decide
from .models import (
    ActionPlan,
    DependencyConfig,
    DependencyTarget,
    UpdateOutcome,
    UpdateReport,
)
from .shell import step, warning
from .versions import nice_tag, resolve

CHANGELOG_PATH = Path("CHANGELOG.md")


def resolve_target(config: DependencyConfig) -> tuple[DependencyTarget, UpdateOutcome]:
    """Read the current pin of a dependency and find its latest version.

    Raises:
        UnknownDependency: If the path isn't a supported dependency.
        NoMatchingVersion: If no published tag matches the pattern.
    """
    step(f"Resolving {config.path}")

    target = dependency.read_target(config.path)
    tags = dependency.list_remote_tags(target.url)
    print(f"  {target.kind.value} at {target.current_tag} ({target.url})")
    print(f"  {len(tags)} tags published upstream")

    outcome = resolve(tags, config.pattern, target.current_tag, config.ordering)
    if outcome.changed:
        print(f"  {outcome.original_tag} → {outcome.latest_tag}")
    else:
        print(f"  {outcome.original_tag} is the latest version")
    return target, outcome


def plan_update(config: DependencyConfig, report: UpdateReport) -> UpdateReport:
    """Fill in branch names, branch state and the plan for a changed dependency.

    Raises:
        UnknownPrStrategy: If the configured strategy is not supported.
        AmbiguousState: If more than one open PR exists for the branch.
    """
    step("Planning update")

    base = branching.base_branch()
    branch = branching.pr_branch(
        config.path, report.outcome.latest_tag, config.pr_strategy
    )
    state = branching.branch_state(branch, base)
    report = report.model_copy(
        update={"base_branch": base, "pr_branch": branch, "branch": state}
    )
    print(f"  base: {base}, branch: {branch}")

    if state.has_manual_commits:
        warning(
            f"Target branch '{branch}' has been changed manually "
            f"(by {', '.join(state.authors)}) - skipping updater to avoid "
            "overwriting these changes."
        )
        return report

    existing = prs.find_existing_pr(branch, base)
    print(f"  existing PR: {existing or '<none>'}")
    plan = decide(report.outcome, state, existing_pr=existing is not None)
    print(f"  plan: {plan.value}")
    return report.model_copy(update={"plan": plan, "pr_url": existing or ""})


def apply_plan(config: DependencyConfig, report: UpdateReport) -> UpdateReport:
    """Commit the bump and create or refresh the PR according to the plan."""
    if report.plan is ActionPlan.NO_OP:
        return report

    outcome = report.outcome
    target = report.target
    step(f"Updating {config.path} to {nice_tag(outcome.latest_tag)}")

    main_branch = dependency.remote_main_branch(target.url)
    body_changelog = changelog.target_changelog(
        target.url, outcome.original_tag, outcome.latest_tag
    )
    pr = prs.build_pull_request(
        config.path,
        config.name,
        outcome.original_tag,
        outcome.latest_tag,
        report.pr_branch,
        report.base_branch,
        body_changelog,
    )

    prs.start_branch(report.pr_branch, report.base_branch)
    dependency.apply_tag(target, outcome.latest_tag)
    paths = [target.path]

    if report.plan is ActionPlan.CREATE_NEW_PR:
        prs.commit_update(pr, paths)
        prs.push(pr.branch)
        pr_url = prs.create_pr(pr)
        if _add_changelog_entry(config, report, pr_url, main_branch):
            prs.commit_update(pr, [str(CHANGELOG_PATH)], amend=True)
            prs.push(pr.branch)
    else:
        pr_url = report.pr_url
        if _add_changelog_entry(config, report, pr_url, main_branch):
            paths.append(str(CHANGELOG_PATH))
        prs.commit_update(pr, paths)
        if prs.needs_push(pr.branch):
            prs.push(pr.branch)
        else:
            print(f"  {pr.branch} is already up to date")
        prs.edit_pr(pr_url, pr)

    return report.model_copy(update={"pr_url": pr_url, "main_branch": main_branch})


def _add_changelog_entry(
    config: DependencyConfig, report: UpdateReport, pr_url: str, main_branch: str
) -> bool:
    if not config.changelog_entry or not CHANGELOG_PATH.exists():
        return False
    changelog.update_changelog(
        CHANGELOG_PATH,
        name=config.name,
        pr_url=pr_url,
        repo_url=report.target.url,
        main_branch=main_branch,
        old_tag=report.outcome.original_tag,
        new_tag=report.outcome.latest_tag,
        section=config.changelog_section,
    )
    return True


def step_outputs(report: UpdateReport) -> dict[str, str]:
    """Outputs for later CI steps, keyed the way workflow files reference them."""
    return {
        "originalTag": report.outcome.original_tag,
        "latestTag": report.outcome.latest_tag,
        "latestTagNice": nice_tag(report.outcome.latest_tag),
        "url": report.target.url,
        "mainBranch": report.main_branch,
        "baseBranch": report.base_branch,
        "prBranch": report.pr_branch,
        "changed": "true" if report.outcome.changed else "false",
        "manualChanges": "true" if report.branch.has_manual_commits else "false",
        "plan": report.plan.value,
        "prUrl": report.pr_url,
    }


def run_update(config: DependencyConfig, *, dry_run: bool = False) -> UpdateReport:
    """Execute the full update for one dependency.

    Args:
        config: What to update and how.
        dry_run: If True, stop after planning; nothing is committed or pushed.
    """
    target, outcome = resolve_target(config)
    report = UpdateReport(target=target, outcome=outcome)

    if not outcome.changed:
        print("\nNothing to update.")
        return report

    report = plan_update(config, report)
    if report.plan is ActionPlan.NO_OP:
        print("\nNothing to update.")
        return report
    if dry_run:
        print(f"\nDry run: would {report.plan.value}.")
        return report

    report = apply_plan(config, report)
    print(f"\n{'=' * 60}\nDone! {report.pr_url}\n{'=' * 60}")
    return report
