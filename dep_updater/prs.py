"""Pull request templating and GitHub CLI operations.

The update branch always holds exactly one commit on top of the base branch,
authored by the automation. Re-running with the same inputs produces the same
tree, in which case nothing is pushed.
"""

from __future__ import annotations

import json
from typing import Any

from .branching import BOT_EMAIL, BOT_NAME
from .config import github_repository
from .errors import UpdaterError
from .gate import existing_pr_url
from .models import PullRequest
from .shell import gh, git
from .versions import nice_tag

WORKFLOW_URL = "https://github.com/gsoc2/github-workflows/blob/main/.github/workflows/updater.yml"


def build_pull_request(
    path: str,
    name: str,
    original_tag: str,
    latest_tag: str,
    branch: str,
    base: str,
    changelog: str = "",
) -> PullRequest:
    """Render commit message, title and body for an update PR."""
    body = (
        f"Bumps {path} from {original_tag} to {latest_tag}.\n\n"
        f"Auto-generated by a [dependency updater]({WORKFLOW_URL}).\n"
        f"{changelog}"
    )
    return PullRequest(
        branch=branch,
        base=base,
        title=f"chore(deps): update {name} to {nice_tag(latest_tag)}",
        body=body,
        commit_message=f"chore: update {path} to {latest_tag}",
    )


def _repo_args() -> list[str]:
    repo = github_repository()
    return ["--repo", repo] if repo else []


def list_open_prs(branch: str, base: str) -> list[dict[str, Any]]:
    """Open PRs from ``branch`` into ``base``."""
    output = gh(
        "pr",
        "list",
        *_repo_args(),
        "--base",
        base,
        "--head",
        branch,
        "--state",
        "open",
        "--json",
        "url",
    )
    if not output:
        return []
    try:
        pulls = json.loads(output)
    except json.JSONDecodeError as exc:
        raise UpdaterError(f"Invalid JSON from gh pr list: {exc}") from exc
    if not isinstance(pulls, list):
        raise UpdaterError("Unexpected gh output for PR list")
    return pulls


def find_existing_pr(branch: str, base: str) -> str | None:
    """URL of the open PR for ``branch``, or None.

    Raises:
        AmbiguousState: If several open PRs match.
    """
    return existing_pr_url(list_open_prs(branch, base), branch)


def start_branch(branch: str, base: str) -> None:
    """Check out ``branch`` freshly from the tip of ``origin/<base>``."""
    git("fetch", "--quiet", "origin", base)
    git("checkout", "--quiet", "-B", branch, f"origin/{base}")


def commit_update(pr: PullRequest, paths: list[str], amend: bool = False) -> None:
    """Commit ``paths`` as the automation's single commit on the branch."""
    git("add", "--", *paths)
    args = ["commit", "--quiet", "-m", pr.commit_message]
    if amend:
        args.insert(1, "--amend")
    git("-c", f"user.name={BOT_NAME}", "-c", f"user.email={BOT_EMAIL}", *args)


def needs_push(branch: str) -> bool:
    """Whether the local tree differs from the one at ``origin/<branch>``."""
    remote_tree = git(
        "rev-parse", "--verify", "--quiet", f"origin/{branch}^{{tree}}", check=False
    )
    return remote_tree != git("rev-parse", "HEAD^{tree}")


def push(branch: str) -> None:
    git("push", "--quiet", "--force", "origin", f"HEAD:refs/heads/{branch}")
    print(f"  Pushed {branch}")


def create_pr(pr: PullRequest) -> str:
    """Open the PR and return its URL."""
    args = [
        "pr",
        "create",
        *_repo_args(),
        "--base",
        pr.base,
        "--head",
        pr.branch,
        "--title",
        pr.title,
        "--body",
        pr.body,
    ]
    for label in pr.labels:
        args.extend(["--label", label])
    url = gh(*args).splitlines()[-1]
    print(f"  Created {url}")
    return url


def edit_pr(url: str, pr: PullRequest) -> None:
    """Refresh the title and body of an existing PR."""
    gh("pr", "edit", url, "--title", pr.title, "--body", pr.body)
    print(f"  Updated {url}")
