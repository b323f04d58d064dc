"""Update branch naming and state.

An update branch must only ever contain commits made by the automation. If
someone pushed to it by hand, the run leaves it alone.
"""

from __future__ import annotations

import re

from .errors import UnknownPrStrategy, UpdaterError
from .models import BranchState, PrStrategy
from .shell import git

BOT_NAME = "GitHub"
BOT_EMAIL = "noreply@github.com"
BOT_AUTHOR = f"{BOT_NAME} <{BOT_EMAIL}>"


def base_branch() -> str:
    """Default branch of the ``origin`` remote of the current repository."""
    output = git("remote", "show", "origin")
    m = re.search(r"HEAD branch: (\S+)", output)
    if not m:
        raise UpdaterError("Couldn't determine the default branch of origin")
    return m[1]


def pr_branch(path: str, latest_tag: str, strategy: PrStrategy | str) -> str:
    """Name of the branch carrying the update.

    Examples:
        pr_branch("modules/foo", "v1.3.0", "create") → "deps/modules/foo/v1.3.0"
        pr_branch("modules/foo", "v1.3.0", "update") → "deps/modules/foo"

    Raises:
        UnknownPrStrategy: For anything other than "create" or "update".
    """
    try:
        strategy = PrStrategy(strategy)
    except ValueError:
        raise UnknownPrStrategy(f"Unknown PR strategy '{strategy}'.") from None
    if strategy is PrStrategy.CREATE:
        return f"deps/{path}/{latest_tag}"
    return f"deps/{path}"


def is_bot_author(author: str) -> bool:
    """Whether a "Name <email>" author belongs to the automation."""
    return author == BOT_AUTHOR or BOT_EMAIL in author or "[bot]" in author


def branch_state(branch: str, base: str) -> BranchState:
    """Inspect ``origin/<branch>`` for commits not made by the automation.

    A branch that doesn't exist on the remote yet is trivially clean.
    """
    if not git("ls-remote", "--heads", "origin", branch, check=False):
        return BranchState(exists=False)

    git("fetch", "--quiet", "origin", base, branch)
    log = git("log", "--format=%an <%ae>", f"origin/{base}..origin/{branch}")
    authors = sorted({a for a in log.splitlines() if a and not is_bot_author(a)})
    return BranchState(exists=True, authors=authors)
