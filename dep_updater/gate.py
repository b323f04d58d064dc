"""Update decision gate.

Maps the resolver verdict, the state of the update branch and the existing-PR
lookup onto exactly one of three actions. Pure: callers gather the inputs and
carry out the returned plan.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .errors import AmbiguousState
from .models import ActionPlan, BranchState, UpdateOutcome


def decide(
    outcome: UpdateOutcome, branch: BranchState, existing_pr: bool
) -> ActionPlan:
    """Decide what to do for one dependency.

    Manually edited update branches are never overwritten, even when a newer
    version is available.
    """
    if not outcome.changed:
        return ActionPlan.NO_OP
    if branch.has_manual_commits:
        return ActionPlan.NO_OP
    if existing_pr:
        return ActionPlan.UPDATE_EXISTING_PR
    return ActionPlan.CREATE_NEW_PR


def existing_pr_url(pulls: Sequence[dict[str, Any]], branch: str) -> str | None:
    """Return the URL of the single open PR for ``branch``, if any.

    Args:
        pulls: PRs returned by the lookup (each with a "url" key).
        branch: The update branch, for the error message.

    Raises:
        AmbiguousState: If more than one PR matched.
    """
    if not pulls:
        return None
    if len(pulls) > 1:
        raise AmbiguousState(branch, len(pulls))
    return pulls[0]["url"]
