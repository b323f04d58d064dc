"""Tests for dep_updater.gate."""

from __future__ import annotations

import pytest

from dep_updater.errors import AmbiguousState
from dep_updater.gate import decide, existing_pr_url
from dep_updater.models import ActionPlan, BranchState, UpdateOutcome

CHANGED = UpdateOutcome(original_tag="v1.2.0", latest_tag="v1.3.0")
UNCHANGED = UpdateOutcome(original_tag="v1.3.0", latest_tag="v1.3.0")
CLEAN = BranchState(exists=True)
MANUAL = BranchState(exists=True, authors=["Jane Doe <jane@example.com>"])


class TestDecide:
    @pytest.mark.parametrize("branch", [CLEAN, MANUAL, BranchState()])
    @pytest.mark.parametrize("existing_pr", [True, False])
    def test_unchanged_is_noop(self, branch: BranchState, existing_pr: bool) -> None:
        """No newer version means no action, regardless of other inputs."""
        assert decide(UNCHANGED, branch, existing_pr) is ActionPlan.NO_OP

    @pytest.mark.parametrize("existing_pr", [True, False])
    def test_manual_commits_are_never_overwritten(self, existing_pr: bool) -> None:
        assert decide(CHANGED, MANUAL, existing_pr) is ActionPlan.NO_OP

    def test_existing_pr_is_updated(self) -> None:
        assert decide(CHANGED, CLEAN, True) is ActionPlan.UPDATE_EXISTING_PR

    def test_new_pr_is_created(self) -> None:
        assert decide(CHANGED, CLEAN, False) is ActionPlan.CREATE_NEW_PR

    def test_missing_branch_creates_pr(self) -> None:
        assert decide(CHANGED, BranchState(), False) is ActionPlan.CREATE_NEW_PR

    def test_idempotent(self) -> None:
        assert decide(CHANGED, CLEAN, True) == decide(CHANGED, CLEAN, True)


class TestExistingPrUrl:
    def test_no_prs(self) -> None:
        assert existing_pr_url([], "deps/foo") is None

    def test_single_pr(self) -> None:
        pulls = [{"url": "https://github.com/org/repo/pull/7"}]
        assert existing_pr_url(pulls, "deps/foo") == "https://github.com/org/repo/pull/7"

    def test_multiple_prs_fail_loudly(self) -> None:
        pulls = [
            {"url": "https://github.com/org/repo/pull/7"},
            {"url": "https://github.com/org/repo/pull/8"},
        ]
        with pytest.raises(AmbiguousState) as excinfo:
            existing_pr_url(pulls, "deps/foo")
        assert excinfo.value.count == 2
        assert "deps/foo" in str(excinfo.value)
