"""Tests for dep_updater.pipeline."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, call, patch

import pytest

from dep_updater.errors import NoMatchingVersion
from dep_updater.models import (
    ActionPlan,
    BranchState,
    DependencyConfig,
    DependencyTarget,
    PrStrategy,
    UpdateReport,
)
from dep_updater.pipeline import (
    apply_plan,
    plan_update,
    resolve_target,
    run_update,
    step_outputs,
)
from dep_updater.prs import build_pull_request


@pytest.fixture
def mock_dependency(sample_target: DependencyTarget):
    with patch("dep_updater.pipeline.dependency") as mock:
        mock.read_target.return_value = sample_target
        mock.list_remote_tags.return_value = ["v1.0.0", "v1.2.0", "v1.3.0"]
        mock.remote_main_branch.return_value = "master"
        yield mock


@pytest.fixture
def mock_branching():
    with patch("dep_updater.pipeline.branching") as mock:
        mock.base_branch.return_value = "main"
        mock.pr_branch.return_value = "deps/modules/foo/v1.3.0"
        mock.branch_state.return_value = BranchState()
        yield mock


@pytest.fixture
def mock_prs():
    with patch("dep_updater.pipeline.prs") as mock:
        mock.build_pull_request.side_effect = build_pull_request
        mock.find_existing_pr.return_value = None
        mock.create_pr.return_value = "https://github.com/o/r/pull/7"
        mock.needs_push.return_value = True
        yield mock


@pytest.fixture
def mock_changelog():
    with patch("dep_updater.pipeline.changelog") as mock:
        mock.target_changelog.return_value = ""
        yield mock


@pytest.fixture(autouse=True)
def quiet_steps():
    with patch("dep_updater.pipeline.step"):
        yield


@pytest.fixture
def changelog_file(tmp_path: Path):
    path = tmp_path / "CHANGELOG.md"
    path.write_text("# Changelog\n")
    with patch("dep_updater.pipeline.CHANGELOG_PATH", path):
        yield path


@pytest.fixture
def no_changelog_file(tmp_path: Path):
    with patch("dep_updater.pipeline.CHANGELOG_PATH", tmp_path / "CHANGELOG.md"):
        yield


class TestResolveTarget:
    """Tests for resolve_target()."""

    def test_finds_newer_version(
        self, mock_dependency: MagicMock, sample_config: DependencyConfig
    ) -> None:
        target, outcome = resolve_target(sample_config)

        assert target.path == "modules/foo"
        assert outcome.original_tag == "v1.2.0"
        assert outcome.latest_tag == "v1.3.0"
        mock_dependency.list_remote_tags.assert_called_once_with(
            "https://github.com/example/foo"
        )

    def test_pattern_without_matches(self, mock_dependency: MagicMock) -> None:
        config = DependencyConfig(path="modules/foo", name="Foo", pattern="^release-")

        with pytest.raises(NoMatchingVersion):
            resolve_target(config)


class TestPlanUpdate:
    """Tests for plan_update()."""

    def test_new_pr(
        self,
        mock_branching: MagicMock,
        mock_prs: MagicMock,
        sample_config: DependencyConfig,
        changed_report: UpdateReport,
    ) -> None:
        report = plan_update(sample_config, changed_report)

        assert report.plan is ActionPlan.CREATE_NEW_PR
        assert report.base_branch == "main"
        assert report.pr_branch == "deps/modules/foo/v1.3.0"
        assert report.pr_url == ""
        mock_branching.pr_branch.assert_called_once_with(
            "modules/foo", "v1.3.0", PrStrategy.CREATE
        )

    def test_existing_pr(
        self,
        mock_branching: MagicMock,
        mock_prs: MagicMock,
        sample_config: DependencyConfig,
        changed_report: UpdateReport,
    ) -> None:
        mock_prs.find_existing_pr.return_value = "https://github.com/o/r/pull/3"

        report = plan_update(sample_config, changed_report)

        assert report.plan is ActionPlan.UPDATE_EXISTING_PR
        assert report.pr_url == "https://github.com/o/r/pull/3"

    @patch("dep_updater.pipeline.warning")
    def test_manual_changes_skip(
        self,
        mock_warning: MagicMock,
        mock_branching: MagicMock,
        mock_prs: MagicMock,
        sample_config: DependencyConfig,
        changed_report: UpdateReport,
    ) -> None:
        """A branch with commits by people is left alone."""
        mock_branching.branch_state.return_value = BranchState(
            exists=True, authors=["Jane Doe <jane@example.com>"]
        )

        report = plan_update(sample_config, changed_report)

        assert report.plan is ActionPlan.NO_OP
        assert report.branch.has_manual_commits
        mock_prs.find_existing_pr.assert_not_called()
        assert "Jane Doe" in mock_warning.call_args.args[0]


class TestApplyPlan:
    """Tests for apply_plan()."""

    @pytest.fixture
    def create_report(self, changed_report: UpdateReport) -> UpdateReport:
        return changed_report.model_copy(
            update={
                "plan": ActionPlan.CREATE_NEW_PR,
                "base_branch": "main",
                "pr_branch": "deps/modules/foo/v1.3.0",
            }
        )

    def test_noop_does_nothing(
        self,
        mock_dependency: MagicMock,
        mock_prs: MagicMock,
        sample_config: DependencyConfig,
        changed_report: UpdateReport,
    ) -> None:
        assert apply_plan(sample_config, changed_report) == changed_report
        mock_dependency.apply_tag.assert_not_called()
        mock_prs.start_branch.assert_not_called()

    def test_create_then_add_changelog(
        self,
        mock_dependency: MagicMock,
        mock_prs: MagicMock,
        mock_changelog: MagicMock,
        changelog_file: Path,
        sample_config: DependencyConfig,
        create_report: UpdateReport,
    ) -> None:
        """The PR is opened first so the changelog entry can link to it."""
        report = apply_plan(sample_config, create_report)

        assert report.pr_url == "https://github.com/o/r/pull/7"
        assert report.main_branch == "master"
        mock_prs.start_branch.assert_called_once_with("deps/modules/foo/v1.3.0", "main")
        mock_dependency.apply_tag.assert_called_once_with(
            create_report.target, "v1.3.0"
        )

        pr = mock_prs.create_pr.call_args.args[0]
        assert pr.title == "chore(deps): update Foo to v1.3.0"
        assert mock_prs.commit_update.call_args_list == [
            call(pr, ["modules/foo"]),
            call(pr, [str(changelog_file)], amend=True),
        ]
        assert mock_prs.push.call_count == 2
        mock_changelog.update_changelog.assert_called_once_with(
            changelog_file,
            name="Foo",
            pr_url="https://github.com/o/r/pull/7",
            repo_url="https://github.com/example/foo",
            main_branch="master",
            old_tag="v1.2.0",
            new_tag="v1.3.0",
            section="Dependencies",
        )

    def test_create_without_changelog_file(
        self,
        mock_dependency: MagicMock,
        mock_prs: MagicMock,
        mock_changelog: MagicMock,
        no_changelog_file: None,
        sample_config: DependencyConfig,
        create_report: UpdateReport,
    ) -> None:
        apply_plan(sample_config, create_report)

        mock_prs.commit_update.assert_called_once()
        mock_prs.push.assert_called_once()
        mock_changelog.update_changelog.assert_not_called()

    def test_changelog_entry_disabled(
        self,
        mock_dependency: MagicMock,
        mock_prs: MagicMock,
        mock_changelog: MagicMock,
        changelog_file: Path,
        create_report: UpdateReport,
    ) -> None:
        config = DependencyConfig(path="modules/foo", name="Foo", changelog_entry=False)

        apply_plan(config, create_report)

        mock_changelog.update_changelog.assert_not_called()
        mock_prs.commit_update.assert_called_once()

    def test_update_existing(
        self,
        mock_dependency: MagicMock,
        mock_prs: MagicMock,
        mock_changelog: MagicMock,
        changelog_file: Path,
        sample_config: DependencyConfig,
        changed_report: UpdateReport,
    ) -> None:
        report = changed_report.model_copy(
            update={
                "plan": ActionPlan.UPDATE_EXISTING_PR,
                "base_branch": "main",
                "pr_branch": "deps/modules/foo",
                "pr_url": "https://github.com/o/r/pull/3",
            }
        )

        result = apply_plan(sample_config, report)

        assert result.pr_url == "https://github.com/o/r/pull/3"
        mock_prs.create_pr.assert_not_called()
        pr = mock_prs.edit_pr.call_args.args[1]
        mock_prs.commit_update.assert_called_once_with(
            pr, ["modules/foo", str(changelog_file)]
        )
        mock_prs.push.assert_called_once_with("deps/modules/foo")
        mock_prs.edit_pr.assert_called_once_with("https://github.com/o/r/pull/3", pr)

    def test_update_existing_already_up_to_date(
        self,
        mock_dependency: MagicMock,
        mock_prs: MagicMock,
        mock_changelog: MagicMock,
        no_changelog_file: None,
        sample_config: DependencyConfig,
        changed_report: UpdateReport,
    ) -> None:
        """Re-running with the same inputs pushes nothing."""
        mock_prs.needs_push.return_value = False
        report = changed_report.model_copy(
            update={
                "plan": ActionPlan.UPDATE_EXISTING_PR,
                "base_branch": "main",
                "pr_branch": "deps/modules/foo",
                "pr_url": "https://github.com/o/r/pull/3",
            }
        )

        apply_plan(sample_config, report)

        mock_prs.push.assert_not_called()
        mock_prs.edit_pr.assert_called_once()


class TestStepOutputs:
    def test_values(self, changed_report: UpdateReport) -> None:
        report = changed_report.model_copy(
            update={
                "plan": ActionPlan.CREATE_NEW_PR,
                "main_branch": "master",
                "base_branch": "main",
                "pr_branch": "deps/modules/foo/v1.3.0",
                "pr_url": "https://github.com/o/r/pull/7",
            }
        )

        outputs = step_outputs(report)

        assert outputs == {
            "originalTag": "v1.2.0",
            "latestTag": "v1.3.0",
            "latestTagNice": "v1.3.0",
            "url": "https://github.com/example/foo",
            "mainBranch": "master",
            "baseBranch": "main",
            "prBranch": "deps/modules/foo/v1.3.0",
            "changed": "true",
            "manualChanges": "false",
            "plan": "create",
            "prUrl": "https://github.com/o/r/pull/7",
        }


class TestRunUpdate:
    """Tests for run_update()."""

    def test_nothing_to_update(
        self,
        mock_dependency: MagicMock,
        mock_branching: MagicMock,
        mock_prs: MagicMock,
        sample_config: DependencyConfig,
    ) -> None:
        mock_dependency.list_remote_tags.return_value = ["v1.0.0", "v1.2.0"]

        report = run_update(sample_config)

        assert not report.outcome.changed
        assert report.plan is ActionPlan.NO_OP
        mock_branching.base_branch.assert_not_called()
        mock_prs.start_branch.assert_not_called()

    def test_dry_run(
        self,
        mock_dependency: MagicMock,
        mock_branching: MagicMock,
        mock_prs: MagicMock,
        sample_config: DependencyConfig,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        report = run_update(sample_config, dry_run=True)

        assert report.plan is ActionPlan.CREATE_NEW_PR
        mock_prs.start_branch.assert_not_called()
        mock_dependency.apply_tag.assert_not_called()
        assert "Dry run: would create." in capsys.readouterr().out

    def test_full_run(
        self,
        mock_dependency: MagicMock,
        mock_branching: MagicMock,
        mock_prs: MagicMock,
        mock_changelog: MagicMock,
        no_changelog_file: None,
        sample_config: DependencyConfig,
    ) -> None:
        report = run_update(sample_config)

        assert report.plan is ActionPlan.CREATE_NEW_PR
        assert report.pr_url == "https://github.com/o/r/pull/7"
        mock_prs.create_pr.assert_called_once()
