"""Data models for dep-updater.

These Pydantic models and enums represent the values that flow between the
resolver, the decision gate and the git/GitHub collaborators. All of them are
built fresh for each run.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class Ordering(str, Enum):
    """How candidate tags are ordered when picking the latest one."""

    SEMVER = "semver"
    PEP440 = "pep440"
    LEXICAL = "lexical"


class PrStrategy(str, Enum):
    """How update PRs are managed.

    CREATE opens a new PR (and branch) per released version; UPDATE keeps a
    single branch and PR that is refreshed until merged.
    """

    CREATE = "create"
    UPDATE = "update"


class ActionPlan(str, Enum):
    """The outcome of the decision gate."""

    NO_OP = "noop"
    CREATE_NEW_PR = "create"
    UPDATE_EXISTING_PR = "update"


class DependencyKind(str, Enum):
    SUBMODULE = "submodule"
    PROPERTIES = "properties"
    SCRIPT = "script"


class UpdateOutcome(BaseModel):
    """Resolver verdict for one dependency.

    Attributes:
        original_tag: The currently pinned tag.
        latest_tag: The highest tag matching the filter pattern.
    """

    original_tag: str
    latest_tag: str

    @computed_field
    @property
    def changed(self) -> bool:
        return self.latest_tag != self.original_tag


class BranchState(BaseModel):
    """State of a pre-existing update branch on the remote.

    Attributes:
        exists: Whether the branch exists on the remote at all.
        authors: Authors of commits on the branch that were not made by
                 the automation.
    """

    exists: bool = False
    authors: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def has_manual_commits(self) -> bool:
        return bool(self.authors)


class DependencyConfig(BaseModel):
    """Settings for updating a single dependency.

    Field aliases use dashes so the same keys work in pyproject.toml tables
    and in the workflow inputs.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    path: str
    name: str
    pattern: str = ""
    ordering: Ordering = Ordering.SEMVER
    changelog_entry: bool = Field(default=True, alias="changelog-entry")
    changelog_section: str = Field(default="Dependencies", alias="changelog-section")
    pr_strategy: PrStrategy = Field(default=PrStrategy.CREATE, alias="pr-strategy")


class DependencyTarget(BaseModel):
    """A dependency reference as found in the working tree.

    Attributes:
        path: Path of the submodule, properties file or script.
        kind: How the version is pinned.
        current_tag: The tag currently pinned.
        url: The dependency's repository URL, normalized to https form.
    """

    path: str
    kind: DependencyKind
    current_tag: str
    url: str


class PullRequest(BaseModel):
    """Title/body/commit message for an update PR."""

    branch: str
    base: str
    title: str
    body: str
    commit_message: str
    labels: list[str] = Field(default_factory=lambda: ["dependencies"])


class UpdateReport(BaseModel):
    """Everything a run decided and did, as consumed by later CI steps."""

    target: DependencyTarget
    outcome: UpdateOutcome
    branch: BranchState = Field(default_factory=BranchState)
    plan: ActionPlan = ActionPlan.NO_OP
    main_branch: str = ""
    base_branch: str = ""
    pr_branch: str = ""
    pr_url: str = ""
