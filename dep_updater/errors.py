"""Errors raised while resolving and applying dependency updates.

Every error here aborts the run. Manual edits on an update branch are not an
error: they produce a warning and a no-op plan.
"""

from __future__ import annotations


class UpdaterError(RuntimeError):
    """Base class for fatal updater errors."""


class NoMatchingVersion(UpdaterError):
    """The filter pattern matched none of the available tags."""

    def __init__(self, pattern: str, available: int) -> None:
        self.pattern = pattern
        self.available = available
        super().__init__(
            f"No tag matches pattern {pattern!r} ({available} tags available)"
        )


class UnorderableVersion(UpdaterError):
    """A candidate tag cannot be ordered under the configured ordering."""

    def __init__(self, tag: str, ordering: str) -> None:
        self.tag = tag
        self.ordering = ordering
        super().__init__(
            f"Tag {tag!r} is not a valid {ordering} version. "
            "Narrow the pattern or configure a different ordering (e.g. lexical)."
        )


class AmbiguousState(UpdaterError):
    """More than one open PR exists for the update branch."""

    def __init__(self, branch: str, count: int) -> None:
        self.branch = branch
        self.count = count
        super().__init__(f"Unexpected number of PRs matched for {branch!r}: {count}")


class UnknownDependency(UpdaterError):
    """The dependency path is neither a submodule, properties file nor script."""


class UnknownPrStrategy(UpdaterError):
    """The PR strategy is not one of the supported values."""


class InvalidPattern(UpdaterError):
    """The tag filter is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        super().__init__(f"Invalid tag pattern {pattern!r}: {reason}")
