"""Version parsing and latest-tag selection.

Tags are filtered by a regular expression and then ordered by an explicitly
configured scheme. There is no silent fallback between schemes: a tag that
cannot be parsed under ``semver`` or ``pep440`` is an error, and the caller
must either narrow the pattern or pick ``lexical`` ordering.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Any

import semver
from packaging.version import InvalidVersion, Version

from .errors import InvalidPattern, NoMatchingVersion, UnorderableVersion
from .models import Ordering, UpdateOutcome

_SEMVER_TAG = re.compile(
    r"^[vV]?(?P<core>\d+(?:\.\d+)*)(?:-(?P<pre>[0-9A-Za-z.-]+))?(?:\+(?P<build>[0-9A-Za-z.-]+))?$"
)


def parse_version(tag: str) -> tuple[semver.Version, tuple[int, ...]]:
    """Parse a tag into a semver.Version plus any extra numeric parts.

    Handles common tag shapes:
    - "v1.2.3" → 1.2.3
    - "1.2" → 1.2.0
    - "2.0.0-rc.1" → 2.0.0-rc.1
    - "1.2.3.4" → 1.2.3 with extra part (4,)

    Raises:
        ValueError: If the tag is not a dotted numeric version.
    """
    m = _SEMVER_TAG.match(tag.strip())
    if not m:
        raise ValueError(f"Not a semantic version: {tag!r}")
    parts = [int(p) for p in m["core"].split(".")]
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append(0)
    version = semver.Version(
        parts[0], parts[1], parts[2], prerelease=m["pre"], build=m["build"]
    )
    return version, tuple(parts[3:])


def version_key(tag: str, ordering: Ordering) -> tuple[Any, ...]:
    """Return a sort key for ``tag`` under ``ordering``.

    The raw tag is always the final element, so tags that compare equal as
    versions (e.g. "1.2" and "1.2.0") still have a total order.

    Raises:
        UnorderableVersion: If the tag can't be parsed under ``ordering``.
    """
    if ordering is Ordering.LEXICAL:
        return (tag,)
    if ordering is Ordering.PEP440:
        try:
            return (Version(tag), tag)
        except InvalidVersion:
            raise UnorderableVersion(tag, ordering.value) from None
    try:
        version, extra = parse_version(tag)
    except ValueError:
        raise UnorderableVersion(tag, ordering.value) from None
    return (version, extra, tag)


def filter_tags(tags: Iterable[str], pattern: str | None) -> list[str]:
    """Keep tags matching ``pattern`` (regex search); empty keeps everything.

    Raises:
        InvalidPattern: If ``pattern`` is not a valid regular expression.
    """
    if not pattern:
        return list(tags)
    try:
        regex = re.compile(pattern)
    except re.error as exc:
        raise InvalidPattern(pattern, str(exc)) from None
    return [t for t in tags if regex.search(t)]


def latest_tag(tags: Sequence[str], ordering: Ordering = Ordering.SEMVER) -> str:
    """Pick the highest tag under ``ordering``.

    Raises:
        ValueError: If ``tags`` is empty.
        UnorderableVersion: If any tag can't be parsed under ``ordering``.
    """
    if not tags:
        raise ValueError("No tags to choose from")
    return max(tags, key=lambda t: version_key(t, ordering))


def resolve(
    candidates: Sequence[str],
    pattern: str | None,
    current: str,
    ordering: Ordering = Ordering.SEMVER,
) -> UpdateOutcome:
    """Choose the latest matching tag and compare it against ``current``.

    Args:
        candidates: Available tags, as fetched from the dependency's remote.
        pattern: Optional regex; tags not matching it are not eligible.
        current: The currently pinned tag.
        ordering: How to order the eligible tags.

    Raises:
        NoMatchingVersion: If no candidate matches ``pattern``.
        UnorderableVersion: If an eligible tag can't be ordered.
    """
    eligible = filter_tags(candidates, pattern)
    if not eligible:
        raise NoMatchingVersion(pattern or "", len(candidates))
    return UpdateOutcome(
        original_tag=current, latest_tag=latest_tag(eligible, ordering)
    )


def nice_tag(tag: str) -> str:
    """Display form of a tag: bare version numbers get a "v" prefix.

    Examples:
        "1.3.0" → "v1.3.0"
        "v1.3.0" → "v1.3.0"
        "release-5" → "release-5"
    """
    return f"v{tag}" if tag[:1].isdigit() else tag
