"""Changelog handling.

Two jobs:

1. Summarize what changed upstream between two tags, by diffing the
   dependency's own CHANGELOG at both tags. The summary goes into the PR body.
2. Record the bump in this repository's CHANGELOG.md under
   ``## Unreleased`` / ``### <section>``.
"""

from __future__ import annotations

import difflib
import re
import tempfile
from pathlib import Path

from .shell import git
from .versions import nice_tag

CHANGELOG_FILES = ("CHANGELOG.md", "changelog.md", "CHANGES.md")
# GitHub rejects PR bodies longer than 65536 characters.
MAX_BODY_CHANGELOG = 60000
UNRELEASED = "## Unreleased"


def added_lines(old_text: str, new_text: str) -> list[str]:
    """Lines present in ``new_text`` but not in ``old_text``, in order."""
    old_lines = old_text.splitlines()
    new_lines = new_text.splitlines()
    matcher = difflib.SequenceMatcher(a=old_lines, b=new_lines, autojunk=False)
    added: list[str] = []
    for op, _, _, j1, j2 in matcher.get_opcodes():
        if op in ("insert", "replace"):
            added.extend(new_lines[j1:j2])
    return added


def render_changelog(lines: list[str]) -> str:
    """Render upstream changelog lines as a collapsible PR body section.

    Headings are demoted so they nest under the section, and the text is
    truncated to keep the PR body under GitHub's size limit.
    """
    while lines and not lines[0].strip():
        lines = lines[1:]
    while lines and not lines[-1].strip():
        lines = lines[:-1]
    if not lines:
        return ""

    body = "\n".join(re.sub(r"^(#+) ", r"\1## ", line) for line in lines)
    if len(body) > MAX_BODY_CHANGELOG:
        body = body[:MAX_BODY_CHANGELOG].rsplit("\n", 1)[0] + "\n\n_(truncated)_"
    return f"\n<details>\n<summary>Changelog</summary>\n\n{body}\n</details>\n"


def _read_at_tag(repo_dir: Path, tag: str) -> str:
    for name in CHANGELOG_FILES:
        text = git("show", f"{tag}:{name}", cwd=repo_dir, check=False)
        if text:
            return text
    return ""


def target_changelog(url: str, old_tag: str, new_tag: str) -> str:
    """Changelog of the dependency between ``old_tag`` and ``new_tag``.

    Returns an empty string when the dependency has no changelog.
    """
    with tempfile.TemporaryDirectory() as tmp:
        repo_dir = Path(tmp)
        git("clone", "--quiet", "--filter=blob:none", "--no-checkout", url, tmp)
        new_text = _read_at_tag(repo_dir, new_tag)
        if not new_text:
            print(f"  No changelog found at {new_tag}")
            return ""
        old_text = _read_at_tag(repo_dir, old_tag)
    return render_changelog(added_lines(old_text, new_text))


def _anchor(tag: str) -> str:
    # Release headings are usually the bare version: "## 2.1.0" -> "#210"
    return re.sub(r"[^a-z0-9-]", "", re.sub(r"^v(?=\d)", "", tag.lower()))


def _pr_link(pr_url: str) -> str:
    m = re.search(r"/pull/(\d+)", pr_url)
    return f"[#{m[1]}]({pr_url})" if m else pr_url


def changelog_entry(
    name: str,
    pr_url: str,
    repo_url: str,
    main_branch: str,
    old_tag: str,
    new_tag: str,
) -> list[str]:
    """Render the changelog bullet for a dependency bump.

    Example:
        - Bump CLI from v2.0.0 to v2.1.0 ([#42](https://github.com/org/repo/pull/42))
          - [changelog](https://github.com/example/tool/blob/master/CHANGELOG.md#210)
          - [diff](https://github.com/example/tool/compare/2.0.0...2.1.0)
    """
    return [
        f"- Bump {name} from {nice_tag(old_tag)} to {nice_tag(new_tag)} ({_pr_link(pr_url)})",
        f"  - [changelog]({repo_url}/blob/{main_branch}/CHANGELOG.md#{_anchor(new_tag)})",
        f"  - [diff]({repo_url}/compare/{old_tag}...{new_tag})",
    ]


def _section_end(lines: list[str], start: int, level: int) -> int:
    """Index one past the end of the section whose heading is at ``start``."""
    heading_re = re.compile(rf"^#{{1,{level}}} ")
    for i in range(start + 1, len(lines)):
        if heading_re.match(lines[i]):
            return i
    return len(lines)


def _find_heading(lines: list[str], heading: str, start: int, end: int) -> int | None:
    for i in range(start, end):
        if lines[i].strip().lower() == heading.lower():
            return i
    return None


def _strip_blank(lines: list[str]) -> list[str]:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


def _pop_entry(body: list[str], name: str) -> str | None:
    """Remove the bump entry for ``name`` from ``body``; return its old tag."""
    entry_re = re.compile(rf"^- Bump {re.escape(name)} from (\S+) to ")
    for i, line in enumerate(body):
        m = entry_re.match(line)
        if not m:
            continue
        j = i + 1
        while j < len(body) and body[j].startswith("  "):
            j += 1
        old_tag = m[1]
        for sub in body[i + 1 : j]:
            # The diff link carries the raw tag, the bullet only its display form
            diff = re.search(r"/compare/(\S+?)\.\.\.", sub)
            if diff:
                old_tag = diff[1]
        del body[i:j]
        return old_tag
    return None


def update_changelog(
    changelog: Path,
    name: str,
    pr_url: str,
    repo_url: str,
    main_branch: str,
    old_tag: str,
    new_tag: str,
    section: str = "Dependencies",
) -> None:
    """Add (or refresh) the bump entry for ``name`` in ``changelog``.

    If the unreleased section already lists a bump of the same dependency,
    that entry is replaced and its original "from" version is kept, so the
    changelog reads "from <released> to <latest>" however many times the
    dependency was bumped in between.
    """
    if not changelog.exists():
        print(f"  {changelog} doesn't exist, skipping changelog entry")
        return

    lines = changelog.read_text().splitlines()

    # Locate (or create) "## Unreleased" above the first release
    unreleased = _find_heading(lines, UNRELEASED, 0, len(lines))
    if unreleased is None:
        first_h2 = next((i for i, ln in enumerate(lines) if ln.startswith("## ")), None)
        insert_at = first_h2 if first_h2 is not None else len(lines)
        block = [UNRELEASED, ""]
        if insert_at and lines[insert_at - 1].strip():
            block.insert(0, "")
        lines[insert_at:insert_at] = block
        unreleased = insert_at + len(block) - 2
    unreleased_end = _section_end(lines, unreleased, 2)

    # Locate (or create) "### <section>" at the end of it
    heading = f"### {section}"
    sub = _find_heading(lines, heading, unreleased + 1, unreleased_end)
    if sub is None:
        insert_at = unreleased_end
        while insert_at > unreleased + 1 and not lines[insert_at - 1].strip():
            insert_at -= 1
        lines[insert_at:insert_at] = ["", heading]
        sub = insert_at + 1
    sub_end = _section_end(lines, sub, 3)

    body = lines[sub + 1 : sub_end]
    previous_old_tag = _pop_entry(body, name)
    if previous_old_tag is not None:
        old_tag = previous_old_tag

    entry = changelog_entry(name, pr_url, repo_url, main_branch, old_tag, new_tag)
    new_body = ["", *_strip_blank(body), *entry]
    if sub_end < len(lines):
        new_body.append("")
    lines[sub + 1 : sub_end] = new_body

    changelog.write_text("\n".join(lines) + "\n")
    print(f"  Added changelog entry for {name} under {heading}")
