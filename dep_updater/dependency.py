"""Reading and writing pinned dependency references.

A dependency is pinned in one of three ways:

- submodule: a git submodule checked out at a tag
- properties: a ``*.properties`` file with ``version=`` and ``repo=`` keys
- script: a script answering ``get-version``, ``get-repo`` and
  ``set-version <tag>``

This module detects which one a path is, reads its current tag and
repository URL, applies a new tag, and lists the tags published upstream.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from .errors import UnknownDependency
from .models import DependencyKind, DependencyTarget
from .shell import capture, git

SCRIPT_SUFFIXES = (".sh", ".ps1")


def normalize_repo_url(url: str) -> str:
    """Normalize a git remote URL to its https web form.

    Examples:
        "git@github.com:example/native-sdk.git" → "https://github.com/example/native-sdk"
        "https://github.com/example/cli.git" → "https://github.com/example/cli"
    """
    url = url.strip()
    m = re.match(r"^(?:ssh://)?git@([^:/]+)[:/](.+)$", url)
    if m:
        url = f"https://{m[1]}/{m[2]}"
    url = url.rstrip("/")
    return url[: -len(".git")] if url.endswith(".git") else url


def detect_kind(path: Path, root: Path | None = None) -> DependencyKind:
    """Determine how the dependency at ``path`` is pinned.

    Raises:
        UnknownDependency: If ``path`` doesn't exist or isn't a supported kind.
    """
    root = root or Path.cwd()
    full = root / path
    if full.is_dir():
        if _is_submodule(path, root):
            return DependencyKind.SUBMODULE
        raise UnknownDependency(f"Directory {path} is not a registered git submodule")
    if full.is_file():
        if full.suffix == ".properties":
            return DependencyKind.PROPERTIES
        if full.suffix in SCRIPT_SUFFIXES or os.access(full, os.X_OK):
            return DependencyKind.SCRIPT
        raise UnknownDependency(
            f"File {path} is neither a .properties file nor an executable script"
        )
    raise UnknownDependency(f"Dependency path {path} doesn't exist")


def _is_submodule(path: Path, root: Path) -> bool:
    gitmodules = root / ".gitmodules"
    if not gitmodules.exists():
        return False
    output = git(
        "config",
        "--file",
        str(gitmodules),
        "--get-regexp",
        r"\.path$",
        cwd=root,
        check=False,
    )
    # Lines look like "submodule.<name>.path <path>"
    registered = {
        line.split(maxsplit=1)[1] for line in output.splitlines() if " " in line
    }
    return path.as_posix() in registered


def _script_command(script: Path) -> list[str]:
    if script.suffix == ".ps1":
        return ["pwsh", "-NoProfile", "-File", str(script)]
    if script.suffix == ".sh":
        return ["bash", str(script)]
    return [str(script)]


def read_properties(path: Path) -> dict[str, str]:
    """Parse a simple ``key=value`` properties file, skipping comments."""
    props: dict[str, str] = {}
    for line in path.read_text().splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "!")) or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        props[key.strip()] = value.strip()
    return props


def write_properties_version(path: Path, tag: str) -> None:
    """Rewrite the ``version`` key of a properties file in place.

    Every other line, including comments and ordering, is preserved.
    """
    lines = path.read_text().splitlines(keepends=True)
    for i, line in enumerate(lines):
        key, sep, rest = line.partition("=")
        if sep and key.strip() == "version":
            padding = rest[: len(rest) - len(rest.lstrip(" \t"))]
            newline = "\n" if line.endswith("\n") else ""
            lines[i] = f"{key}={padding}{tag}{newline}"
            break
    else:
        raise UnknownDependency(f"{path} has no 'version' property")
    path.write_text("".join(lines))


def read_target(path: str, root: Path | None = None) -> DependencyTarget:
    """Inspect the dependency at ``path`` and return its current pin.

    Raises:
        UnknownDependency: If the path isn't a supported dependency, or its
            version/repository can't be determined.
    """
    root = root or Path.cwd()
    rel = Path(path)
    kind = detect_kind(rel, root)
    full = root / rel

    if kind is DependencyKind.SUBMODULE:
        current = git("describe", "--tags", "--abbrev=0", cwd=full, check=False)
        url = git("config", "--get", "remote.origin.url", cwd=full, check=False)
    elif kind is DependencyKind.PROPERTIES:
        props = read_properties(full)
        current = props.get("version", "")
        url = props.get("repo", "")
    else:
        cmd = _script_command(full)
        current = capture(*cmd, "get-version", cwd=root)
        url = capture(*cmd, "get-repo", cwd=root)

    if not current:
        raise UnknownDependency(f"Couldn't determine the current version of {path}")
    if not url:
        raise UnknownDependency(f"Couldn't determine the repository of {path}")

    return DependencyTarget(
        path=rel.as_posix(), kind=kind, current_tag=current, url=normalize_repo_url(url)
    )


def apply_tag(target: DependencyTarget, tag: str, root: Path | None = None) -> None:
    """Pin the dependency to ``tag`` in the working tree."""
    root = root or Path.cwd()
    full = root / target.path

    if target.kind is DependencyKind.SUBMODULE:
        git("fetch", "--tags", "--force", "origin", cwd=full)
        git("checkout", "--quiet", tag, cwd=full)
    elif target.kind is DependencyKind.PROPERTIES:
        write_properties_version(full, tag)
    else:
        capture(*_script_command(full), "set-version", tag, cwd=root)


def list_remote_tags(url: str) -> list[str]:
    """List the tag names published in the repository at ``url``."""
    output = git("ls-remote", "--tags", "--refs", url)
    tags: list[str] = []
    for line in output.splitlines():
        _, _, ref = line.partition("\t")
        if ref.startswith("refs/tags/"):
            tags.append(ref[len("refs/tags/") :])
    return tags


def remote_main_branch(url: str) -> str:
    """Name of the default branch of the repository at ``url``.

    Falls back to "main" when the remote doesn't advertise its HEAD.
    """
    output = git("ls-remote", "--symref", url, "HEAD", check=False)
    for line in output.splitlines():
        m = re.match(r"^ref: refs/heads/(\S+)\s+HEAD$", line)
        if m:
            return m[1]
    return "main"
