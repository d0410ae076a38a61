"""Version identifiers derived from `git describe`.

`git describe --always --tags` prints `<tag>-<commits>-g<hash>` when HEAD is
past the nearest tag, `<tag>` when HEAD is exactly on it, and a bare
abbreviated hash when no tag is reachable.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from relkit.core.result import Err, Ok, Result
from relkit.git.repository import Repository
from relkit.output.console import ConsoleProtocol
from relkit.release.errors import ReleaseError, from_git_error

# Anchored on the right so hyphens inside the tag survive
_SUFFIX_RE = re.compile(r"^(?P<tag>.+)-(?P<commits>\d+)-g(?P<hash>[0-9a-f]+)$", re.ASCII)


@dataclass(frozen=True, slots=True)
class VersionDescriptor:
    """Nearest tag, distance from it and abbreviated commit hash.

    `commits` and `hash` are both None when HEAD is exactly on the tag.
    """

    tag: str
    commits: int | None = None
    hash: str | None = None

    def version_string(self) -> str:
        """`<tag>[-<commits>][-<hash>]`, the commit count left out when zero."""
        version = self.tag
        if self.commits:
            version += f"-{self.commits}"
        if self.hash:
            version += f"-{self.hash}"
        return version


def parse_describe(raw: str) -> VersionDescriptor:
    text = raw.strip()
    m = _SUFFIX_RE.match(text)
    if m is None:
        return VersionDescriptor(tag=text)
    return VersionDescriptor(
        tag=m.group("tag"),
        commits=int(m.group("commits")),
        hash=m.group("hash"),
    )


def describe(
    repo: Repository,
    *,
    from_tag: str | None = None,
    exit_code: int = 1,
) -> Result[VersionDescriptor, ReleaseError]:
    """Describe HEAD, optionally pivoting on from_tag.

    Fails when from_tag is given but git resolves a different tag, so a
    package is never versioned against the wrong baseline.
    """
    raw = repo.describe(match_tag=from_tag)
    if isinstance(raw, Err):
        return Err(
            from_git_error(
                raw.error,
                kind="git_failed",
                message="Error describing the current version with git describe",
                exit_code=exit_code,
            )
        )

    descriptor = parse_describe(raw.value)
    if from_tag and descriptor.tag != from_tag:
        return Err(
            ReleaseError(
                kind="tag_mismatch",
                message=f"The source tag of {from_tag} was not found with git describe",
                hint=f"git describe resolved {descriptor.tag}",
                exit_code=exit_code,
            )
        )
    return Ok(descriptor)


def git_version(
    repo: Repository,
    *,
    console: ConsoleProtocol,
    from_tag: str | None = None,
    exit_code: int = 1,
) -> Result[str, ReleaseError]:
    """The prettiest version string git can give for HEAD."""
    descriptor = describe(repo, from_tag=from_tag, exit_code=exit_code)
    if isinstance(descriptor, Err):
        return descriptor
    version = descriptor.value.version_string()
    console.info(f"Resolved version {version} from git")
    return Ok(version)
