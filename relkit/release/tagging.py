"""Commit, tag and push a version bump."""

from __future__ import annotations

from relkit.core.result import Err, Ok, Result
from relkit.git.repository import Repository
from relkit.output.console import ConsoleProtocol
from relkit.release.errors import ReleaseError, from_git_error


def bump_commit_message(version: str) -> str:
    return f"(Release {version}) Bump version"


def resolve_branch(repo: Repository, *, exit_code: int = 1) -> Result[str, ReleaseError]:
    """Current branch name, re-read from git rather than cached."""
    branch = repo.current_branch()
    if isinstance(branch, Err):
        return Err(
            from_git_error(
                branch.error,
                kind="git_failed",
                message="Error determining current branch",
                exit_code=exit_code,
            )
        )
    if branch.value is None:
        return Err(
            ReleaseError(
                kind="detached_head",
                message=(
                    "You must be on a branch so the release can be pushed "
                    "to the remote git repository"
                ),
                hint="HEAD is detached",
                exit_code=exit_code,
            )
        )
    return Ok(branch.value)


def commit_version_and_tag(
    repo: Repository,
    *,
    version: str,
    remote: str,
    paths: list[str],
    console: ConsoleProtocol,
    exit_code: int = 1,
) -> Result[str, ReleaseError]:
    """Commit paths, tag the commit as version, push the tag then the branch.

    Returns the branch that was pushed.
    """
    branch = resolve_branch(repo, exit_code=exit_code)
    if isinstance(branch, Err):
        return branch
    branch_name = branch.value

    console.info("Committing version and tagging release")

    # (action, failure message, notice shown before running it)
    steps = (
        (lambda: repo.add(*paths), f"Error adding {', '.join(paths)} to git index", None),
        (lambda: repo.commit(bump_commit_message(version)), "Error committing to git", None),
        (lambda: repo.tag(version, f"v{version}"), "Error creating tag for release", None),
        (
            lambda: repo.push(remote, version),
            f'Error pushing tag for release to remote "{remote}"',
            "Authentication required to push tag",
        ),
        (
            lambda: repo.push(remote, branch_name),
            f"Error pushing release commit to repo slug {remote}/{branch_name}",
            f"Authentication required to push branch {branch_name}",
        ),
    )
    for action, failure_message, notice in steps:
        if notice:
            console.info(notice)
        result = action()
        if isinstance(result, Err):
            return Err(
                from_git_error(
                    result.error,
                    kind="git_failed",
                    message=failure_message,
                    exit_code=exit_code,
                )
            )

    console.success(f"Created and pushed tag {version} and 1 commit")
    return Ok(branch_name)
