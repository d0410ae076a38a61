"""Dependency lockfile lifecycle.

The lockfile is frozen and committed with the version bump so the tagged
release pins exact dependency versions, then removed again once the release
is out so day-to-day development tracks the loose ranges.
"""

from __future__ import annotations

from pathlib import Path

from relkit.core.result import Err, Ok, Result
from relkit.git.repository import Repository
from relkit.output.console import ConsoleProtocol
from relkit.release.command import run_step
from relkit.release.errors import ReleaseError, from_git_error
from relkit.release.tagging import resolve_branch


def freeze_dependencies(
    *,
    root: Path,
    command: tuple[str, ...],
    console: ConsoleProtocol,
    exit_code: int = 1,
) -> Result[None, ReleaseError]:
    """Capture exact resolved dependency versions (`npm shrinkwrap`)."""
    console.info(f"Starting to run {' '.join(command)}")
    result = run_step(
        list(command),
        cwd=root,
        failure_message="Failed to shrinkwrap dependencies",
        exit_code=exit_code,
    )
    if isinstance(result, Err):
        return result
    console.success("Successfully shrinkwrapped dependencies")
    return Ok(None)


def remove_lockfile_and_commit(
    repo: Repository,
    *,
    version: str,
    remote: str,
    lockfile: str,
    console: ConsoleProtocol,
    exit_code: int = 1,
) -> Result[None, ReleaseError]:
    """`git rm` the lockfile, commit the removal and push the branch."""
    branch = resolve_branch(repo, exit_code=exit_code)
    if isinstance(branch, Err):
        return branch
    branch_name = branch.value

    console.info("Removing shrinkwrap after tag")

    removed = repo.remove(lockfile)
    if isinstance(removed, Err):
        return Err(
            from_git_error(
                removed.error,
                kind="git_failed",
                message=f"Error removing {lockfile} from git index",
                exit_code=exit_code,
            )
        )

    committed = repo.commit(f"(Release {version}) Remove shrinkwrap")
    if isinstance(committed, Err):
        return Err(
            from_git_error(
                committed.error,
                kind="git_failed",
                message="Error committing shrinkwrap removal to git",
                exit_code=exit_code,
            )
        )

    console.info(f"Authentication required to push branch {branch_name}")
    pushed = repo.push(remote, branch_name)
    if isinstance(pushed, Err):
        return Err(
            from_git_error(
                pushed.error,
                kind="git_failed",
                message=f"Error pushing shrinkwrap removal to repo slug {remote}/{branch_name}",
                exit_code=exit_code,
            )
        )

    console.success("Removed shrinkwrap with 1 commit")
    return Ok(None)
