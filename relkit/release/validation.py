"""Repository state checks that gate a release.

The checks run in order and stop at the first failure. They are recomputed
on every call: a RepositoryState is a snapshot for the current step only.
"""

from __future__ import annotations

from dataclasses import dataclass

from relkit.core.result import Err, Ok, Result
from relkit.git.repository import GitStatus, Repository, StatusEntry
from relkit.output.console import ConsoleProtocol
from relkit.release.errors import ReleaseError, from_git_error
from relkit.release.tagging import resolve_branch

_MAX_LISTED_PATHS = 5


@dataclass(frozen=True, slots=True)
class RepositoryState:
    """Snapshot of a repository that passed validation."""

    branch: str
    remote: str
    status: GitStatus

    @property
    def remote_ref(self) -> str:
        return f"{self.remote}/{self.branch}"


def validate_repository(
    repo: Repository,
    *,
    remote: str,
    console: ConsoleProtocol,
    exit_code: int = 1,
) -> Result[RepositoryState, ReleaseError]:
    """Verify that a release can start from the current repository state."""
    console.info("Validating repository for release")

    status = repo.status()
    if isinstance(status, Err):
        return Err(
            from_git_error(
                status.error,
                kind="git_failed",
                message="Error refreshing git cache with a git status",
                exit_code=exit_code,
            )
        )

    files_clean = repo.diff_files_clean()
    if isinstance(files_clean, Err):
        return Err(
            from_git_error(
                files_clean.error,
                kind="git_failed",
                message="Error checking the working tree for unstaged changes",
                exit_code=exit_code,
            )
        )
    if not files_clean.value:
        return Err(
            ReleaseError(
                kind="repo_dirty",
                message="It appears you may have unstaged changes in your repository",
                hint=_paths_hint(status.value.unstaged),
                exit_code=exit_code,
            )
        )

    index_clean = repo.diff_index_clean()
    if isinstance(index_clean, Err):
        return Err(
            from_git_error(
                index_clean.error,
                kind="git_failed",
                message="Error checking the index for uncommitted changes",
                exit_code=exit_code,
            )
        )
    if not index_clean.value:
        return Err(
            ReleaseError(
                kind="repo_dirty",
                message="It appears you may have uncommitted changes in your repository",
                hint=_paths_hint(status.value.staged),
                exit_code=exit_code,
            )
        )

    console.info("Determining current branch")
    branch = resolve_branch(repo, exit_code=exit_code)
    if isinstance(branch, Err):
        return branch
    branch_name = branch.value

    fetched = repo.fetch(remote)
    if isinstance(fetched, Err):
        return Err(
            from_git_error(
                fetched.error,
                kind="fetch_failed",
                message=f'Failed to fetch the remote repository "{remote}"',
                exit_code=exit_code,
            )
        )

    unsynced_message = (
        f'It appears the local copy of branch "{branch_name}" is not synchronized '
        f'with remote "{remote}". You may need to push or pull in order to ensure '
        "we can safely push release information"
    )
    synced = repo.diff_vs_remote(remote, branch_name)
    if isinstance(synced, Err):
        return Err(
            from_git_error(
                synced.error,
                kind="repo_unsynced",
                message=unsynced_message,
                exit_code=exit_code,
            )
        )
    if not synced.value:
        return Err(
            ReleaseError(
                kind="repo_unsynced",
                message=unsynced_message,
                hint=f"working copy differs from {remote}/{branch_name}",
                exit_code=exit_code,
            )
        )

    console.success("Repository state is clean for a release")
    return Ok(RepositoryState(branch=branch_name, remote=remote, status=status.value))


def _paths_hint(entries: list[StatusEntry]) -> str | None:
    if not entries:
        return None
    paths = [e.path for e in entries[:_MAX_LISTED_PATHS]]
    if len(entries) > _MAX_LISTED_PATHS:
        paths.append(f"... {len(entries) - _MAX_LISTED_PATHS} more")
    return ", ".join(paths)
