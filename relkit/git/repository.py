"""Git queries and mutations the release flow runs against one working copy.

Every method returns a Result. Quiet diff commands signal "differences found"
with exit code 1, so those methods map exit 1 to ``Ok(False)`` and keep
``Err`` for git itself failing.

Usage:
    repo = Repository(Path("/path/to/app"))

    match repo.diff_files_clean():
        case Ok(True):
            print("no unstaged changes")
        case Ok(False):
            print("unstaged changes present")
        case Err(e):
            print(f"git failed: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relkit.core.result import Err, Ok, Result
from relkit.platform.process import ProcessError
from relkit.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0
_NETWORK_COMMANDS = frozenset({"fetch", "push", "ls-remote"})

# Exit status of `--quiet` diff commands when differences exist
_DIFF_FOUND = 1

__all__ = ["GitError", "GitStatus", "Repository", "StatusEntry"]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command line that failed (without the repo path)
        message: First useful line of git's diagnostics
        returncode: Process return code
        output: Everything git printed, for the operator
    """

    command: str
    message: str
    returncode: int = 1
    output: str = ""


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """One line of `git status --porcelain`: index flag, worktree flag, path."""

    index: str
    worktree: str
    path: str


@dataclass(frozen=True, slots=True)
class GitStatus:
    """Changed paths reported by `git status --porcelain`, untracked ones excluded."""

    entries: tuple[StatusEntry, ...] = ()

    @property
    def staged(self) -> list[StatusEntry]:
        return [e for e in self.entries if e.index != " "]

    @property
    def unstaged(self) -> list[StatusEntry]:
        return [e for e in self.entries if e.worktree != " "]


class Repository:
    """Git commands run against one working copy.

    Attributes:
        path: Working copy root, passed to git as `-C <path>`
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def status(self) -> Result[GitStatus, GitError]:
        """Refresh the index stat cache and list tracked changes."""
        result = self._run(["status", "--porcelain"])
        match result:
            case Err(e):
                return Err(_git_error(e))
            case Ok(stdout):
                return Ok(_parse_porcelain(stdout))

    def diff_files_clean(self) -> Result[bool, GitError]:
        """True if the working tree matches the index (no unstaged changes)."""
        return self._run_quiet_diff(["diff-files", "--quiet"])

    def diff_index_clean(self) -> Result[bool, GitError]:
        """True if the index matches HEAD (no uncommitted staged changes)."""
        return self._run_quiet_diff(["diff-index", "--quiet", "--cached", "HEAD"])

    def diff_vs_remote(self, remote: str, branch: str) -> Result[bool, GitError]:
        """True if the working copy has no differences with `<remote>/<branch>`.

        A missing remote branch is an error, not a difference.
        """
        return self._run_quiet_diff(["diff", "--quiet", f"{remote}/{branch}"])

    def current_branch(self) -> Result[str | None, GitError]:
        """Name of the checked out branch, None on a detached HEAD."""
        result = self._run(["symbolic-ref", "--quiet", "HEAD"])
        match result:
            case Err(e) if e.returncode == 1:
                return Ok(None)
            case Err(e):
                return Err(_git_error(e))
            case Ok(stdout):
                ref = stdout.strip()
                if not ref:
                    return Ok(None)
                return Ok(ref.removeprefix("refs/heads/"))

    def ls_remote_tags(self, remote: str, pattern: str) -> Result[bool, GitError]:
        """True if the remote carries a tag matching pattern."""
        result = self._run(["ls-remote", "--tags", remote, pattern])
        match result:
            case Err(e):
                return Err(_git_error(e))
            case Ok(stdout):
                return Ok(stdout.strip() != "")

    def describe(self, match_tag: str | None = None) -> Result[str, GitError]:
        """Raw `git describe --always --tags` output, optionally pinned to a tag."""
        args = ["describe", "--always", "--tags"]
        if match_tag:
            args.append(f"--match={match_tag}")
        result = self._run(args)
        match result:
            case Err(e):
                return Err(_git_error(e))
            case Ok(stdout):
                return Ok(stdout.strip())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def fetch(self, remote: str) -> Result[str, GitError]:
        return self._run_simple(["fetch", remote])

    def add(self, *paths: str) -> Result[str, GitError]:
        return self._run_simple(["add", "--", *paths])

    def remove(self, path: str) -> Result[str, GitError]:
        """Remove a tracked file from the index and the working tree."""
        return self._run_simple(["rm", "--", path])

    def commit(self, message: str) -> Result[str, GitError]:
        return self._run_simple(["commit", "-m", message])

    def tag(self, name: str, message: str) -> Result[str, GitError]:
        """Create an annotated tag on HEAD."""
        return self._run_simple(["tag", "-a", name, "-m", message])

    def push(self, remote: str, ref: str) -> Result[str, GitError]:
        return self._run_simple(["push", remote, ref])

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run_simple(self, args: list[str]) -> Result[str, GitError]:
        result = self._run(args)
        match result:
            case Err(e):
                return Err(_git_error(e))
            case Ok(stdout):
                return Ok(stdout.strip())

    def _run_quiet_diff(self, args: list[str]) -> Result[bool, GitError]:
        result = self._run(args)
        match result:
            case Ok(_):
                return Ok(True)
            case Err(e) if e.returncode == _DIFF_FOUND:
                return Ok(False)
            case Err(e):
                return Err(_git_error(e))

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run `git -C <path> <args>`; network commands get the longer timeout."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)


def _git_error(e: ProcessError) -> GitError:
    # Drop "git -C <path>" so the message shows what an operator would type
    args = e.command[3:] if e.command[:2] == ("git", "-C") else e.command[1:]
    command = " ".join(("git", *args))
    lines = [ln.strip() for ln in e.output.splitlines() if ln.strip()]
    return GitError(
        command=command,
        message=lines[0] if lines else f"{command} failed",
        returncode=e.returncode,
        output=e.output,
    )


def _parse_porcelain(output: str) -> GitStatus:
    entries = [
        StatusEntry(index=line[0], worktree=line[1], path=line[3:])
        for line in output.splitlines()
        if len(line) > 3 and line[:2] not in ("??", "##")
    ]
    return GitStatus(entries=tuple(entries))
