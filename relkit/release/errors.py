"""Error payload shared by every release step."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from relkit.git.repository import GitError

ReleaseErrorKind = Literal[
    "command_failed",
    "git_failed",
    "repo_dirty",
    "repo_unsynced",
    "detached_head",
    "fetch_failed",
    "invalid_manifest",
    "invalid_version",
    "version_not_greater",
    "tag_exists",
    "tag_mismatch",
    "invalid_tag",
    "rewrite_noop",
    "output_exists",
    "missing_file",
    "missing_credentials",
    "io_failed",
    "upload_failed",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Why a release step stopped.

    Attributes:
        kind: Machine-readable category of the failure.
        message: Diagnostic naming the violated condition.
        hint: Extra detail (failed command and exit code, offending paths, ...).
        exit_code: Process exit status the command line should use.
        output: Captured command output to show the operator, if any.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None
    exit_code: int = 1
    output: str | None = None


def from_git_error(
    error: GitError,
    *,
    kind: ReleaseErrorKind,
    message: str,
    exit_code: int | None = None,
) -> ReleaseError:
    """Wrap a failed git invocation with a release-level diagnostic.

    Without an explicit exit_code the git exit status is propagated.
    """
    code = exit_code if exit_code is not None else _process_exit_code(error.returncode)
    return ReleaseError(
        kind=kind,
        message=message,
        hint=f"`{error.command}` === {error.returncode}",
        exit_code=code,
        output=error.output or None,
    )


def _process_exit_code(returncode: int) -> int:
    # -1 means the process never started; signals show up as negative codes
    return returncode if 0 < returncode < 256 else 1
