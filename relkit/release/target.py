"""Target version gate.

Checks run in a fixed order: syntax, then ordering against the current
version, then the remote tag lookup (the only network call). Nothing is
mutated here.
"""

from __future__ import annotations

from dataclasses import dataclass

from relkit.core.result import Err, Ok, Result
from relkit.git.repository import Repository
from relkit.output.console import ConsoleProtocol
from relkit.release.errors import ReleaseError, from_git_error
from relkit.release.semver import SemVer, parse_version


@dataclass(frozen=True, slots=True)
class ReleaseTarget:
    current_version: SemVer
    target_version: SemVer
    remote: str

    @property
    def tag(self) -> str:
        return str(self.target_version)


def validate_target_version(
    repo: Repository,
    *,
    current: str,
    target: str,
    remote: str,
    console: ConsoleProtocol,
    exit_code: int = 1,
) -> Result[ReleaseTarget, ReleaseError]:
    console.info("Validating code to release target version")

    target_version = parse_version(target)
    if target_version is None:
        return Err(
            ReleaseError(
                kind="invalid_version",
                message=f"The target version of {target} is not a valid semver version",
                hint="Expected MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]",
                exit_code=exit_code,
            )
        )

    current_version = parse_version(current)
    if current_version is None:
        return Err(
            ReleaseError(
                kind="invalid_version",
                message=f"The current version of {current} is not a valid semver version",
                exit_code=exit_code,
            )
        )

    if not target_version > current_version:
        return Err(
            ReleaseError(
                kind="version_not_greater",
                message=(
                    f"The target version of {target} should be greater than "
                    f"the current version {current}"
                ),
                exit_code=exit_code,
            )
        )

    console.info("Listing remote tags")
    exists = repo.ls_remote_tags(remote, target)
    if isinstance(exists, Err):
        return Err(
            from_git_error(
                exists.error,
                kind="git_failed",
                message="An error occurred listing remote tags",
                exit_code=exit_code,
            )
        )
    if exists.value:
        return Err(
            ReleaseError(
                kind="tag_exists",
                message=f"The tag {target} already exists in the remote repository {remote}",
                exit_code=exit_code,
            )
        )

    console.success(f"Validated the target release version {target}")
    return Ok(
        ReleaseTarget(
            current_version=current_version,
            target_version=target_version,
            remote=remote,
        )
    )
