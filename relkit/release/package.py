"""Release packaging: staging, hygiene, build info, tarball and checksum.

Layout produced under the output directory::

    <out>/src/                       staged application (archive root)
    <out>/src/build-info.json
    <out>/<name>.tar.gz
    <out>/<name>.tar.gz.sha1.txt
"""

from __future__ import annotations

import json
import platform
import shutil
import tarfile
from dataclasses import dataclass
from pathlib import Path

from relkit.core.result import Err, Ok, Result
from relkit.output.console import ConsoleProtocol
from relkit.platform.files import atomic_write_text, sha1_file
from relkit.release.command import run_step
from relkit.release.errors import ReleaseError

STAGING_DIR_NAME = "src"
BUILD_INFO_FILE = "build-info.json"
CHECKSUM_SUFFIX = ".sha1.txt"
TESTS_DIR_NAME = "tests"


@dataclass(frozen=True, slots=True)
class SystemInfo:
    node_version: str
    uname: str


@dataclass(frozen=True, slots=True)
class PackageArtifacts:
    version: str
    staging_dir: Path
    package_path: Path
    checksum_path: Path


def validate_output_dir(out_dir: Path, *, exit_code: int = 1) -> Result[None, ReleaseError]:
    """Refuse to package into an existing directory; stale files would ship."""
    if out_dir.exists():
        return Err(
            ReleaseError(
                kind="output_exists",
                message="The output directory exists, please delete it first",
                hint=str(out_dir),
                exit_code=exit_code,
            )
        )
    return Ok(None)


def copy_release_files(
    *,
    root: Path,
    out_dir: Path,
    files: tuple[str, ...],
    dependencies: str,
    console: ConsoleProtocol,
    exit_code: int = 1,
) -> Result[Path, ReleaseError]:
    """Copy the top-level release files and the dependency tree into <out>/src.

    Symlinks in the dependency tree are copied as the files they point to.
    """
    validated = validate_output_dir(out_dir, exit_code=exit_code)
    if isinstance(validated, Err):
        return validated

    staging_dir = out_dir / STAGING_DIR_NAME
    console.info("Starting to copy the release artifacts")

    missing = [name for name in files if not (root / name).is_file()]
    if not (root / dependencies).is_dir():
        missing.append(f"{dependencies}/")
    if missing:
        return Err(
            ReleaseError(
                kind="missing_file",
                message="Release files are missing from the application directory",
                hint=", ".join(missing),
                exit_code=exit_code,
            )
        )

    try:
        staging_dir.mkdir(parents=True)
        for name in files:
            target = staging_dir / name
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(root / name, target)
        shutil.copytree(root / dependencies, staging_dir / dependencies, symlinks=False)
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failed",
                message="Error copying release artifacts",
                hint=str(e),
                exit_code=exit_code,
            )
        )

    console.success(f"Successfully copied release artifacts to {staging_dir}")
    return Ok(staging_dir)


def strip_release_artifacts(
    *,
    staging_dir: Path,
    dependencies: str,
    strip_suffixes: tuple[str, ...],
    strip_tests: tuple[str, ...],
    console: ConsoleProtocol,
    exit_code: int = 1,
) -> Result[int, ReleaseError]:
    """Delete patch leftovers and dependency test suites from the staged tree.

    Returns the number of removed files and directories.
    """
    removed = 0
    try:
        if strip_suffixes:
            for path in sorted(staging_dir.rglob("*")):
                if path.is_file() and path.name.endswith(strip_suffixes):
                    path.unlink()
                    removed += 1

        deps_dir = staging_dir / dependencies
        for pattern in strip_tests:
            for package_dir in sorted(deps_dir.glob(pattern)):
                tests_dir = package_dir / TESTS_DIR_NAME
                if tests_dir.is_dir():
                    shutil.rmtree(tests_dir)
                    removed += 1
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failed",
                message="Error removing development artifacts from the release",
                hint=str(e),
                exit_code=exit_code,
            )
        )

    console.info(f"Removed {removed} development artifact(s) from {staging_dir}")
    return Ok(removed)


def system_info(
    *,
    root: Path,
    tool_version_command: tuple[str, ...],
    console: ConsoleProtocol,
    exit_code: int = 1,
) -> Result[SystemInfo, ReleaseError]:
    """Runtime version and platform string of this build machine."""
    version = run_step(
        list(tool_version_command),
        cwd=root,
        failure_message="Error determining the runtime version",
        exit_code=exit_code,
    )
    if isinstance(version, Err):
        return version

    info = SystemInfo(
        node_version=version.value.strip().removeprefix("v"),
        uname=" ".join(part for part in platform.uname() if part),
    )
    console.info(f"Node Version: {info.node_version}")
    console.info(f"Platform: {info.uname}")
    return Ok(info)


def save_build_info(
    *,
    staging_dir: Path,
    version: str,
    info: SystemInfo,
    console: ConsoleProtocol,
    exit_code: int = 1,
) -> Result[Path, ReleaseError]:
    target = staging_dir / BUILD_INFO_FILE
    payload = {"nodeVersion": info.node_version, "uname": info.uname, "version": version}
    try:
        atomic_write_text(target, json.dumps(payload, indent=4) + "\n")
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failed",
                message=f"failed to write {target}",
                hint=str(e),
                exit_code=exit_code,
            )
        )
    console.success(f"Successfully wrote system and version information to {target}")
    return Ok(target)


def create_tarball(
    *,
    source_dir: Path,
    dest_path: Path,
    console: ConsoleProtocol,
    exit_code: int = 1,
) -> Result[Path, ReleaseError]:
    """Archive the contents of source_dir (not the directory itself) as .tar.gz."""
    console.info("Starting to package the release artifacts (tar.gz)")
    try:
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        with tarfile.open(dest_path, "w:gz") as tar:
            tar.add(source_dir, arcname=".")
    except (OSError, tarfile.TarError) as e:
        return Err(
            ReleaseError(
                kind="io_failed",
                message="Error creating the distribution tar.gz file",
                hint=str(e),
                exit_code=exit_code,
            )
        )
    console.success(f"Successfully created release tarball at {dest_path}")
    return Ok(dest_path)


def checksum_package(
    package_path: Path,
    *,
    console: ConsoleProtocol,
    exit_code: int = 1,
) -> Result[Path, ReleaseError]:
    """Write the sha1 of the package to `<package>.sha1.txt` (digest only)."""
    checksum_path = package_path.with_name(package_path.name + CHECKSUM_SUFFIX)
    try:
        digest = sha1_file(package_path)
        atomic_write_text(checksum_path, digest)
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failed",
                message="Error creating checksum for the release package",
                hint=str(e),
                exit_code=exit_code,
            )
        )
    console.success(f"Created sha1 signature {digest} located at {checksum_path}")
    return Ok(checksum_path)
