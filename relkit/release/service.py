"""Release pipeline entry points.

Each stage group is a separate function so an operator can resume a release
by hand after a failure:

    prepare_release   validate, test, bump, freeze, commit, tag, push
    package_release   stage, strip, build info, tarball, checksum
    upload_release    put package and checksum under <major>.<minor>/
    finalize_release  drop the lockfile from version control

`ship_release` runs all four in order. Every function stops at the first
failure and returns it; nothing is rolled back.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from relkit.core.config import Config, PackageConfig, ReleaseConfig
from relkit.core.result import Err, Ok, Result
from relkit.git.repository import Repository
from relkit.output.console import ConsoleProtocol
from relkit.release.command import run_step
from relkit.release.describe import describe, git_version
from relkit.release.errors import ReleaseError
from relkit.release.lockfile import freeze_dependencies, remove_lockfile_and_commit
from relkit.release.manifest import load_manifest, rewrite_version
from relkit.release.package import (
    PackageArtifacts,
    checksum_package,
    copy_release_files,
    create_tarball,
    save_build_info,
    strip_release_artifacts,
    system_info,
    validate_output_dir,
)
from relkit.release.tagging import commit_version_and_tag
from relkit.release.target import ReleaseTarget, validate_target_version
from relkit.release.upload import (
    ObjectStore,
    S3ObjectStore,
    UploadReceipt,
    credentials_from_env,
    upload_artifacts,
    validate_upload,
)
from relkit.release.validation import validate_repository


@dataclass(frozen=True, slots=True)
class PreparedRelease:
    target: ReleaseTarget
    branch: str


@dataclass(frozen=True, slots=True)
class ShippedRelease:
    prepared: PreparedRelease
    artifacts: PackageArtifacts
    receipt: UploadReceipt


def run_unit_tests(
    *,
    root: Path,
    command: tuple[str, ...],
    console: ConsoleProtocol,
    exit_code: int = 1,
) -> Result[None, ReleaseError]:
    console.info(f"Running unit tests: {' '.join(command)}")
    result = run_step(
        list(command),
        cwd=root,
        failure_message="The unit tests did not succeed, aborting release",
        exit_code=exit_code,
        echo=True,
    )
    if isinstance(result, Err):
        return result
    console.success("Unit tests passed")
    return Ok(None)


def prepare_release(
    *,
    root: Path,
    version: str,
    config: ReleaseConfig,
    console: ConsoleProtocol,
    run_tests: bool = True,
) -> Result[PreparedRelease, ReleaseError]:
    """Bump the manifest to version, freeze dependencies, commit, tag and push."""
    repo = Repository(root)
    exit_code = config.exit_code

    console.header(f"Preparing release {version}")

    state = validate_repository(repo, remote=config.remote, console=console, exit_code=exit_code)
    if isinstance(state, Err):
        return state

    if run_tests and config.test_command:
        tested = run_unit_tests(
            root=root, command=config.test_command, console=console, exit_code=exit_code
        )
        if isinstance(tested, Err):
            return tested

    manifest = load_manifest(
        root / config.manifest,
        expected_name=config.module,
        console=console,
        exit_code=exit_code,
    )
    if isinstance(manifest, Err):
        return manifest

    target = validate_target_version(
        repo,
        current=manifest.value.version,
        target=version,
        remote=config.remote,
        console=console,
        exit_code=exit_code,
    )
    if isinstance(target, Err):
        return target

    bumped = rewrite_version(
        manifest.value.path,
        from_version=manifest.value.version,
        to_version=version,
        console=console,
        exit_code=exit_code,
    )
    if isinstance(bumped, Err):
        return bumped

    frozen = freeze_dependencies(
        root=root, command=config.freeze_command, console=console, exit_code=exit_code
    )
    if isinstance(frozen, Err):
        return frozen

    branch = commit_version_and_tag(
        repo,
        version=version,
        remote=config.remote,
        paths=[config.manifest, config.lockfile],
        console=console,
        exit_code=exit_code,
    )
    if isinstance(branch, Err):
        return branch

    return Ok(PreparedRelease(target=target.value, branch=branch.value))


def package_release(
    *,
    root: Path,
    out_dir: Path,
    config: Config,
    console: ConsoleProtocol,
    from_tag: str | None = None,
) -> Result[PackageArtifacts, ReleaseError]:
    """Build `<out>/<archive>.tar.gz` and its sha1 sidecar from the working copy."""
    repo = Repository(root)
    exit_code = config.release.exit_code
    package: PackageConfig = config.package

    console.header("Packaging release")

    version = git_version(repo, console=console, from_tag=from_tag, exit_code=exit_code)
    if isinstance(version, Err):
        return version

    staging = copy_release_files(
        root=root,
        out_dir=out_dir,
        files=package.files,
        dependencies=package.dependencies,
        console=console,
        exit_code=exit_code,
    )
    if isinstance(staging, Err):
        return staging
    staging_dir = staging.value

    stripped = strip_release_artifacts(
        staging_dir=staging_dir,
        dependencies=package.dependencies,
        strip_suffixes=package.strip_suffixes,
        strip_tests=package.strip_tests,
        console=console,
        exit_code=exit_code,
    )
    if isinstance(stripped, Err):
        return stripped

    info = system_info(
        root=root,
        tool_version_command=package.tool_version_command,
        console=console,
        exit_code=exit_code,
    )
    if isinstance(info, Err):
        return info

    saved = save_build_info(
        staging_dir=staging_dir,
        version=version.value,
        info=info.value,
        console=console,
        exit_code=exit_code,
    )
    if isinstance(saved, Err):
        return saved

    archive = package.archive_name.format(name=config.release.module, version=version.value)
    tarball = create_tarball(
        source_dir=staging_dir,
        dest_path=out_dir / f"{archive}.tar.gz",
        console=console,
        exit_code=exit_code,
    )
    if isinstance(tarball, Err):
        return tarball

    checksum = checksum_package(tarball.value, console=console, exit_code=exit_code)
    if isinstance(checksum, Err):
        return checksum

    return Ok(
        PackageArtifacts(
            version=version.value,
            staging_dir=staging_dir,
            package_path=tarball.value,
            checksum_path=checksum.value,
        )
    )


def upload_release(
    *,
    root: Path,
    package_path: Path,
    checksum_path: Path,
    bucket: str,
    config: Config,
    console: ConsoleProtocol,
    store: ObjectStore | None = None,
    env: Mapping[str, str] | None = None,
) -> Result[UploadReceipt, ReleaseError]:
    """Upload the package and its checksum for the tag HEAD describes to.

    Without an explicit store, an S3 client is built from the environment
    credentials.
    """
    exit_code = config.release.exit_code

    console.header("Uploading release")

    credentials = validate_upload(
        package_path=package_path,
        checksum_path=checksum_path,
        env=env,
        exit_code=exit_code,
    )
    if isinstance(credentials, Err):
        return credentials

    descriptor = describe(Repository(root), exit_code=exit_code)
    if isinstance(descriptor, Err):
        return descriptor

    if store is None:
        store = S3ObjectStore(credentials=credentials.value, region=config.upload.region)

    return upload_artifacts(
        store,
        bucket=bucket,
        tag=descriptor.value.tag,
        package_path=package_path,
        checksum_path=checksum_path,
        console=console,
        exit_code=exit_code,
    )


def finalize_release(
    *,
    root: Path,
    version: str,
    config: ReleaseConfig,
    console: ConsoleProtocol,
) -> Result[None, ReleaseError]:
    """Remove the lockfile from version control now that the tag carries it."""
    console.header("Finalizing release")
    return remove_lockfile_and_commit(
        Repository(root),
        version=version,
        remote=config.remote,
        lockfile=config.lockfile,
        console=console,
        exit_code=config.exit_code,
    )


def ship_release(
    *,
    root: Path,
    version: str,
    out_dir: Path,
    bucket: str,
    config: Config,
    console: ConsoleProtocol,
    run_tests: bool = True,
    store: ObjectStore | None = None,
    env: Mapping[str, str] | None = None,
) -> Result[ShippedRelease, ReleaseError]:
    """prepare -> package -> upload -> finalize, stopping at the first failure.

    Checks that need neither git nor the network (output directory, upload
    credentials) run first, before anything is tagged or pushed.
    """
    exit_code = config.release.exit_code
    fresh_out = validate_output_dir(out_dir, exit_code=exit_code)
    if isinstance(fresh_out, Err):
        return fresh_out
    credentials = credentials_from_env(env, exit_code=exit_code)
    if isinstance(credentials, Err):
        return credentials

    prepared = prepare_release(
        root=root,
        version=version,
        config=config.release,
        console=console,
        run_tests=run_tests,
    )
    if isinstance(prepared, Err):
        return prepared

    artifacts = package_release(
        root=root, out_dir=out_dir, config=config, console=console, from_tag=version
    )
    if isinstance(artifacts, Err):
        return artifacts

    receipt = upload_release(
        root=root,
        package_path=artifacts.value.package_path,
        checksum_path=artifacts.value.checksum_path,
        bucket=bucket,
        config=config,
        console=console,
        store=store,
        env=env,
    )
    if isinstance(receipt, Err):
        return receipt

    finalized = finalize_release(
        root=root, version=version, config=config.release, console=console
    )
    if isinstance(finalized, Err):
        return finalized

    console.success(f"Released {version}")
    return Ok(
        ShippedRelease(
            prepared=prepared.value,
            artifacts=artifacts.value,
            receipt=receipt.value,
        )
    )
