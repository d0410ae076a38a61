"""Upload release artifacts to an S3 bucket.

Objects are keyed `<major>.<minor>/<filename>`, so every patch release of a
minor line lands in the same directory.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from relkit.core.errors import ErrorCode
from relkit.core.result import Err, Ok, Result
from relkit.output.console import ConsoleProtocol
from relkit.release.errors import ReleaseError
from relkit.release.semver import parse_version

ACCESS_KEY_ENV = "AWS_ACCESS_KEY_ID"
SECRET_KEY_ENV = "AWS_SECRET_ACCESS_KEY"


@dataclass(frozen=True, slots=True)
class Credentials:
    access_key_id: str
    secret_access_key: str


@dataclass(frozen=True, slots=True)
class UploadReceipt:
    bucket: str
    package_key: str
    checksum_key: str


class ObjectStore(Protocol):
    """Blocking object upload; returns once the object is stored or failed."""

    def put(self, bucket: str, key: str, path: Path) -> Result[None, ReleaseError]: ...


class S3ObjectStore:
    """ObjectStore backed by boto3.

    The client is built on the first put, so a bad region or broken botocore
    setup is reported like any other upload failure.
    """

    def __init__(self, *, credentials: Credentials, region: str) -> None:
        self._credentials = credentials
        self._region = region
        self._client: Any = None

    def _s3(self) -> Any:
        if self._client is None:
            import boto3

            self._client = boto3.client(
                "s3",
                region_name=self._region,
                aws_access_key_id=self._credentials.access_key_id,
                aws_secret_access_key=self._credentials.secret_access_key,
            )
        return self._client

    def put(self, bucket: str, key: str, path: Path) -> Result[None, ReleaseError]:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            client = self._s3()
            size = path.stat().st_size
            with path.open("rb") as body:
                client.put_object(
                    Bucket=bucket,
                    Key=key,
                    Body=body,
                    ContentLength=size,
                )
        except (BotoCoreError, ClientError, OSError) as e:
            return Err(
                ReleaseError(
                    kind="upload_failed",
                    message=f"Failed to upload {path.name} to s3://{bucket}/{key}",
                    hint=str(e),
                    exit_code=int(ErrorCode.NETWORK_ERROR),
                )
            )
        return Ok(None)


def credentials_from_env(
    env: Mapping[str, str] | None = None, *, exit_code: int = 1
) -> Result[Credentials, ReleaseError]:
    source = os.environ if env is None else env
    for name in (ACCESS_KEY_ENV, SECRET_KEY_ENV):
        if not source.get(name):
            return Err(
                ReleaseError(
                    kind="missing_credentials",
                    message=f'Environment variable "{name}" must be set',
                    exit_code=exit_code,
                )
            )
    return Ok(
        Credentials(
            access_key_id=source[ACCESS_KEY_ENV],
            secret_access_key=source[SECRET_KEY_ENV],
        )
    )


def validate_upload(
    *,
    package_path: Path,
    checksum_path: Path,
    env: Mapping[str, str] | None = None,
    exit_code: int = 1,
) -> Result[Credentials, ReleaseError]:
    """Both artifacts exist and credentials are present, before any network call."""
    for label, path in (("package", package_path), ("checksum", checksum_path)):
        if not path.is_file():
            return Err(
                ReleaseError(
                    kind="missing_file",
                    message=f'The {label} file "{path}" does not exist',
                    exit_code=exit_code,
                )
            )
    return credentials_from_env(env, exit_code=exit_code)


def key_prefix(tag: str, *, exit_code: int = 1) -> Result[str, ReleaseError]:
    """`4.2.5` -> `4.2`. The tag must be a semver version."""
    version = parse_version(tag)
    if version is None:
        return Err(
            ReleaseError(
                kind="invalid_tag",
                message=(
                    "Most recent tag must be a version of the form "
                    f"<number>.<number>.<number>. However, it was: {tag}"
                ),
                exit_code=exit_code,
            )
        )
    return Ok(version.major_minor)


def upload_artifacts(
    store: ObjectStore,
    *,
    bucket: str,
    tag: str,
    package_path: Path,
    checksum_path: Path,
    console: ConsoleProtocol,
    exit_code: int = 1,
) -> Result[UploadReceipt, ReleaseError]:
    """Upload the package, then the checksum; stop at the first failure."""
    prefix = key_prefix(tag, exit_code=exit_code)
    if isinstance(prefix, Err):
        return prefix

    package_key = f"{prefix.value}/{package_path.name}"
    checksum_key = f"{prefix.value}/{checksum_path.name}"

    for path, key in ((package_path, package_key), (checksum_path, checksum_key)):
        console.info(f"Uploading file {path} to s3://{bucket}/{key}")
        stored = store.put(bucket, key, path)
        if isinstance(stored, Err):
            return stored

    console.success(f"Uploaded release artifacts to s3://{bucket}/{prefix.value}/")
    return Ok(UploadReceipt(bucket=bucket, package_key=package_key, checksum_key=checksum_key))
