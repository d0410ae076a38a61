from __future__ import annotations

from pathlib import Path

import typer

from relkit.cli.commands._helpers import exit_on_error, exit_with_message
from relkit.cli.context import CLIContext, build_context
from relkit.core.errors import ErrorCode
from relkit.release.package import CHECKSUM_SUFFIX
from relkit.release.service import upload_release


def resolve_bucket(bucket: str | None, ctx: CLIContext) -> str:
    resolved = bucket or ctx.config.upload.bucket
    if not resolved:
        exit_with_message(
            "no bucket given (use --bucket or set [upload].bucket in release.toml)",
            code=ErrorCode.USER_ERROR,
        )
    return resolved


def upload(
    package_path: Path = typer.Argument(..., help="Package tarball to upload"),
    checksum: Path | None = typer.Option(
        None, "--checksum", help=f"Checksum file (default: <package>{CHECKSUM_SUFFIX})"
    ),
    bucket: str | None = typer.Option(None, "--bucket", help="Destination bucket"),
) -> None:
    """Upload a package and its checksum under <major>.<minor>/."""
    ctx = build_context()
    target_bucket = resolve_bucket(bucket, ctx)

    package_file = ctx.root / package_path
    checksum_file = (
        ctx.root / checksum
        if checksum is not None
        else package_file.with_name(package_file.name + CHECKSUM_SUFFIX)
    )

    receipt = exit_on_error(
        upload_release(
            root=ctx.root,
            package_path=package_file,
            checksum_path=checksum_file,
            bucket=target_bucket,
            config=ctx.config,
            console=ctx.console,
        ),
        ctx,
    )
    ctx.console.print(f"s3://{receipt.bucket}/{receipt.package_key}")
    ctx.console.print(f"s3://{receipt.bucket}/{receipt.checksum_key}")
