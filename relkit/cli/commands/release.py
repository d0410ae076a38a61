from __future__ import annotations

from pathlib import Path

import typer

from relkit.cli.commands._helpers import exit_on_error
from relkit.cli.commands.upload import resolve_bucket
from relkit.cli.context import build_context
from relkit.release.service import finalize_release, prepare_release, ship_release


def release(
    version: str = typer.Argument(..., help="Target version, e.g. 3.3.0"),
    skip_tests: bool = typer.Option(False, "--skip-tests", help="Do not run the unit tests"),
) -> None:
    """Bump, freeze, commit, tag and push a new version."""
    ctx = build_context()
    prepared = exit_on_error(
        prepare_release(
            root=ctx.root,
            version=version,
            config=ctx.config.release,
            console=ctx.console,
            run_tests=not skip_tests,
        ),
        ctx,
    )
    ctx.console.success(f"Tagged {prepared.target.tag} on {prepared.branch}")


def finalize(
    version: str = typer.Argument(..., help="Version that was just released"),
) -> None:
    """Remove the lockfile from version control after a release."""
    ctx = build_context()
    exit_on_error(
        finalize_release(
            root=ctx.root,
            version=version,
            config=ctx.config.release,
            console=ctx.console,
        ),
        ctx,
    )


def ship(
    version: str = typer.Argument(..., help="Target version, e.g. 3.3.0"),
    out: Path = typer.Option(Path("dist"), "--out", help="Output directory"),
    bucket: str | None = typer.Option(None, "--bucket", help="Destination bucket"),
    skip_tests: bool = typer.Option(False, "--skip-tests", help="Do not run the unit tests"),
) -> None:
    """Release, package, upload and finalize in one go."""
    ctx = build_context()
    target_bucket = resolve_bucket(bucket, ctx)
    shipped = exit_on_error(
        ship_release(
            root=ctx.root,
            version=version,
            out_dir=ctx.root / out,
            bucket=target_bucket,
            config=ctx.config,
            console=ctx.console,
            run_tests=not skip_tests,
        ),
        ctx,
    )
    ctx.console.print(str(shipped.artifacts.package_path))
