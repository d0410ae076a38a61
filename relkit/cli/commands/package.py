from __future__ import annotations

from pathlib import Path

import typer

from relkit.cli.commands._helpers import exit_on_error
from relkit.cli.context import build_context
from relkit.release.service import package_release


def package(
    out: Path = typer.Option(Path("dist"), "--out", help="Output directory (must not exist)"),
    from_tag: str | None = typer.Option(
        None, "--from-tag", help="Version the package relative to this tag"
    ),
) -> None:
    """Package the application into a tarball with a sha1 checksum."""
    ctx = build_context()
    artifacts = exit_on_error(
        package_release(
            root=ctx.root,
            out_dir=ctx.root / out,
            config=ctx.config,
            console=ctx.console,
            from_tag=from_tag,
        ),
        ctx,
    )
    ctx.console.print(str(artifacts.package_path))
    ctx.console.print(str(artifacts.checksum_path))
