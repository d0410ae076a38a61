from __future__ import annotations

import typer

from relkit.cli.commands._helpers import exit_on_error
from relkit.cli.context import build_context
from relkit.git.repository import Repository
from relkit.release.describe import describe, git_version
from relkit.release.validation import validate_repository


def validate(
    remote: str | None = typer.Option(None, "--remote", help="Remote to compare against"),
) -> None:
    """Check the repository is clean, on a branch and in sync with its remote."""
    ctx = build_context()
    state = exit_on_error(
        validate_repository(
            Repository(ctx.root),
            remote=remote or ctx.config.release.remote,
            console=ctx.console,
            exit_code=ctx.config.release.exit_code,
        ),
        ctx,
    )
    ctx.console.print(state.remote_ref)


def describe_cmd(
    from_tag: str | None = typer.Option(
        None, "--from-tag", help="Describe relative to this tag only"
    ),
    tag_only: bool = typer.Option(False, "--tag", help="Print the resolved tag only"),
) -> None:
    """Print the version git describes HEAD as."""
    ctx = build_context()
    repo = Repository(ctx.root)
    exit_code = ctx.config.release.exit_code

    if tag_only:
        descriptor = exit_on_error(
            describe(repo, from_tag=from_tag, exit_code=exit_code),
            ctx,
        )
        ctx.console.print(descriptor.tag)
        return

    version = exit_on_error(
        git_version(repo, console=ctx.console, from_tag=from_tag, exit_code=exit_code),
        ctx,
    )
    ctx.console.print(version)
