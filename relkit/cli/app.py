from __future__ import annotations

import os
from pathlib import Path

import typer

from relkit import __version__
from relkit.cli.commands.package import package
from relkit.cli.commands.release import finalize, release, ship
from relkit.cli.commands.upload import upload
from relkit.cli.commands.validate import describe_cmd, validate
from relkit.cli.context import CONFIG_ENV, ROOT_ENV
from relkit.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(validate)
app.command("describe")(describe_cmd)
app.command()(release)
app.command()(package)
app.command()(upload)
app.command()(finalize)
app.command()(ship)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    root: Path | None = typer.Option(
        None,
        "--root",
        help="Application directory (default: current directory)",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Path to release.toml (default: <root>/release.toml if present)",
    ),
) -> None:
    if root is not None:
        try:
            resolved = root.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --root: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not resolved.is_dir():
            typer.echo(f"error: --root '{resolved}' is not a directory", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        os.environ[ROOT_ENV] = str(resolved)

    if config is not None:
        os.environ[CONFIG_ENV] = str(config.expanduser().resolve())


def main() -> None:
    app()
