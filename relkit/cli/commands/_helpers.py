"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from relkit.core.errors import ErrorCode
from relkit.core.result import Err, Result
from relkit.output.console import Style
from relkit.release.errors import ReleaseError

if TYPE_CHECKING:
    from relkit.cli.context import CLIContext


def exit_on_error[T](result: Result[T, ReleaseError], ctx: CLIContext) -> T:
    """Return the Ok value, or report the error and exit with its code.

    The message goes first, then the hint, then any captured command output.
    """
    if isinstance(result, Err):
        error = result.error
        ctx.console.error(error.message)
        if error.hint:
            ctx.console.print(f"hint: {error.hint}", Style.DIM)
        if error.output:
            ctx.console.dump(error.output)
        raise typer.Exit(code=error.exit_code)
    return result.value


def exit_with_message(message: str, *, code: ErrorCode) -> NoReturn:
    typer.echo(f"error: {message}", err=True)
    raise typer.Exit(code=int(code))
