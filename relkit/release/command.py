"""Run one external tool as a release step.

`run_step` is the release-level command runner: a non-zero exit becomes a
ReleaseError that embeds the command and its exit status, and carries the
captured output unless it already went to the terminal.
"""

from __future__ import annotations

import shlex
from pathlib import Path

from relkit.core.result import Err, Ok, Result
from relkit.platform.process import ProcessError, run, run_live
from relkit.release.errors import ReleaseError


def run_step(
    cmd: list[str],
    *,
    cwd: Path,
    failure_message: str | None = None,
    exit_code: int | None = None,
    echo: bool = False,
    timeout: float | None = None,
) -> Result[str, ReleaseError]:
    """Run cmd; Ok(stdout) on success.

    Args:
        cmd: Argument vector.
        cwd: Working directory.
        failure_message: Diagnostic on failure. Default names the command.
        exit_code: Exit status to report on failure. Default: the process one.
        echo: Stream output live instead of capturing it. Ok("") on success.
        timeout: Seconds before the command is killed (captured mode only).
    """
    if echo:
        live = run_live(cmd, cwd=cwd)
        if isinstance(live, Err):
            return Err(_step_error(live.error, failure_message, exit_code, echoed=True))
        return Ok("")

    result = run(cmd, cwd=cwd, timeout=timeout)
    if isinstance(result, Err):
        return Err(_step_error(result.error, failure_message, exit_code, echoed=False))
    return result


def _step_error(
    error: ProcessError,
    failure_message: str | None,
    exit_code: int | None,
    *,
    echoed: bool,
) -> ReleaseError:
    command_line = shlex.join(error.command)
    message = failure_message or f"There was an error executing command `{command_line}`"
    if exit_code is None:
        exit_code = error.returncode if 0 < error.returncode < 256 else 1

    output = error.output
    if echoed:
        # Only a start failure has anything to add to what the terminal showed
        output = error.stderr if error.returncode == -1 else ""

    return ReleaseError(
        kind="command_failed",
        message=message,
        hint=f"`{command_line}` === {error.returncode}",
        exit_code=exit_code,
        output=output or None,
    )
