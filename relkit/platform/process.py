"""The one place where relkit starts external programs.

Commands are argument vectors, never shell strings, so tag names and paths
need no quoting. A process that cannot be started (missing tool, timeout) is
reported with returncode -1.

Usage:
    match run(["git", "describe", "--always", "--tags"], cwd=Path(".")):
        case Ok(stdout):
            print(stdout.strip())
        case Err(error):
            print(f"{error.command_line} === {error.returncode}")
"""

from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path

from relkit.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run", "run_live"]

_NOT_STARTED = -1


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that exited non-zero or never ran.

    Attributes:
        command: Argument vector as executed.
        returncode: Exit status, -1 when the process never started.
        stdout: Captured standard output ("" when not captured).
        stderr: Captured standard error, or why the process did not start.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        head = " ".join(self.command[:3])
        if len(self.command) > 3:
            head += " ..."
        return f"{head} failed (exit {self.returncode})"

    @property
    def command_line(self) -> str:
        """The full command, quoted the way a shell would need it."""
        return shlex.join(self.command)

    @property
    def output(self) -> str:
        """Captured stdout and stderr, in that order, for diagnostics."""
        parts = [p.rstrip("\n") for p in (self.stdout, self.stderr) if p.strip()]
        return "\n".join(parts)


def _not_started(cmd: list[str], reason: str, stdout: str = "") -> Err[ProcessError]:
    return Err(ProcessError(tuple(cmd), _NOT_STARTED, stdout, reason))


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run cmd with output captured; Ok(stdout) when it exits 0.

    Args:
        cmd: Argument vector.
        cwd: Working directory.
        env: Full environment for the child (inherit when None).
        timeout: Seconds before the child is killed (no limit when None).
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return _not_started(cmd, f"Command timed out after {timeout}s", partial)
    except OSError as e:
        return _not_started(cmd, str(e))

    if proc.returncode != 0:
        return Err(ProcessError(tuple(cmd), proc.returncode, proc.stdout, proc.stderr))
    return Ok(proc.stdout)


def run_live(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
) -> Result[None, ProcessError]:
    """Run cmd with its output going straight to the terminal.

    Nothing is captured, so a failure carries only the exit status.
    """
    try:
        proc = subprocess.run(cmd, cwd=str(cwd), env=env, check=False)
    except OSError as e:
        return _not_started(cmd, str(e))

    if proc.returncode != 0:
        return Err(ProcessError(tuple(cmd), proc.returncode, "", ""))
    return Ok(None)
