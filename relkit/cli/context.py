from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from relkit.core.config import CONFIG_FILE_NAME, Config, load_config, load_config_or_default
from relkit.core.errors import ErrorCode
from relkit.core.result import Err
from relkit.output.console import ConsoleProtocol, RichConsole

ROOT_ENV = "RELKIT_ROOT"
CONFIG_ENV = "RELKIT_CONFIG"


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    config: Config
    console: ConsoleProtocol


def build_context() -> CLIContext:
    root = Path(os.environ.get(ROOT_ENV) or Path.cwd())

    explicit = os.environ.get(CONFIG_ENV)
    if explicit:
        config_result = load_config(Path(explicit))
    else:
        config_result = load_config_or_default(root / CONFIG_FILE_NAME)

    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(
        root=root,
        config=config_result.value,
        console=RichConsole(),
    )
