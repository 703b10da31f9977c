from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from javelin.core.errors import ErrorCode
from javelin.output.console import ConsoleProtocol, RichConsole
from javelin.services.release.config import CONFIG_FILENAME

CONFIG_ENV_VAR = "JAVELIN_CONFIG"


@dataclass(frozen=True, slots=True)
class CLIContext:
    config_path: Path
    console: ConsoleProtocol


def resolve_config_path(config: Path | None) -> Path:
    """--config, then $JAVELIN_CONFIG, then javelin.conf.json in the working directory."""
    if config is None:
        from_env = os.environ.get(CONFIG_ENV_VAR, "").strip()
        config = Path(from_env) if from_env else Path(CONFIG_FILENAME)
    try:
        return config.expanduser().resolve()
    except OSError as e:
        typer.echo(f"error: invalid config path: {e}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))


def build_context(config: Path | None = None) -> CLIContext:
    return CLIContext(config_path=resolve_config_path(config), console=RichConsole())
