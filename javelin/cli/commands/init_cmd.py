from __future__ import annotations

from pathlib import Path

import typer

from javelin.cli.context import build_context
from javelin.core.result import Err, Ok
from javelin.output.console import Style
from javelin.output.errors import print_release_error, release_error_exit_code


def init(
    config: Path | None = typer.Option(
        None, "--config", help="Where to create javelin.conf.json", show_default=False
    ),
) -> None:
    """Create a config skeleton to fill in."""
    from javelin.services.release.config import write_default_config

    ctx = build_context(config)
    match write_default_config(ctx.config_path):
        case Ok(True):
            ctx.console.success(f"created {ctx.config_path}")
            ctx.console.print(
                "fill in hostToken, repoName, hostUsername and signingKeyPath", Style.DIM
            )
        case Ok(False):
            ctx.console.warning(f"{ctx.config_path} already exists; left unchanged")
        case Err(error):
            print_release_error(error, ctx.console)
            raise typer.Exit(code=release_error_exit_code(error))
