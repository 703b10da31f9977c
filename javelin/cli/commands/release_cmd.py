"""Release command - bump, build, sign, publish and update the manifest."""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from pathlib import Path
from typing import NoReturn

import typer

from javelin.cli.context import CLIContext, build_context
from javelin.core.errors import ErrorCode
from javelin.core.result import Err, Ok, Result
from javelin.output.console import ConsoleProtocol, Style
from javelin.output.errors import (
    print_release_error,
    print_release_failure,
    release_error_exit_code,
)
from javelin.platform.detection import platform_key
from javelin.services.release.build import TauriBuildInvoker
from javelin.services.release.config import (
    ReleaseConfig,
    load_release_config,
    update_config_fields,
)
from javelin.services.release.errors import ConfigIncomplete, PasswordRequired, SigningError
from javelin.services.release.github import GitHubGistHost, GitHubReleaseHost
from javelin.services.release.http import RealHttpClient
from javelin.services.release.orchestrator import (
    ReleaseOrchestrator,
    ReleaseRequest,
    ReleaseServices,
    ReleaseSummary,
)
from javelin.services.release.semver import BumpKind
from javelin.services.release.signing import SigningMaterial, load_signing_material

DEFAULT_RELEASE_NOTES = "Routine bug fixes and performance updates"

type SigningLoader = Callable[[str, str | None], Result[SigningMaterial, SigningError]]

# field -> (prompt, hide input)
_FIELD_PROMPTS: dict[str, tuple[str, bool]] = {
    "hostToken": ("GitHub token (repo and gist scopes)", True),
    "repoName": ("Repository name", False),
    "hostUsername": ("GitHub username owning the repository", False),
    "signingKeyPath": ("Path to the Tauri signing private key", False),
}


class Bump(StrEnum):
    major = "major"
    minor = "minor"
    patch = "patch"
    current = "current"


def _exit(err: str, *, code: ErrorCode) -> NoReturn:
    typer.echo(f"error: {err}", err=True)
    raise typer.Exit(code=int(code))


def _bump_kind(bump: Bump) -> BumpKind | None:
    match bump:
        case Bump.major:
            return "major"
        case Bump.minor:
            return "minor"
        case Bump.patch:
            return "patch"
        case Bump.current:
            return None


def _ask_bump() -> Bump:
    typed = typer.prompt("Version bump (major/minor/patch/current)", default="patch")
    try:
        return Bump(typed.strip().lower())
    except ValueError:
        _exit(f"invalid bump: {typed}", code=ErrorCode.USER_ERROR)


def _complete_config(ctx: CLIContext) -> ReleaseConfig:
    """Load the config, prompting for and saving each missing required field."""
    while True:
        loaded = load_release_config(ctx.config_path)
        match loaded:
            case Ok(config):
                return config
            case Err(ConfigIncomplete(field=name)):
                label, secret = _FIELD_PROMPTS.get(name, (name, False))
                value = typer.prompt(label, hide_input=secret, default="", show_default=False)
                if not value.strip():
                    _exit(f"{name} is required", code=ErrorCode.USER_ERROR)
                saved = update_config_fields(ctx.config_path, {name: value.strip()})
                if isinstance(saved, Err):
                    print_release_error(saved.error, ctx.console)
                    raise typer.Exit(code=release_error_exit_code(saved.error))
            case Err(error):
                print_release_error(error, ctx.console)
                raise typer.Exit(code=release_error_exit_code(error))


def _signing_loader(config: ReleaseConfig) -> SigningLoader:
    """Ask for the key password up front when the key needs one and the config has none.

    The password stays in memory for this run; it is never written to the config.
    """
    if config.signing_key_password:
        return load_signing_material

    probe = load_signing_material(config.signing_key_path, None)
    if isinstance(probe, Ok):
        probe.value.discard()
        return load_signing_material
    if not isinstance(probe.error, PasswordRequired):
        return load_signing_material

    password = typer.prompt("Signing key password", hide_input=True)

    def load(path: str, configured: str | None) -> Result[SigningMaterial, SigningError]:
        return load_signing_material(path, configured or password)

    return load


def _make_services(
    platform_id: str | None, load_signing: SigningLoader, console: ConsoleProtocol
) -> ReleaseServices:
    http = RealHttpClient()

    def echo(line: str) -> None:
        console.print(line, Style.DIM)

    return ReleaseServices(
        platform_id=platform_id,
        release_host=lambda cfg: GitHubReleaseHost(
            http, owner=cfg.host_username, repo=cfg.repo_name, token=cfg.host_token
        ),
        manifest_host=lambda cfg: GitHubGistHost(http, token=cfg.host_token),
        builder=lambda cfg: TauriBuildInvoker(
            project_dir=cfg.project_dir,
            platform_id=platform_id or "unknown",
            on_output=echo,
        ),
        load_signing=load_signing,
    )


def _print_summary(ctx: CLIContext, summary: ReleaseSummary) -> None:
    ctx.console.newline()
    ctx.console.success(f"released {summary.tag} for {summary.platform_id}")
    ctx.console.print(f"asset: {summary.asset_url}", Style.DIM)
    ctx.console.print(f"manifest: {summary.manifest_url}", Style.DIM)
    if summary.gist_created:
        ctx.console.info("commit the updated tauri config so builds poll the new manifest")


def release(
    bump: Bump | None = typer.Option(
        None,
        "--bump",
        help="Version bump; 'current' republishes the version already set",
        show_default=False,
    ),
    notes: str | None = typer.Option(
        None, "--notes", help="Release notes / changelog", show_default=False
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Path to javelin.conf.json (default: ./javelin.conf.json or $JAVELIN_CONFIG)",
        show_default=False,
    ),
) -> None:
    """Release the app for this machine's platform."""
    ctx = build_context(config)

    release_config = _complete_config(ctx)
    if bump is None:
        bump = _ask_bump()
    if notes is None:
        notes = typer.prompt("Release notes", default=DEFAULT_RELEASE_NOTES)
    notes = notes.strip() or DEFAULT_RELEASE_NOTES

    services = _make_services(platform_key(), _signing_loader(release_config), ctx.console)
    request = ReleaseRequest(config_path=ctx.config_path, bump=_bump_kind(bump), notes=notes)

    match ReleaseOrchestrator(services, ctx.console).run(request):
        case Ok(summary):
            _print_summary(ctx, summary)
        case Err(failure):
            print_release_failure(failure, ctx.console)
            raise typer.Exit(code=release_error_exit_code(failure.cause))
