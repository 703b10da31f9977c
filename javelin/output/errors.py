"""Error presentation utilities.

Centralized error formatting and exit code mapping for release failures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from javelin.core.errors import ErrorCode
from javelin.services.release.errors import (
    ArtifactNotFound,
    AssetConflict,
    AuthFailure,
    BuildFailed,
    BuildToolMissing,
    ConfigIncomplete,
    ConfigInvalid,
    HostRejected,
    KeyNotFound,
    KeyUnreadable,
    MalformedExistingManifest,
    NetworkError,
    PasswordRequired,
    PersistFailed,
    ProjectFileInvalid,
    ReleaseError,
    UnsupportedPlatform,
)

if TYPE_CHECKING:
    from javelin.output.console import ConsoleProtocol
    from javelin.services.release.orchestrator import ReleaseFailure

__all__ = ["print_release_error", "print_release_failure", "release_error_exit_code"]


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    """Print a release error to console with appropriate formatting."""
    match error:
        case ConfigIncomplete(field=name, path=path):
            where = f" in {path}" if path is not None else ""
            console.error(f"config field '{name}' is missing{where}")
        case ConfigInvalid(path=path, reason=reason):
            console.error(f"invalid config: {path} ({reason})")
        case ProjectFileInvalid(path=path, reason=reason):
            console.error(f"invalid Tauri config: {path} ({reason})")
        case PersistFailed(path=path, reason=reason):
            console.error(f"could not write {path}: {reason}")
        case UnsupportedPlatform(description=description):
            console.error(f"unsupported platform: {description}")
        case KeyNotFound(path=path):
            console.error(f"signing key not found: {path}")
            console.detail("hint: set signingKeyPath in the config")
        case KeyUnreadable(path=path, reason=reason):
            console.error(f"signing key unreadable: {path} ({reason})")
        case PasswordRequired(path=path):
            console.error(f"signing key {path} is encrypted and no password was given")
            console.detail("hint: set signingKeyPassword in the config")
        case BuildToolMissing(tool=tool, hint=hint):
            console.error(f"{tool}: missing")
            console.detail(f"hint: {hint}")
        case BuildFailed(exit_code=rc, log=log):
            console.error(f"build failed (exit {rc})")
            if log:
                console.detail(log)
        case ArtifactNotFound(path=path, reason=reason):
            console.error(f"build artifact not found: {path} ({reason})")
        case AssetConflict(tag=tag, filename=filename, message=message):
            console.error(f"release {tag} already has an asset named {filename}")
            if message:
                console.detail(message)
            console.detail("hint: delete the asset on the host, or release a new version")
        case AuthFailure(status=status, message=message):
            console.error(f"host rejected the token (HTTP {status}): {message}")
            console.detail("hint: check hostToken and its repo/gist scopes")
        case NetworkError(message=message):
            console.error(f"network error: {message}")
        case HostRejected(status=status, message=message):
            console.error(f"host rejected the request (HTTP {status}): {message}")
        case MalformedExistingManifest(gist_id=gist_id, filename=filename, reason=reason):
            console.error(f"manifest {filename} in gist {gist_id} is malformed: {reason}")
            console.detail("hint: fix or delete that file in the gist, then retry")


def print_release_failure(failure: ReleaseFailure, console: ConsoleProtocol) -> None:
    print_release_error(failure.cause, console)
    console.detail(f"release stopped at: {failure.state}")


def release_error_exit_code(error: ReleaseError) -> int:
    """Get exit code for a release error."""
    match error:
        case ConfigIncomplete() | ConfigInvalid():
            return int(ErrorCode.USER_ERROR)
        case UnsupportedPlatform() | BuildToolMissing():
            return int(ErrorCode.ENV_ERROR)
        case KeyNotFound() | KeyUnreadable() | PasswordRequired():
            return int(ErrorCode.ENV_ERROR)
        case BuildFailed() | ArtifactNotFound():
            return int(ErrorCode.BUILD_ERROR)
        case NetworkError():
            return int(ErrorCode.NETWORK_ERROR)
        case ProjectFileInvalid() | PersistFailed():
            return int(ErrorCode.IO_ERROR)
        case AssetConflict() | MalformedExistingManifest() | HostRejected():
            return int(ErrorCode.REMOTE_CONFLICT)
        case AuthFailure():
            return int(ErrorCode.AUTH_ERROR)
