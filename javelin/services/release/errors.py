"""Failure variants for the release pipeline.

Each step returns one of these inside ``Err``; ``javelin.output.errors`` turns
them into messages and exit codes.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


# Configuration / local files


@dataclass(frozen=True, slots=True)
class ConfigIncomplete:
    field: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ConfigInvalid:
    path: Path
    reason: str


@dataclass(frozen=True, slots=True)
class ProjectFileInvalid:
    path: Path
    reason: str


@dataclass(frozen=True, slots=True)
class PersistFailed:
    path: Path
    reason: str


@dataclass(frozen=True, slots=True)
class UnsupportedPlatform:
    description: str


# Signing


@dataclass(frozen=True, slots=True)
class KeyNotFound:
    path: Path


@dataclass(frozen=True, slots=True)
class KeyUnreadable:
    path: Path
    reason: str


@dataclass(frozen=True, slots=True)
class PasswordRequired:
    path: Path


# Build


@dataclass(frozen=True, slots=True)
class BuildToolMissing:
    tool: str
    hint: str = "Install the Tauri CLI: npm install --save-dev @tauri-apps/cli"


@dataclass(frozen=True, slots=True)
class BuildFailed:
    exit_code: int
    log: str


@dataclass(frozen=True, slots=True)
class ArtifactNotFound:
    path: Path
    reason: str = "missing after a successful build"


# Remote hosts


@dataclass(frozen=True, slots=True)
class ReleaseAlreadyExists:
    """create-release answered that the tag already has a release.

    Handled inside the publisher by reusing that release; never surfaced.
    """

    tag: str


@dataclass(frozen=True, slots=True)
class AssetConflict:
    """Upload rejected because the release already holds an asset of that name."""

    tag: str
    filename: str
    status: int = 422
    message: str = ""


@dataclass(frozen=True, slots=True)
class AuthFailure:
    status: int
    message: str


@dataclass(frozen=True, slots=True)
class NetworkError:
    message: str
    status: int = 0


@dataclass(frozen=True, slots=True)
class HostRejected:
    """Any other 4xx answer (bad request, unknown gist, ...)."""

    status: int
    message: str


@dataclass(frozen=True, slots=True)
class MalformedExistingManifest:
    gist_id: str
    filename: str
    reason: str


SigningError = KeyNotFound | KeyUnreadable | PasswordRequired
BuildError = BuildToolMissing | BuildFailed | ArtifactNotFound
HostError = AuthFailure | NetworkError | HostRejected
PublishError = AssetConflict | HostError
ManifestError = MalformedExistingManifest | HostError
LocalError = ConfigIncomplete | ConfigInvalid | ProjectFileInvalid | PersistFailed

ReleaseError = (
    LocalError | UnsupportedPlatform | SigningError | BuildError | PublishError | ManifestError
)
