"""Drive ``tauri build`` and collect the updater bundle it produces.

The build runs exactly once per release. Rebuilding without a code change
does not fix a failed build, so there is no retry.
"""

from __future__ import annotations

import os
import shutil
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from javelin.core.result import Err, Ok, Result
from javelin.platform.process import run as run_process
from javelin.services.release.errors import (
    ArtifactNotFound,
    BuildError,
    BuildFailed,
    BuildToolMissing,
)
from javelin.services.release.semver import SemVer
from javelin.services.release.signing import SigningMaterial

__all__ = [
    "ArtifactBundle",
    "BuildInvoker",
    "TauriBuildInvoker",
    "bundle_location",
    "default_build_command",
]

BUILD_LOG_TAIL_LINES = 40

# Allowance for coarse filesystem timestamps when deciding what this build wrote.
_MTIME_SLACK_SECONDS = 2.0


@dataclass(frozen=True, slots=True)
class ArtifactBundle:
    platform_id: str
    bundle_path: Path
    signature_path: Path

    @property
    def extension(self) -> str:
        """Full bundle suffix, e.g. ``.app.tar.gz`` or ``.msi.zip``."""
        name = self.bundle_path.name
        for suffix in (".app.tar.gz", ".AppImage.tar.gz", ".msi.zip", ".nsis.zip"):
            if name.endswith(suffix):
                return suffix
        return "".join(self.bundle_path.suffixes)


class BuildInvoker(Protocol):
    def build(
        self, signing: SigningMaterial, target_version: SemVer
    ) -> Result[ArtifactBundle, BuildError]: ...


def default_build_command(platform_id: str) -> list[str]:
    if platform_id.startswith("windows"):
        return ["cmd", "/C", "npm run tauri build"]
    return ["tauri", "build"]


def bundle_location(platform_id: str) -> tuple[str, str]:
    """Bundle subdirectory and glob pattern of the updater artifact for a platform."""
    if platform_id.startswith("darwin"):
        return ("macos", "*.app.tar.gz")
    if platform_id.startswith("windows"):
        return ("msi", "*.msi.zip")
    return ("appimage", "*.AppImage.tar.gz")


def _log_tail(output: str) -> str:
    lines = output.strip().splitlines()
    return "\n".join(lines[-BUILD_LOG_TAIL_LINES:])


class TauriBuildInvoker:
    """Runs the Tauri CLI in the project directory with the signing key injected."""

    def __init__(
        self,
        *,
        project_dir: Path,
        platform_id: str,
        command: Sequence[str] | None = None,
        clock: Callable[[], float] = time.time,
        on_output: Callable[[str], None] | None = None,
    ) -> None:
        self.project_dir = project_dir
        self.platform_id = platform_id
        self.command = list(command) if command else default_build_command(platform_id)
        self._clock = clock
        self._on_output = on_output

    @property
    def bundle_root(self) -> Path:
        return self.project_dir / "src-tauri" / "target" / "release" / "bundle"

    def build(
        self, signing: SigningMaterial, target_version: SemVer
    ) -> Result[ArtifactBundle, BuildError]:
        tool = self.command[0]
        if shutil.which(tool) is None:
            return Err(BuildToolMissing(tool=tool))

        env = dict(os.environ)
        env.update(signing.build_env())

        started = self._clock()
        result = run_process(
            self.command, cwd=self.project_dir, env=env, on_line=self._on_output
        )
        # Drop our reference to the key-bearing mapping as soon as the child exits.
        env.clear()
        if isinstance(result, Err):
            error = result.error
            return Err(
                BuildFailed(exit_code=error.returncode, log=_log_tail(error.output))
            )

        return self.locate(since=started, version=target_version)

    def locate(
        self, *, since: float, version: SemVer | None = None
    ) -> Result[ArtifactBundle, ArtifactNotFound]:
        """Find the single bundle (and its .sig) written at or after since.

        When several fresh bundles exist, those naming version win.
        """
        subdir, pattern = bundle_location(self.platform_id)
        directory = self.bundle_root / subdir
        if not directory.is_dir():
            return Err(ArtifactNotFound(path=directory))

        fresh = [
            p
            for p in sorted(directory.glob(pattern))
            if p.is_file() and p.stat().st_mtime >= since - _MTIME_SLACK_SECONDS
        ]
        if not fresh:
            return Err(ArtifactNotFound(path=directory / pattern))
        if len(fresh) > 1 and version is not None:
            versioned = [p for p in fresh if f"_{version}_" in p.name]
            if versioned:
                fresh = versioned
        if len(fresh) > 1:
            names = ", ".join(p.name for p in fresh)
            return Err(
                ArtifactNotFound(
                    path=directory / pattern,
                    reason=f"expected exactly one bundle, found {len(fresh)}: {names}",
                )
            )

        bundle = fresh[0]
        signature = bundle.with_name(bundle.name + ".sig")
        if not signature.is_file():
            return Err(ArtifactNotFound(path=signature))

        return Ok(
            ArtifactBundle(
                platform_id=self.platform_id,
                bundle_path=bundle,
                signature_path=signature,
            )
        )
