"""Release orchestration.

One run walks a fixed sequence of states::

    read_config -> bump_version -> persist_version -> acquire_signing
        -> build -> publish -> reconcile -> persist_gist_id -> done

The first failing state ends the run. Nothing already done is rolled back:
the bumped version stays in tauri.conf.json and a published release stays
published. Run again with ``bump=None`` to republish the version already on
disk instead of bumping twice.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

from javelin.core.result import Err, Ok, Result
from javelin.output.console import ConsoleProtocol, Style, mask_secret
from javelin.services.release.build import ArtifactBundle, BuildInvoker
from javelin.services.release.config import ReleaseConfig, load_release_config, save_gist_id
from javelin.services.release.errors import (
    ArtifactNotFound,
    ProjectFileInvalid,
    ReleaseError,
    SigningError,
    UnsupportedPlatform,
)
from javelin.services.release.fsm import (
    StepFailed,
    StepOutcome,
    advance,
    finish,
    run_state_machine,
)
from javelin.services.release.github import manifest_raw_url
from javelin.services.release.hosts import ManifestHost, ReleaseHost
from javelin.services.release.manifest import (
    ManifestEntry,
    ManifestReconciler,
    manifest_filename,
    updater_endpoint,
)
from javelin.services.release.project import (
    TauriProject,
    read_project,
    set_updater_endpoint,
    write_version,
)
from javelin.services.release.publisher import PublishedRelease, ReleaseAsset, ReleasePublisher
from javelin.services.release.semver import BumpKind, SemVer
from javelin.services.release.signing import SigningMaterial, load_signing_material

__all__ = [
    "ReleaseFailure",
    "ReleaseOrchestrator",
    "ReleaseRequest",
    "ReleaseRun",
    "ReleaseServices",
    "ReleaseState",
    "ReleaseSummary",
]

ReleaseState = Literal[
    "read_config",
    "bump_version",
    "persist_version",
    "acquire_signing",
    "build",
    "publish",
    "reconcile",
    "persist_gist_id",
    "done",
]

_STATE_LABELS: dict[str, str] = {
    "read_config": "Reading configuration",
    "bump_version": "Computing version",
    "persist_version": "Saving version",
    "acquire_signing": "Loading signing key",
    "build": "Building (this may take a while)",
    "publish": "Publishing release",
    "reconcile": "Updating manifest",
    "persist_gist_id": "Saving manifest id",
}

type ReleaseFailure = StepFailed[ReleaseError]


@dataclass(frozen=True, slots=True)
class ReleaseRequest:
    config_path: Path
    bump: BumpKind | None
    notes: str


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class ReleaseServices:
    """Collaborators of a run.

    Hosts and the builder depend on the config, which is only known once
    ``read_config`` has run, so they are given as factories.
    """

    platform_id: str | None
    release_host: Callable[[ReleaseConfig], ReleaseHost]
    manifest_host: Callable[[ReleaseConfig], ManifestHost]
    builder: Callable[[ReleaseConfig], BuildInvoker]
    now: Callable[[], datetime] = _utc_now
    load_signing: Callable[[str, str | None], Result[SigningMaterial, SigningError]] = (
        load_signing_material
    )


@dataclass(frozen=True, slots=True)
class ReleaseRun:
    """Everything a run has established so far, threaded through the states."""

    step: ReleaseState
    request: ReleaseRequest
    platform_id: str = ""
    config: ReleaseConfig | None = None
    project: TauriProject | None = None
    target: SemVer | None = None
    signing: SigningMaterial | None = None
    artifact: ArtifactBundle | None = None
    signature: str = ""
    published: PublishedRelease | None = None
    gist_id: str | None = None
    gist_created: bool = False


@dataclass(frozen=True, slots=True)
class ReleaseSummary:
    platform_id: str
    version: SemVer
    tag: str
    asset_url: str
    release_created: bool
    gist_id: str
    gist_created: bool
    manifest_url: str


def _need[T](value: T | None, name: str) -> T:
    if value is None:
        raise AssertionError(f"release run reached a state without {name}")
    return value


type _Outcome = Result[StepOutcome[ReleaseRun], ReleaseError]


class ReleaseOrchestrator:
    def __init__(self, services: ReleaseServices, console: ConsoleProtocol) -> None:
        self._services = services
        self._console = console
        self._live_signing: SigningMaterial | None = None

    def run(self, request: ReleaseRequest) -> Result[ReleaseSummary, ReleaseFailure]:
        handlers = {
            "read_config": self._read_config,
            "bump_version": self._bump_version,
            "persist_version": self._persist_version,
            "acquire_signing": self._acquire_signing,
            "build": self._build,
            "publish": self._publish,
            "reconcile": self._reconcile,
            "persist_gist_id": self._persist_gist_id,
        }
        try:
            result = run_state_machine(
                initial_state=ReleaseRun(step="read_config", request=request),
                get_step=lambda r: r.step,
                handlers=handlers,
                on_enter=self._announce,
            )
        finally:
            # Covers interrupts between acquiring the key and the build returning.
            if self._live_signing is not None:
                self._live_signing.discard()
                self._live_signing = None

        if isinstance(result, Err):
            return result
        return Ok(self._summarize(result.value))

    def _announce(self, step: str, run: ReleaseRun) -> None:
        label = _STATE_LABELS.get(step, step)
        self._console.header(label)

    # -- states -------------------------------------------------------------

    def _read_config(self, run: ReleaseRun) -> _Outcome:
        platform_id = self._services.platform_id
        if platform_id is None:
            return Err(UnsupportedPlatform(description="no updater target for this OS/arch"))

        config = load_release_config(run.request.config_path)
        if isinstance(config, Err):
            return config
        cfg = config.value

        project = read_project(cfg.tauri_config_path)
        if isinstance(project, Err):
            return project

        self._console.print(f"platform: {platform_id}", Style.DIM)
        self._console.print(f"repository: {cfg.repo_slug}", Style.DIM)
        self._console.print(f"token: {mask_secret(cfg.host_token)}", Style.DIM)
        self._console.print(f"signing key: {cfg.signing_key_path}", Style.DIM)
        self._console.print(f"manifest gist: {cfg.gist_id or '(will be created)'}", Style.DIM)
        self._console.print(
            f"product: {project.value.product_name} {project.value.version}", Style.DIM
        )

        return Ok(
            advance(
                replace(
                    run,
                    step="bump_version",
                    platform_id=platform_id,
                    config=cfg,
                    project=project.value,
                )
            )
        )

    def _bump_version(self, run: ReleaseRun) -> _Outcome:
        current = _need(run.project, "project").version
        kind = run.request.bump
        target = current if kind is None else current.bump(kind)
        if kind is None:
            self._console.info(f"republishing current version {current}")
        else:
            self._console.print(f"{current} -> {target} ({kind})")
        return Ok(advance(replace(run, step="persist_version", target=target)))

    def _persist_version(self, run: ReleaseRun) -> _Outcome:
        cfg = _need(run.config, "config")
        target = _need(run.target, "target version")
        written = write_version(cfg.tauri_config_path, target)
        if isinstance(written, Err):
            return written
        if written.value:
            self._console.success(f"version {target} saved to {cfg.tauri_config_path.name}")
        return Ok(advance(replace(run, step="acquire_signing")))

    def _acquire_signing(self, run: ReleaseRun) -> _Outcome:
        cfg = _need(run.config, "config")
        material = self._services.load_signing(cfg.signing_key_path, cfg.signing_key_password)
        if isinstance(material, Err):
            return material
        self._live_signing = material.value
        self._console.print(f"key loaded from {material.value.key_path}", Style.DIM)
        return Ok(advance(replace(run, step="build", signing=material.value)))

    def _build(self, run: ReleaseRun) -> _Outcome:
        cfg = _need(run.config, "config")
        target = _need(run.target, "target version")
        material = _need(run.signing, "signing material")

        builder = self._services.builder(cfg)
        with material:
            built = builder.build(material, target)
        self._live_signing = None
        if isinstance(built, Err):
            return built
        artifact = built.value

        try:
            signature = artifact.signature_path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as e:
            return Err(ArtifactNotFound(path=artifact.signature_path, reason=f"unreadable: {e}"))

        self._console.success(f"bundle: {artifact.bundle_path.name}")
        return Ok(
            advance(
                replace(run, step="publish", signing=None, artifact=artifact, signature=signature)
            )
        )

    def _publish(self, run: ReleaseRun) -> _Outcome:
        cfg = _need(run.config, "config")
        project = _need(run.project, "project")
        target = _need(run.target, "target version")
        artifact = _need(run.artifact, "artifact")

        try:
            data = artifact.bundle_path.read_bytes()
        except OSError as e:
            return Err(ArtifactNotFound(path=artifact.bundle_path, reason=f"unreadable: {e}"))

        asset = ReleaseAsset(
            filename=f"{project.product_name}-{run.platform_id}{artifact.extension}",
            data=data,
        )
        publisher = ReleasePublisher(self._services.release_host(cfg))
        published = publisher.publish(target.to_tag(), run.request.notes, [asset])
        if isinstance(published, Err):
            return published

        if published.value.created:
            self._console.success(f"release {target.to_tag()} created")
        else:
            self._console.info(f"release {target.to_tag()} already existed; asset appended")
        self._console.print(published.value.url, Style.DIM)
        return Ok(advance(replace(run, step="reconcile", published=published.value)))

    def _reconcile(self, run: ReleaseRun) -> _Outcome:
        cfg = _need(run.config, "config")
        target = _need(run.target, "target version")
        published = _need(run.published, "published release")

        entry = ManifestEntry(
            version=str(target),
            url=published.url,
            signature=run.signature,
            notes=run.request.notes,
            published_at=self._services.now(),
        )
        reconciler = ManifestReconciler(
            self._services.manifest_host(cfg), repo_name=cfg.repo_name
        )
        gist = reconciler.reconcile(cfg.gist_id, run.platform_id, entry)
        if isinstance(gist, Err):
            return gist

        created = not cfg.gist_id
        if created:
            self._console.success(f"manifest gist created: {gist.value}")
        else:
            self._console.success(f"manifest for {run.platform_id} updated")
        return Ok(
            advance(replace(run, step="persist_gist_id", gist_id=gist.value, gist_created=created))
        )

    def _persist_gist_id(self, run: ReleaseRun) -> _Outcome:
        cfg = _need(run.config, "config")
        gist_id = _need(run.gist_id, "gist id")

        if gist_id == cfg.gist_id:
            return Ok(finish(replace(run, step="done")))

        saved = save_gist_id(cfg.path, gist_id)
        if isinstance(saved, Err):
            return saved
        self._console.success(f"gistId saved to {cfg.path.name}")

        endpoint = updater_endpoint(cfg.host_username, gist_id, cfg.repo_name)
        pointed = set_updater_endpoint(cfg.tauri_config_path, endpoint)
        if isinstance(pointed, Err):
            if not isinstance(pointed.error, ProjectFileInvalid):
                return pointed
            self._console.warning(
                f"updater endpoint not set ({pointed.error.reason}); add it manually: {endpoint}"
            )
        else:
            self._console.success("updater endpoint written to tauri config")

        return Ok(finish(replace(run, step="done", config=cfg.with_gist_id(gist_id))))

    # -- result -------------------------------------------------------------

    def _summarize(self, run: ReleaseRun) -> ReleaseSummary:
        cfg = _need(run.config, "config")
        target = _need(run.target, "target version")
        published = _need(run.published, "published release")
        gist_id = _need(run.gist_id, "gist id")
        return ReleaseSummary(
            platform_id=run.platform_id,
            version=target,
            tag=target.to_tag(),
            asset_url=published.url,
            release_created=published.created,
            gist_id=gist_id,
            gist_created=run.gist_created,
            manifest_url=manifest_raw_url(
                cfg.host_username, gist_id, manifest_filename(cfg.repo_name, run.platform_id)
            ),
        )
