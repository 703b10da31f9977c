"""Capabilities of the two remote services a release talks to.

``ReleaseHost`` stores tagged releases and their assets; ``ManifestHost``
stores the multi-file update-manifest document. ``javelin.services.release.github``
implements both against GitHub; the in-memory variants here back the tests.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

from javelin.core.result import Err, Ok, Result
from javelin.services.release.errors import (
    AssetConflict,
    HostError,
    HostRejected,
    PublishError,
    ReleaseAlreadyExists,
)

__all__ = [
    "HostedRelease",
    "InMemoryGistHost",
    "InMemoryReleaseHost",
    "ManifestHost",
    "ReleaseHost",
]


@dataclass(frozen=True, slots=True)
class HostedRelease:
    id: int
    tag: str
    upload_url: str
    asset_names: tuple[str, ...] = ()


class ReleaseHost(Protocol):
    def get_release_by_tag(self, tag: str) -> Result[HostedRelease | None, HostError]:
        """Ok(None) when the tag has no release."""
        ...

    def create_release(
        self, tag: str, body: str
    ) -> Result[HostedRelease, ReleaseAlreadyExists | HostError]: ...

    def upload_asset(
        self, release: HostedRelease, filename: str, data: bytes
    ) -> Result[str, PublishError]:
        """Upload data as filename and return its public download URL."""
        ...


class ManifestHost(Protocol):
    def create_document(
        self, description: str, files: Mapping[str, str]
    ) -> Result[str, HostError]:
        """Create a document and return its id."""
        ...

    def get_document(self, document_id: str) -> Result[dict[str, str], HostError]: ...

    def update_document(
        self, document_id: str, files: Mapping[str, str]
    ) -> Result[None, HostError]:
        """Create or replace the given files; files not named are left as they are."""
        ...


# -----------------------------------------------------------------------------
# In-memory hosts
# -----------------------------------------------------------------------------


@dataclass
class _StoredRelease:
    id: int
    tag: str
    body: str
    assets: dict[str, bytes]


def _no_releases() -> dict[str, _StoredRelease]:
    return {}


def _no_failures() -> dict[str, HostError]:
    return {}


def _no_calls() -> list[str]:
    return []


@dataclass
class InMemoryReleaseHost:
    """Release host kept in a dict.

    ``fail[operation] = error`` makes the next call of that operation
    (``get``, ``create``, ``upload``) fail once with error.
    """

    owner: str = "octo"
    repo: str = "app"
    releases: dict[str, _StoredRelease] = field(default_factory=_no_releases)
    fail: dict[str, HostError] = field(default_factory=_no_failures)
    calls: list[str] = field(default_factory=_no_calls)

    def _take_failure(self, operation: str) -> HostError | None:
        self.calls.append(operation)
        return self.fail.pop(operation, None)

    def _view(self, stored: _StoredRelease) -> HostedRelease:
        return HostedRelease(
            id=stored.id,
            tag=stored.tag,
            upload_url=f"memory://{self.owner}/{self.repo}/releases/{stored.id}/assets",
            asset_names=tuple(stored.assets),
        )

    def get_release_by_tag(self, tag: str) -> Result[HostedRelease | None, HostError]:
        failure = self._take_failure("get")
        if failure is not None:
            return Err(failure)
        stored = self.releases.get(tag)
        return Ok(self._view(stored) if stored is not None else None)

    def create_release(
        self, tag: str, body: str
    ) -> Result[HostedRelease, ReleaseAlreadyExists | HostError]:
        failure = self._take_failure("create")
        if failure is not None:
            return Err(failure)
        if tag in self.releases:
            return Err(ReleaseAlreadyExists(tag=tag))
        stored = _StoredRelease(id=len(self.releases) + 1, tag=tag, body=body, assets={})
        self.releases[tag] = stored
        return Ok(self._view(stored))

    def upload_asset(
        self, release: HostedRelease, filename: str, data: bytes
    ) -> Result[str, PublishError]:
        failure = self._take_failure("upload")
        if failure is not None:
            return Err(failure)
        stored = self.releases.get(release.tag)
        if stored is None:
            return Err(HostRejected(status=404, message=f"no release {release.tag}"))
        if filename in stored.assets:
            return Err(
                AssetConflict(
                    tag=release.tag,
                    filename=filename,
                    message="Validation Failed: already_exists",
                )
            )
        stored.assets[filename] = data
        return Ok(
            f"https://github.com/{self.owner}/{self.repo}/releases/download/{release.tag}/{filename}"
        )


def _no_documents() -> dict[str, dict[str, str]]:
    return {}


def _no_descriptions() -> dict[str, str]:
    return {}


@dataclass
class InMemoryGistHost:
    """Manifest host kept in a dict; same ``fail`` hook as InMemoryReleaseHost
    with operations ``create``, ``get`` and ``update``."""

    documents: dict[str, dict[str, str]] = field(default_factory=_no_documents)
    descriptions: dict[str, str] = field(default_factory=_no_descriptions)
    fail: dict[str, HostError] = field(default_factory=_no_failures)
    calls: list[str] = field(default_factory=_no_calls)

    def _take_failure(self, operation: str) -> HostError | None:
        self.calls.append(operation)
        return self.fail.pop(operation, None)

    def create_document(
        self, description: str, files: Mapping[str, str]
    ) -> Result[str, HostError]:
        failure = self._take_failure("create")
        if failure is not None:
            return Err(failure)
        document_id = f"gist{len(self.documents) + 1:04d}"
        self.documents[document_id] = dict(files)
        self.descriptions[document_id] = description
        return Ok(document_id)

    def get_document(self, document_id: str) -> Result[dict[str, str], HostError]:
        failure = self._take_failure("get")
        if failure is not None:
            return Err(failure)
        document = self.documents.get(document_id)
        if document is None:
            return Err(HostRejected(status=404, message=f"gist {document_id} not found"))
        return Ok(dict(document))

    def update_document(
        self, document_id: str, files: Mapping[str, str]
    ) -> Result[None, HostError]:
        failure = self._take_failure("update")
        if failure is not None:
            return Err(failure)
        document = self.documents.get(document_id)
        if document is None:
            return Err(HostRejected(status=404, message=f"gist {document_id} not found"))
        document.update(files)
        return Ok(None)
