from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from javelin.core.result import Err, Ok, Result
from javelin.services.release.errors import HostRejected, PublishError, ReleaseAlreadyExists
from javelin.services.release.hosts import HostedRelease, ReleaseHost


@dataclass(frozen=True, slots=True)
class ReleaseAsset:
    filename: str
    data: bytes


@dataclass(frozen=True, slots=True)
class ReleaseEntry:
    tag: str
    description: str
    assets: tuple[ReleaseAsset, ...]


@dataclass(frozen=True, slots=True)
class PublishedRelease:
    tag: str
    created: bool
    asset_urls: tuple[str, ...]

    @property
    def url(self) -> str:
        """Download URL of the first (primary) asset."""
        return self.asset_urls[0]


class ReleasePublisher:
    """Create-or-reuse a release for a tag and attach assets to it.

    A tag that already has a release (typically another platform's run of the
    same version) is reused, not an error. Uploading a filename that the
    release already holds fails with AssetConflict; existing assets are never
    deleted or overwritten. Every write is attempted once.
    """

    def __init__(self, host: ReleaseHost) -> None:
        self._host = host

    def _obtain_release(
        self, tag: str, description: str
    ) -> Result[tuple[HostedRelease, bool], PublishError]:
        existing = self._host.get_release_by_tag(tag)
        if isinstance(existing, Err):
            return existing
        if existing.value is not None:
            return Ok((existing.value, False))

        created = self._host.create_release(tag, description)
        if isinstance(created, Ok):
            return Ok((created.value, True))

        error = created.error
        if not isinstance(error, ReleaseAlreadyExists):
            return Err(error)

        # Another run created it between our read and our write.
        again = self._host.get_release_by_tag(tag)
        if isinstance(again, Err):
            return again
        if again.value is None:
            return Err(
                HostRejected(status=422, message=f"release {tag} reported existing but not found")
            )
        return Ok((again.value, False))

    def publish(
        self, tag: str, description: str, assets: Sequence[ReleaseAsset]
    ) -> Result[PublishedRelease, PublishError]:
        if not assets:
            raise ValueError("publish requires at least one asset")

        obtained = self._obtain_release(tag, description)
        if isinstance(obtained, Err):
            return obtained
        release, created = obtained.value

        urls: list[str] = []
        for asset in assets:
            uploaded = self._host.upload_asset(release, asset.filename, asset.data)
            if isinstance(uploaded, Err):
                return uploaded
            urls.append(uploaded.value)

        return Ok(PublishedRelease(tag=tag, created=created, asset_urls=tuple(urls)))

    def publish_entry(self, entry: ReleaseEntry) -> Result[PublishedRelease, PublishError]:
        return self.publish(entry.tag, entry.description, entry.assets)
