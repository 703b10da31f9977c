from __future__ import annotations

import pytest

from javelin.core.result import Err, Ok, Result
from javelin.services.release.errors import AssetConflict, AuthFailure, HostError, NetworkError
from javelin.services.release.hosts import HostedRelease, InMemoryReleaseHost
from javelin.services.release.publisher import ReleaseAsset, ReleaseEntry, ReleasePublisher


def test_first_publish_creates_release() -> None:
    host = InMemoryReleaseHost()
    publisher = ReleasePublisher(host)

    result = publisher.publish("v0.3.3", "notes", [ReleaseAsset("Demo-linux-x86_64.AppImage.tar.gz", b"a")])

    assert isinstance(result, Ok)
    assert result.value.created is True
    assert result.value.url == (
        "https://github.com/octo/app/releases/download/v0.3.3/Demo-linux-x86_64.AppImage.tar.gz"
    )
    assert host.releases["v0.3.3"].body == "notes"


def test_second_platform_reuses_release() -> None:
    host = InMemoryReleaseHost()
    publisher = ReleasePublisher(host)

    first = publisher.publish("v0.3.3", "notes", [ReleaseAsset("Demo-darwin-aarch64.app.tar.gz", b"a")])
    second = publisher.publish("v0.3.3", "notes", [ReleaseAsset("Demo-windows-x86_64.msi.zip", b"b")])

    assert isinstance(first, Ok) and first.value.created
    assert isinstance(second, Ok) and not second.value.created
    assert set(host.releases["v0.3.3"].assets) == {
        "Demo-darwin-aarch64.app.tar.gz",
        "Demo-windows-x86_64.msi.zip",
    }
    assert len(host.releases) == 1


def test_same_filename_twice_is_asset_conflict() -> None:
    host = InMemoryReleaseHost()
    publisher = ReleasePublisher(host)
    asset = ReleaseAsset("Demo-darwin-aarch64.app.tar.gz", b"a")

    assert isinstance(publisher.publish("v0.3.3", "notes", [asset]), Ok)
    result = publisher.publish("v0.3.3", "notes", [ReleaseAsset(asset.filename, b"other")])

    assert isinstance(result, Err)
    assert isinstance(result.error, AssetConflict)
    assert result.error.filename == asset.filename
    assert host.releases["v0.3.3"].assets[asset.filename] == b"a"


def test_create_race_falls_back_to_existing_release() -> None:
    host = InMemoryReleaseHost()
    publisher = ReleasePublisher(host)
    # Another platform's run created the tag between our lookup and our create.
    host.create_release("v0.3.3", "other run")
    original_get = host.get_release_by_tag
    lookups = {"n": 0}

    def stale_then_fresh(tag: str) -> Result[HostedRelease | None, HostError]:
        lookups["n"] += 1
        if lookups["n"] == 1:
            return Ok(None)
        return original_get(tag)

    host.get_release_by_tag = stale_then_fresh  # type: ignore[method-assign]

    result = publisher.publish("v0.3.3", "notes", [ReleaseAsset("x.zip", b"x")])

    assert isinstance(result, Ok)
    assert result.value.created is False
    assert host.releases["v0.3.3"].body == "other run"


def test_host_errors_propagate_without_retry() -> None:
    host = InMemoryReleaseHost(fail={"create": NetworkError(message="reset")})
    publisher = ReleasePublisher(host)

    result = publisher.publish("v0.3.3", "notes", [ReleaseAsset("x.zip", b"x")])

    assert result == Err(NetworkError(message="reset"))
    assert host.calls == ["get", "create"]


def test_auth_failure_on_upload() -> None:
    host = InMemoryReleaseHost(fail={"upload": AuthFailure(status=403, message="forbidden")})

    result = ReleasePublisher(host).publish_entry(
        ReleaseEntry(tag="v1.0.0", description="", assets=(ReleaseAsset("x.zip", b"x"),))
    )

    assert result == Err(AuthFailure(status=403, message="forbidden"))


def test_publish_requires_assets() -> None:
    with pytest.raises(ValueError):
        ReleasePublisher(InMemoryReleaseHost()).publish("v1.0.0", "", [])
