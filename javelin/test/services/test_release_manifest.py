from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta, timezone

from javelin.core.result import Err, Ok
from javelin.services.release.errors import HostRejected, MalformedExistingManifest
from javelin.services.release.hosts import InMemoryGistHost
from javelin.services.release.manifest import (
    ManifestEntry,
    ManifestReconciler,
    manifest_filename,
    render_manifest,
    updater_endpoint,
)

_WHEN = datetime(2026, 3, 1, 12, 30, 0, tzinfo=UTC)


def _entry(version: str = "0.3.3", platform: str = "darwin-aarch64") -> ManifestEntry:
    return ManifestEntry(
        version=version,
        url=f"https://github.com/octo/app/releases/download/v{version}/Demo-{platform}.app.tar.gz",
        signature="SIG",
        notes="Routine bug fixes and performance updates",
        published_at=_WHEN,
    )


def test_manifest_document_shape() -> None:
    data = json.loads(render_manifest(_entry()))

    assert data == {
        "version": "0.3.3",
        "notes": "Routine bug fixes and performance updates",
        "pub_date": "2026-03-01T12:30:00Z",
        "url": "https://github.com/octo/app/releases/download/v0.3.3/Demo-darwin-aarch64.app.tar.gz",
        "signature": "SIG",
    }


def test_pub_date_is_utc() -> None:
    entry = ManifestEntry(
        version="1.0.0",
        url="u",
        signature="s",
        notes="",
        published_at=datetime(2026, 3, 1, 14, 0, tzinfo=timezone(timedelta(hours=2))),
    )
    assert entry.to_json()["pub_date"] == "2026-03-01T12:00:00Z"


def test_names_and_endpoint() -> None:
    assert manifest_filename("app", "linux-x86_64") == "app-javelin-linux-x86_64-manifest.json"
    assert updater_endpoint("octo", "abc", "app") == (
        "https://gist.githubusercontent.com/octo/abc/raw/app-javelin-{{target}}-{{arch}}-manifest.json"
    )


def test_no_gist_creates_one_with_exactly_one_file() -> None:
    host = InMemoryGistHost()

    result = ManifestReconciler(host, repo_name="app").reconcile(None, "darwin-aarch64", _entry())

    assert result == Ok("gist0001")
    assert list(host.documents["gist0001"]) == ["app-javelin-darwin-aarch64-manifest.json"]
    assert host.calls == ["create"]
    assert "gist0001" in host.descriptions
    assert InMemoryGistHost().descriptions == {}


def test_other_platform_files_are_untouched() -> None:
    host = InMemoryGistHost()
    reconciler = ManifestReconciler(host, repo_name="app")
    created = reconciler.reconcile(None, "windows-x86_64", _entry("0.3.2", "windows-x86_64"))
    assert isinstance(created, Ok)
    gist_id = created.value
    windows_before = host.documents[gist_id]["app-javelin-windows-x86_64-manifest.json"]

    result = reconciler.reconcile(gist_id, "darwin-aarch64", _entry("0.3.3"))

    assert result == Ok(gist_id)
    document = host.documents[gist_id]
    assert document["app-javelin-windows-x86_64-manifest.json"] == windows_before
    assert json.loads(document["app-javelin-darwin-aarch64-manifest.json"])["version"] == "0.3.3"
    assert json.loads(windows_before)["version"] == "0.3.2"


def test_existing_platform_file_is_replaced() -> None:
    host = InMemoryGistHost(
        documents={"g1": {"app-javelin-linux-x86_64-manifest.json": '{"version": "0.1.0"}'}}
    )

    result = ManifestReconciler(host, repo_name="app").reconcile(
        "g1", "linux-x86_64", _entry("0.2.0", "linux-x86_64")
    )

    assert result == Ok("g1")
    stored = json.loads(host.documents["g1"]["app-javelin-linux-x86_64-manifest.json"])
    assert stored["version"] == "0.2.0"


def test_malformed_existing_manifest_is_not_overwritten() -> None:
    host = InMemoryGistHost(
        documents={"g1": {"app-javelin-darwin-aarch64-manifest.json": "not json"}}
    )

    result = ManifestReconciler(host, repo_name="app").reconcile("g1", "darwin-aarch64", _entry())

    assert isinstance(result, Err)
    assert isinstance(result.error, MalformedExistingManifest)
    assert host.documents["g1"]["app-javelin-darwin-aarch64-manifest.json"] == "not json"
    assert "update" not in host.calls


def test_json_array_manifest_is_malformed() -> None:
    host = InMemoryGistHost(documents={"g1": {"app-javelin-darwin-aarch64-manifest.json": "[]"}})

    result = ManifestReconciler(host, repo_name="app").reconcile("g1", "darwin-aarch64", _entry())

    assert isinstance(result, Err)
    assert isinstance(result.error, MalformedExistingManifest)


def test_unknown_gist_is_rejected() -> None:
    host = InMemoryGistHost()

    result = ManifestReconciler(host, repo_name="app").reconcile("nope", "darwin-aarch64", _entry())

    assert isinstance(result, Err)
    assert isinstance(result.error, HostRejected)
    assert result.error.status == 404
