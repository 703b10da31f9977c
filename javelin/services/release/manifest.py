"""Per-platform update manifests stored as files of one gist.

Each platform owns exactly one file in the gist. Reconciling a platform
replaces that file wholesale and sends nothing else, so a release on one
platform can never move the version another platform advertises. Platforms
may therefore advertise different versions; that skew is accepted.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime

from javelin.core.result import Err, Ok, Result
from javelin.core.structured import as_str_dict
from javelin.services.release.errors import ManifestError, MalformedExistingManifest
from javelin.services.release.github import manifest_raw_url
from javelin.services.release.hosts import ManifestHost

PUB_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


@dataclass(frozen=True, slots=True)
class ManifestEntry:
    version: str
    url: str
    signature: str
    notes: str
    published_at: datetime

    def to_json(self) -> dict[str, str]:
        return {
            "version": self.version,
            "notes": self.notes,
            "pub_date": self.published_at.astimezone(UTC).strftime(PUB_DATE_FORMAT),
            "url": self.url,
            "signature": self.signature,
        }


def render_manifest(entry: ManifestEntry) -> str:
    return json.dumps(entry.to_json(), indent=2, ensure_ascii=False) + "\n"


def manifest_filename(repo_name: str, platform_id: str) -> str:
    return f"{repo_name}-javelin-{platform_id}-manifest.json"


def updater_endpoint(username: str, gist_id: str, repo_name: str) -> str:
    """Updater URL for tauri.conf.json; Tauri fills in {{target}} and {{arch}} per install."""
    return manifest_raw_url(username, gist_id, manifest_filename(repo_name, "{{target}}-{{arch}}"))


class ManifestReconciler:
    def __init__(self, host: ManifestHost, *, repo_name: str) -> None:
        self._host = host
        self.repo_name = repo_name

    def reconcile(
        self,
        existing_gist_id: str | None,
        platform_id: str,
        entry: ManifestEntry,
    ) -> Result[str, ManifestError]:
        """Publish entry as platform_id's manifest and return the gist id.

        Without an existing gist a new one holding only this platform's file
        is created. With one, the current document is fetched first; if this
        platform's file exists but is not a JSON object the run stops with
        MalformedExistingManifest before anything is written.
        """
        filename = manifest_filename(self.repo_name, platform_id)
        content = render_manifest(entry)

        if not existing_gist_id:
            return self._host.create_document(
                f"{self.repo_name} update manifests (javelin)", {filename: content}
            )

        document = self._host.get_document(existing_gist_id)
        if isinstance(document, Err):
            return document

        current = document.value.get(filename)
        if current is not None:
            checked = _check_manifest(existing_gist_id, filename, current)
            if isinstance(checked, Err):
                return checked

        updated = self._host.update_document(existing_gist_id, {filename: content})
        if isinstance(updated, Err):
            return updated
        return Ok(existing_gist_id)


def _check_manifest(
    gist_id: str, filename: str, content: str
) -> Result[None, MalformedExistingManifest]:
    try:
        obj: object = json.loads(content)
    except json.JSONDecodeError as e:
        return Err(MalformedExistingManifest(gist_id=gist_id, filename=filename, reason=str(e)))
    if as_str_dict(obj) is None:
        return Err(
            MalformedExistingManifest(
                gist_id=gist_id, filename=filename, reason="manifest is not a JSON object"
            )
        )
    return Ok(None)
